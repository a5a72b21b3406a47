"""Seen-article store backed by a JSON file."""

import json
import logging
import os
from pathlib import Path
from typing import Set, Union

from ..exceptions import PersistenceError
from .base import SeenStore

logger = logging.getLogger(__name__)


class JsonSeenStore(SeenStore):
    """Stores seen URLs as a pretty-printed JSON array of strings.

    The file is read wholesale on ``load`` and rewritten wholesale on
    ``save``. A missing file is an empty set; an unreadable or corrupt file is
    logged and also treated as empty.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)

    def load(self) -> Set[str]:
        self._urls = {}
        if not self.path.exists():
            logger.info(f"No seen-articles file at {self.path}, starting fresh")
            return set()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read seen articles from {self.path}, starting fresh: {e}")
            return set()

        if not isinstance(data, list):
            logger.warning(f"Seen-articles file {self.path} is not a JSON array, starting fresh")
            return set()

        self.add_many(url for url in data if isinstance(url, str))
        logger.info(f"Loaded {len(self._urls)} previously seen articles")
        return set(self._urls)

    def save(self) -> None:
        # Write to a sibling temp file first so a failed write keeps the old file
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            if self.path.parent and not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self.urls, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(f"Could not write seen articles to {self.path}: {e}") from e
        logger.debug(f"Saved {len(self._urls)} seen articles to {self.path}")
