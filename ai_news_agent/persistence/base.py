"""Abstract base class for seen-article stores.

This module defines the API contract that all seen stores must implement.
"""

import abc
from typing import Dict, Iterable, List, Set


class SeenStore(abc.ABC):
    """Set of article URLs that earlier runs already turned into posts.

    URLs keep the order in which they were first added. The set only grows;
    nothing is ever removed automatically.
    """

    def __init__(self):
        # dict keys keep first-insertion order
        self._urls: Dict[str, None] = {}

    @abc.abstractmethod
    def load(self) -> Set[str]:
        """Load the stored URLs, replacing the in-memory set.

        Returns:
            The loaded URLs.
        """
        pass

    @abc.abstractmethod
    def save(self) -> None:
        """Persist the in-memory set.

        Raises:
            PersistenceError: If the set could not be written.
        """
        pass

    @property
    def urls(self) -> List[str]:
        """Snapshot of the URLs in insertion order."""
        return list(self._urls)

    def contains(self, url: str) -> bool:
        return url in self._urls

    def __contains__(self, url: object) -> bool:
        return url in self._urls

    def __len__(self) -> int:
        return len(self._urls)

    def add_many(self, urls: Iterable[str]) -> int:
        """Add URLs to the in-memory set.

        Returns:
            Number of URLs that were not already present.
        """
        added = 0
        for url in urls:
            if url and url not in self._urls:
                self._urls[url] = None
                added += 1
        return added
