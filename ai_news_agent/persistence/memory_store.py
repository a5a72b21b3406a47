"""In-memory seen-article store for tests and dry runs."""

from typing import Iterable, Optional, Set

from .base import SeenStore


class MemorySeenStore(SeenStore):
    """Seen store that never touches the filesystem.

    ``save`` only counts how often it was called.
    """

    def __init__(self, initial: Optional[Iterable[str]] = None):
        super().__init__()
        self.save_count = 0
        self.add_many(initial or [])

    def load(self) -> Set[str]:
        # Keep URLs added since construction; nothing to reload from
        return set(self._urls)

    def save(self) -> None:
        self.save_count += 1
