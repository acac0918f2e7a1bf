"""Catalogue of tracked gifts.

Holds every TrackedItem in order of first observation. The refresh task is
the only writer; web handlers read concurrently. Both sides go through the
same lock:

    with catalogue.lock:
        ingest rows / derive a view / serialise
"""

import logging
import threading
from collections.abc import Iterable

from .history import TrackedItem

log = logging.getLogger(__name__)


class Catalogue:
    """Insertion-ordered collection of gifts keyed by identifier (URL).

    Lookup is a linear scan: catalogues are a few thousand gifts.
    """

    def __init__(self, items: Iterable[TrackedItem] = ()):
        self._items: list[TrackedItem] = list(items)
        self.lock = threading.RLock()

    def find(self, identifier: str) -> TrackedItem | None:
        """Return the first gift with this identifier, or None."""
        with self.lock:
            for item in self._items:
                if item.identifier == identifier:
                    return item
        return None

    def insert(self, item: TrackedItem) -> None:
        """Append a gift. Callers make sure the identifier isn't taken."""
        with self.lock:
            self._items.append(item)

    def items(self) -> list[TrackedItem]:
        """Return a copy of the gift list (safe to iterate while holding the lock)."""
        with self.lock:
            return list(self._items)

    def replace_all(self, items: Iterable[TrackedItem]) -> None:
        """Publish a restored collection in one step."""
        new_items = list(items)
        with self.lock:
            self._items = new_items
        log.info(f"Catalogue now holds {len(new_items)} gift(s)")

    def __len__(self) -> int:
        with self.lock:
            return len(self._items)
