"""Bounded insertion-ordered cache shared by the resolver, escaper and parser."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterator


class BoundedCache[K: Hashable, V]:
    """Map with a fixed capacity that evicts the oldest inserted key first.

    Reads do not refresh an entry's position, so this is FIFO rather than LRU.
    The capacity check, eviction and insert happen under one lock so concurrent
    writers can never grow the map past ``capacity``.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            msg = f"cache capacity must be at least 1, got {capacity}"
            raise ValueError(msg)
        self.capacity = capacity
        self._entries: dict[K, V] = {}
        self._lock = threading.Lock()

    def get[D](self, key: K, default: D | None = None) -> V | D | None:
        with self._lock:
            return self._entries.get(key, default)

    def put(self, key: K, value: V) -> None:
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.capacity:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
            self._entries[key] = value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[K]:
        """Snapshot of keys, oldest first."""
        with self._lock:
            return list(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[K]:
        return iter(self.keys())


__all__ = ["BoundedCache"]
