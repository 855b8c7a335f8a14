"""Bounded least-recently-used store for per-file scan results."""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Generic, Hashable, Optional, TypeVar

DEFAULT_CACHE_SIZE = 100

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    timestamp: float
    invalidation_key: Hashable


class LRUCache(Generic[T]):
    """Key/entry store that never holds more than ``max_size`` entries.

    Both ``get`` and ``set`` mark the key as most recently used; inserting a
    new key at capacity evicts the single least recently used one first.
    """

    def __init__(self, max_size: int = DEFAULT_CACHE_SIZE) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._entries: "OrderedDict[str, CacheEntry[T]]" = OrderedDict()

    def get(self, key: str) -> Optional[CacheEntry[T]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        self._entries.move_to_end(key)
        return entry

    def get_valid(self, key: str, invalidation_key: Hashable) -> Optional[T]:
        """Return the cached value only if it was stored under ``invalidation_key``."""

        entry = self.get(key)
        if entry is None or entry.invalidation_key != invalidation_key:
            return None
        return entry.value

    def set(self, key: str, value: T, invalidation_key: Hashable = None) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self.max_size:
            self._entries.popitem(last=False)
        self._entries[key] = CacheEntry(value=value, timestamp=time.time(), invalidation_key=invalidation_key)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self):
        """Keys from least to most recently used."""

        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
