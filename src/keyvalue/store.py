"""Recency-ordered entry store with running memory accounting.

Entries live in an OrderedDict (hash map + doubly-linked list), ordered from
least recently used (front) to most recently used (back), so lookup,
promotion and removal of the oldest entry are all O(1).

The running memory total is only changed here, when entries are actually
inserted or removed.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import List, Optional

from keyvalue.entry import CacheEntry


class EntryStore:
    def __init__(self) -> None:
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._memory_usage = 0

    @property
    def memory_usage(self) -> int:
        return self._memory_usage

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def keys(self) -> List[str]:
        # LRU first, MRU last
        return list(self._entries)

    def peek(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def insert_or_update(self, entry: CacheEntry) -> Optional[CacheEntry]:
        old = self._entries.get(entry.key)
        self._entries[entry.key] = entry
        self._entries.move_to_end(entry.key, last=True)

        if old is None:
            self._memory_usage += entry.estimated_size_bytes
        else:
            self._memory_usage += entry.estimated_size_bytes - old.estimated_size_bytes
        return old

    def touch(self, key: str) -> None:
        self._entries.move_to_end(key, last=True)

    def remove_least_recently_used(self) -> Optional[CacheEntry]:
        if not self._entries:
            return None
        _, entry = self._entries.popitem(last=False)
        self._memory_usage -= entry.estimated_size_bytes
        return entry

    def remove(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.pop(key, None)
        if entry is not None:
            self._memory_usage -= entry.estimated_size_bytes
        return entry

    def clear(self) -> int:
        removed = len(self._entries)
        self._entries.clear()
        self._memory_usage = 0
        return removed
