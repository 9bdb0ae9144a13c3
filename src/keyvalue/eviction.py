"""Eviction policy selection and budget enforcement.

The controller keeps the running memory usage of an EntryStore at or below
the configured budget: an entry that can never fit is rejected before any
mutation, otherwise least recently used entries are removed until the
incoming entry fits.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Union

from core.errors import CapacityError, ConfigurationError
from keyvalue.entry import CacheEntry
from keyvalue.store import EntryStore

logger = logging.getLogger(__name__)


class EvictionMode(str, Enum):
    """Eviction policies. Only LRU is supported today."""

    LRU = "LRU"

    @classmethod
    def parse(cls, value: Union["EvictionMode", str]) -> "EvictionMode":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise ConfigurationError(f"Unsupported eviction mode: {value!r}")


class EvictionController:
    def __init__(
        self,
        store: EntryStore,
        *,
        max_aggregate_memory_in_bytes: int,
        mode: EvictionMode = EvictionMode.LRU,
    ) -> None:
        self._store = store
        self._max_bytes = max_aggregate_memory_in_bytes
        self._mode = mode

    @property
    def mode(self) -> EvictionMode:
        return self._mode

    def ensure_fits(self, key: str, new_size: int) -> None:
        if new_size > self._max_bytes:
            raise CapacityError(key, new_size, self._max_bytes)

    def make_room(self, key: str, new_size: int) -> List[CacheEntry]:
        """Evict until an entry of new_size for key fits; return evicted entries.

        An existing entry for key is about to be replaced, so its size does
        not count towards the projection. If that entry is itself the oldest
        and gets evicted, the following insert is simply a fresh insert.
        """
        existing = self._store.peek(key)
        replaced_size = existing.estimated_size_bytes if existing is not None else 0
        projected = self._store.memory_usage - replaced_size + new_size

        evicted: List[CacheEntry] = []
        while projected > self._max_bytes and len(self._store) > 0:
            victim = self._store.remove_least_recently_used()
            if victim is None:
                break
            evicted.append(victim)

            # The replaced entry's size was already left out of the projection
            if victim.key != key:
                projected -= victim.estimated_size_bytes

            logger.debug(
                "Evicted %r (%d bytes, mode=%s)",
                victim.key,
                victim.estimated_size_bytes,
                self._mode.value,
            )

        return evicted
