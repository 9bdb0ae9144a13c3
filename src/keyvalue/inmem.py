"""In-memory key/value store with a hard memory budget, LRU eviction and TTL.

InMemoryKeyValueStore is the public surface (put/get/exists/delete/clear).
It composes the memory accountant, the recency-ordered EntryStore, the
EvictionController and the lazy expiry checks.

Each instance owns its entries and a single lock. The async methods never
suspend while mutating, and every mutating sequence (estimate, evict, insert
or expire, promote) runs under the lock, so the budget invariant and the LRU
order also hold when the store is shared between threads.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import config
from core.errors import CapacityError, ConfigurationError, ValidationError
from core.interfaces import PutValue
from core.models import NULL, GetResult, Null, Present, StoredValue, StoreStats
from keyvalue import expiry
from keyvalue.entry import CacheEntry
from keyvalue.eviction import EvictionController, EvictionMode
from keyvalue.memory import estimate_entry_memory
from keyvalue.store import EntryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InMemoryStoreOptions:
    """Construction options for InMemoryKeyValueStore.

    max_aggregate_memory_in_bytes: approximate ceiling for all entries.
    eviction_mode: policy applied when the ceiling would be exceeded.
    """

    max_aggregate_memory_in_bytes: int
    eviction_mode: Union[EvictionMode, str] = EvictionMode.LRU


def _to_stored_value(value: PutValue) -> StoredValue:
    if value is None or isinstance(value, Null):
        return NULL
    if isinstance(value, Present):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        # Copy so later mutation of the caller's buffer can't change the entry
        return Present(bytes(value))
    raise ValidationError(f"Value must be bytes-like or None, got {type(value).__name__}")


def _validate_ttl(ttl_seconds: Optional[float]) -> Optional[float]:
    if ttl_seconds is None:
        return None
    if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, (int, float)):
        raise ValidationError(f"ttl_seconds must be a number, got {type(ttl_seconds).__name__}")
    if math.isnan(ttl_seconds) or ttl_seconds <= 0:
        raise ValidationError(f"ttl_seconds must be greater than 0, got {ttl_seconds}")
    return float(ttl_seconds)


def _validate_key(key: str) -> str:
    if not isinstance(key, str):
        raise ValidationError(f"Key must be a string, got {type(key).__name__}")
    return key


class InMemoryKeyValueStore:
    """Process-local key/value store for nullable bytes with optional TTL.

    Key behavior:
      - put() never lets the estimated memory usage exceed the budget; it
        evicts least recently used entries first and rejects entries that
        can never fit with CapacityError, leaving the store unchanged.
      - get()/exists() hits promote the entry to most recently used.
      - Expired entries are removed when a read discovers them.
      - put(key, None) caches the null marker; it never deletes.
    """

    def __init__(self, options: InMemoryStoreOptions) -> None:
        max_bytes = options.max_aggregate_memory_in_bytes
        if isinstance(max_bytes, bool) or not isinstance(max_bytes, int) or max_bytes <= 0:
            raise ConfigurationError(
                f"max_aggregate_memory_in_bytes must be a positive integer, got {max_bytes!r}"
            )

        self._max_bytes = max_bytes
        self._mode = EvictionMode.parse(options.eviction_mode)
        self._store = EntryStore()
        self._eviction = EvictionController(
            self._store,
            max_aggregate_memory_in_bytes=max_bytes,
            mode=self._mode,
        )
        self._lock = threading.Lock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    @classmethod
    def from_env(cls) -> "InMemoryKeyValueStore":
        return cls(
            InMemoryStoreOptions(
                max_aggregate_memory_in_bytes=config.KV_MAX_MEMORY_BYTES,
                eviction_mode=config.KV_EVICTION_MODE,
            )
        )

    @property
    def max_aggregate_memory_in_bytes(self) -> int:
        return self._max_bytes

    @property
    def eviction_mode(self) -> EvictionMode:
        return self._mode

    async def put(self, key: str, value: PutValue, ttl_seconds: Optional[float] = None) -> None:
        key = _validate_key(key)
        stored = _to_stored_value(value)
        ttl = _validate_ttl(ttl_seconds)
        size = estimate_entry_memory(key, stored)

        with self._lock:
            try:
                self._eviction.ensure_fits(key, size)
            except CapacityError:
                logger.warning(
                    "Rejected put for %r: %d bytes exceeds budget of %d bytes",
                    key,
                    size,
                    self._max_bytes,
                )
                raise

            evicted = self._eviction.make_room(key, size)
            self._evictions += sum(1 for e in evicted if e.key != key)

            at = expiry.now()
            existing = self._store.peek(key)
            self._store.insert_or_update(
                CacheEntry(
                    key=key,
                    value=stored,
                    inserted_at=existing.inserted_at if existing is not None else at,
                    last_written_at=at,
                    estimated_size_bytes=size,
                    ttl_seconds=ttl,
                )
            )

    async def get(self, key: str) -> Optional[GetResult]:
        key = _validate_key(key)
        with self._lock:
            hit = self._lookup(key)
            if hit is None:
                return None
            entry, at = hit
            return GetResult(value=entry.value, age_in_seconds=expiry.age_in_seconds(entry, at))

    async def exists(self, key: str) -> bool:
        key = _validate_key(key)
        with self._lock:
            return self._lookup(key) is not None

    async def delete(self, key: str) -> bool:
        key = _validate_key(key)
        with self._lock:
            return self._store.remove(key) is not None

    async def clear(self) -> None:
        with self._lock:
            removed = self._store.clear()
        logger.debug("Cleared %d entries", removed)

    def contains(self, key: str) -> bool:
        """Report whether key is live without promoting it, expiring it or counting a hit."""
        key = _validate_key(key)
        with self._lock:
            entry = self._store.peek(key)
            return entry is not None and not expiry.is_expired(entry, expiry.now())

    def get_current_memory_usage(self) -> int:
        with self._lock:
            return self._store.memory_usage

    def get_entry_count(self) -> int:
        with self._lock:
            return len(self._store)

    def get_stats(self) -> StoreStats:
        with self._lock:
            return StoreStats(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                expirations=self._expirations,
                entry_count=len(self._store),
                memory_usage=self._store.memory_usage,
                max_memory=self._max_bytes,
            )

    def _lookup(self, key: str) -> Optional[Tuple[CacheEntry, float]]:
        # Caller holds the lock. Expires lazily, promotes on hit.
        entry = self._store.peek(key)
        if entry is None:
            self._misses += 1
            return None

        at = expiry.now()
        if expiry.is_expired(entry, at):
            self._store.remove(key)
            self._expirations += 1
            self._misses += 1
            logger.debug("Expired %r after %.3fs", key, expiry.elapsed_seconds(entry, at))
            return None

        self._store.touch(key)
        self._hits += 1
        return entry, at
