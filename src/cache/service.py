"""Cache-aside service over any KeyValueStore.

Values are stored as UTF-8 JSON; a Python None is stored as the store's
null marker so a cached "nothing" is still a hit. Keys can be grouped with
tags and invalidated together.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set, TypeVar, Union

import config
from core.errors import KeyValueStoreError, SerializationError
from core.interfaces import KeyValueStore
from core.models import NULL, CacheOptions, GetResult, OptionallyCachedValue

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()

# Tag index size that triggers the first sweep of keys the store no longer holds
_TAG_PRUNE_MIN = 64


class KeyValueCacheService:
    """Async cache service: get/set/has/delete/clear plus get_or_generate.

    Concurrent misses for the same key (within one event loop) run the
    generator once; later callers wait for it and read the cached result.
    """

    def __init__(self, store: KeyValueStore, *, default_ttl_seconds: Optional[float] = None) -> None:
        self._store = store
        self._default_ttl = default_ttl_seconds
        self._tags: Dict[str, Set[str]] = {}
        self._key_tags: Dict[str, Set[str]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}
        self._prune_at = _TAG_PRUNE_MIN

    @classmethod
    def from_env(cls, store: KeyValueStore) -> "KeyValueCacheService":
        return cls(store, default_ttl_seconds=config.CACHE_DEFAULT_TTL_SECONDS)

    async def get(self, key: str, default: Any = None) -> Any:
        value = await self._read(key)
        return default if value is _MISSING else value

    async def set(self, key: str, value: Any, options: Optional[CacheOptions] = None) -> None:
        opts = options or CacheOptions()
        ttl = opts.ttl if opts.ttl is not None else self._default_ttl

        await self._store.put(key, self._encode(key, value), ttl)
        self._retag(key, opts.tags)

        if len(self._key_tags) > self._prune_at:
            await self._prune_tags()

    async def has(self, key: str) -> bool:
        return await self._store.exists(key)

    async def delete(self, key: str) -> bool:
        self._untag(key)
        return await self._store.delete(key)

    async def clear(self) -> None:
        clear = getattr(self._store, "clear", None)
        if clear is None:
            raise KeyValueStoreError(f"{type(self._store).__name__} does not support clear()")
        await clear()
        self._tags.clear()
        self._key_tags.clear()
        self._prune_at = _TAG_PRUNE_MIN

    async def invalidate_tags(self, *tags: str) -> int:
        keys: Set[str] = set()
        for tag in tags:
            keys |= self._tags.get(tag, set())

        removed = 0
        for key in sorted(keys):
            if await self.delete(key):
                removed += 1
        logger.debug("Invalidated tags %s: %d of %d keys removed", tags, removed, len(keys))
        return removed

    async def get_or_generate(
        self,
        key: str,
        generate_fn: Callable[[], Union[T, Awaitable[T]]],
        options: Optional[CacheOptions] = None,
    ) -> T:
        result = await self.fetch(key, generate_fn, options)
        return result.value

    async def fetch(
        self,
        key: str,
        generate_fn: Callable[[], Union[T, Awaitable[T]]],
        options: Optional[CacheOptions] = None,
    ) -> OptionallyCachedValue[T]:
        value = await self._read(key)
        if value is not _MISSING:
            return OptionallyCachedValue(True, value)

        lock = self._locks.setdefault(key, asyncio.Lock())
        # Holders and waiters; the lock is dropped only when none remain
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                # Another task may have filled it while we waited
                value = await self._read(key)
                if value is not _MISSING:
                    return OptionallyCachedValue(True, value)

                logger.debug("Cache miss for %r, generating", key)
                generated = generate_fn()
                if inspect.isawaitable(generated):
                    generated = await generated

                await self.set(key, generated, options)
                return OptionallyCachedValue(False, generated)
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] == 0:
                del self._lock_users[key]
                del self._locks[key]

    async def _read(self, key: str) -> Any:
        result = await self._store.get(key)
        if result is None:
            self._untag(key)
            return _MISSING
        return self._decode(key, result)

    def _encode(self, key: str, value: Any) -> Any:
        if value is None:
            return NULL
        try:
            return json.dumps(value, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Value for key {key!r} is not JSON serializable: {e}") from e

    def _decode(self, key: str, result: GetResult) -> Any:
        if result.is_null:
            return None
        try:
            return json.loads(result.data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise SerializationError(f"Cached value for key {key!r} is not valid JSON: {e}") from e

    async def _prune_tags(self) -> None:
        # Drop keys the store evicted or let expire without us noticing
        contains = getattr(self._store, "contains", None)
        before = len(self._key_tags)
        for key in list(self._key_tags):
            alive = contains(key) if contains is not None else await self._store.exists(key)
            if not alive:
                self._untag(key)

        self._prune_at = max(_TAG_PRUNE_MIN, 2 * len(self._key_tags))
        logger.debug("Pruned tag index: %d of %d keys kept", len(self._key_tags), before)

    def _retag(self, key: str, tags) -> None:
        self._untag(key)
        if not tags:
            return
        self._key_tags[key] = set(tags)
        for tag in tags:
            self._tags.setdefault(tag, set()).add(key)

    def _untag(self, key: str) -> None:
        for tag in self._key_tags.pop(key, ()):
            keys = self._tags.get(tag)
            if keys is None:
                continue
            keys.discard(key)
            if not keys:
                del self._tags[tag]
