"""Core protocol and interface definitions.

Defines the KeyValueStore protocol implemented by the in-memory store and
consumed by the cache service, plus the CacheService contract. Callers that
depend on these protocols must not assume durability.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, Protocol, TypeVar, Union

from core.models import CacheOptions, GetResult, Null, Present

T = TypeVar("T")

PutValue = Union[bytes, bytearray, memoryview, Present, Null, None]


class KeyValueStore(Protocol):
    """Contract for any key/value backend storing nullable bytes with optional TTL."""
    async def put(self, key: str, value: PutValue, ttl_seconds: Optional[float] = None) -> None:
        ...

    async def get(self, key: str) -> Optional[GetResult]:
        ...

    async def exists(self, key: str) -> bool:
        ...

    async def delete(self, key: str) -> bool:
        ...


# Same contract, named for how upstream code uses it.
CacheStore = KeyValueStore
BlobStore = KeyValueStore


class CacheService(Protocol):
    """Contract for a cache-aside service over arbitrary values."""
    async def get_or_generate(
        self,
        key: str,
        generate_fn: Callable[[], Union[T, Awaitable[T]]],
        options: Optional[CacheOptions] = None,
    ) -> T:
        ...

    async def get(self, key: str, default: Any = None) -> Any:
        ...

    async def set(self, key: str, value: Any, options: Optional[CacheOptions] = None) -> None:
        ...

    async def has(self, key: str) -> bool:
        ...

    async def delete(self, key: str) -> bool:
        ...

    async def clear(self) -> None:
        ...
