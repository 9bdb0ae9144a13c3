"""Immutable dataclasses shared by the store and the cache service.

Includes the two-variant stored value (Present / Null), the result
returned by a store read, cache-service options and store statistics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, Tuple, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Present:
    """A stored byte payload."""

    data: bytes


@dataclass(frozen=True, slots=True)
class Null:
    """A cached "no value" marker. Distinct from the key being absent."""


NULL = Null()

StoredValue = Union[Present, Null]


@dataclass(frozen=True, slots=True)
class GetResult:
    """Value returned by a store read together with its age in whole seconds."""

    value: StoredValue
    age_in_seconds: int

    @property
    def is_null(self) -> bool:
        return isinstance(self.value, Null)

    @property
    def data(self) -> Optional[bytes]:
        # None only for a cached null; absence is a None GetResult instead
        if isinstance(self.value, Present):
            return self.value.data
        return None


@dataclass(frozen=True, slots=True)
class OptionallyCachedValue(Generic[T]):
    """A value plus a flag telling whether it was served from the cache."""

    cached: bool
    value: T

    def is_cached(self) -> bool:
        return self.cached


@dataclass(frozen=True)
class CacheOptions:
    """Per-call options for the cache service.

    Field groups:
    - Expiry: ttl (seconds, None = service default)
    - Invalidation: tags
    """

    ttl: Optional[float] = None
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class StoreStats:
    hits: int
    misses: int
    evictions: int
    expirations: int
    entry_count: int
    memory_usage: int
    max_memory: int

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0
