from typing import Dict, Optional

import pytest

import keyvalue.expiry as expiry_mod
from core.models import NULL, GetResult, Present
from keyvalue.inmem import InMemoryKeyValueStore, InMemoryStoreOptions


class DictStore:
    """Minimal KeyValueStore stand-in without TTL, eviction or clear()."""

    def __init__(self) -> None:
        self.data: Dict[str, object] = {}

    async def put(self, key: str, value, ttl_seconds: Optional[float] = None) -> None:
        self.data[key] = NULL if value is None else value

    async def get(self, key: str) -> Optional[GetResult]:
        if key not in self.data:
            return None
        value = self.data[key]
        if isinstance(value, (bytes, bytearray)):
            value = Present(bytes(value))
        return GetResult(value=value, age_in_seconds=0)

    async def exists(self, key: str) -> bool:
        return key in self.data

    async def delete(self, key: str) -> bool:
        return self.data.pop(key, None) is not None


@pytest.fixture
def clock(monkeypatch):
    t = {"now": 0.0}

    def fake_monotonic():
        return t["now"]

    monkeypatch.setattr(expiry_mod.time, "monotonic", fake_monotonic)
    return t


@pytest.fixture
def make_store():
    def _make(max_bytes: int = 1024 * 1024, mode="LRU") -> InMemoryKeyValueStore:
        return InMemoryKeyValueStore(
            InMemoryStoreOptions(max_aggregate_memory_in_bytes=max_bytes, eviction_mode=mode)
        )
    return _make


@pytest.fixture
def dict_store():
    return DictStore()
