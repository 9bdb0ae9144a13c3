import pytest

from core.errors import CapacityError, ConfigurationError
from core.models import NULL
from keyvalue.entry import CacheEntry
from keyvalue.eviction import EvictionController, EvictionMode
from keyvalue.store import EntryStore


def _entry(key: str, size: int) -> CacheEntry:
    return CacheEntry(
        key=key,
        value=NULL,
        inserted_at=0.0,
        last_written_at=0.0,
        estimated_size_bytes=size,
    )


def _filled(*sizes):
    s = EntryStore()
    for i, size in enumerate(sizes):
        s.insert_or_update(_entry(f"k{i}", size))
    return s


@pytest.mark.parametrize("raw", [EvictionMode.LRU, "LRU", "lru", " Lru "])
def test_eviction_mode_parse_accepts_lru(raw):
    assert EvictionMode.parse(raw) is EvictionMode.LRU


@pytest.mark.parametrize("raw", ["LFU", "", None, 1])
def test_eviction_mode_parse_rejects_unknown(raw):
    with pytest.raises(ConfigurationError):
        EvictionMode.parse(raw)


def test_ensure_fits_rejects_oversized():
    ctl = EvictionController(EntryStore(), max_aggregate_memory_in_bytes=100)

    ctl.ensure_fits("k", 100)
    with pytest.raises(CapacityError) as exc:
        ctl.ensure_fits("k", 101)

    assert exc.value.entry_size == 101
    assert "exceeds max_aggregate_memory_in_bytes" in str(exc.value)


def test_make_room_no_eviction_when_fits():
    s = _filled(30, 30)
    ctl = EvictionController(s, max_aggregate_memory_in_bytes=100)

    assert ctl.make_room("new", 40) == []
    assert len(s) == 2


def test_make_room_evicts_oldest_first_until_fits():
    s = _filled(30, 30, 30)
    ctl = EvictionController(s, max_aggregate_memory_in_bytes=100)

    evicted = ctl.make_room("new", 50)

    assert [e.key for e in evicted] == ["k0", "k1"]
    assert s.keys() == ["k2"]
    assert s.memory_usage == 30


def test_make_room_ignores_size_of_entry_being_replaced():
    s = _filled(40, 40)
    ctl = EvictionController(s, max_aggregate_memory_in_bytes=100)

    # k1 grows from 40 to 60: 80 - 40 + 60 = 100 fits without eviction
    assert ctl.make_room("k1", 60) == []


def test_make_room_replaced_key_evicted_as_victim():
    s = _filled(40, 40)
    ctl = EvictionController(s, max_aggregate_memory_in_bytes=100)

    # k0 is the LRU and is being overwritten with 70: projected 110
    evicted = ctl.make_room("k0", 70)

    assert [e.key for e in evicted] == ["k0", "k1"]
    assert len(s) == 0
    assert s.memory_usage == 0
