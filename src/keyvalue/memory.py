"""Approximate memory accounting for stored entries.

The estimate is deterministic and cheap; it is not heap introspection:

- ENTRY_OVERHEAD: fixed bookkeeping cost per entry (timestamps, metadata,
  ordered-map node). 100 bytes.
- BYTES_PER_CHAR: cost per key character, a UTF-16 style approximation.
  2 bytes.
- Value: exact byte length of the payload; a cached null costs 0.

These constants define the precision of the memory budget and are not
configurable.
"""

from __future__ import annotations

from core.models import Null, StoredValue

ENTRY_OVERHEAD = 100
BYTES_PER_CHAR = 2


def value_byte_length(value: StoredValue) -> int:
    if isinstance(value, Null):
        return 0
    return len(value.data)


def estimate_entry_memory(key: str, value: StoredValue) -> int:
    return ENTRY_OVERHEAD + len(key) * BYTES_PER_CHAR + value_byte_length(value)
