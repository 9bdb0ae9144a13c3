"""Lazy TTL checks for stored entries.

Expiry is only evaluated when an entry is read; there is no background
sweep. An expired entry that is never read again keeps its memory until it
is evicted, overwritten or cleared.
"""

from __future__ import annotations

import math
import time

from keyvalue.entry import CacheEntry


def now() -> float:
    # Monotonic time so TTLs aren't affected by system clock changes.
    return time.monotonic()


def elapsed_seconds(entry: CacheEntry, at: float) -> float:
    return max(0.0, at - entry.last_written_at)


def is_expired(entry: CacheEntry, at: float) -> bool:
    if entry.ttl_seconds is None:
        return False
    return elapsed_seconds(entry, at) >= entry.ttl_seconds


def age_in_seconds(entry: CacheEntry, at: float) -> int:
    return int(math.floor(elapsed_seconds(entry, at)))
