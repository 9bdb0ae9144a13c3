from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.models import StoredValue


@dataclass(slots=True)
class CacheEntry:
    # Stored value + monotonic timestamps + size cached at insertion time
    key: str
    value: StoredValue
    inserted_at: float  # time.monotonic()
    last_written_at: float  # time.monotonic(), reset on every overwrite
    estimated_size_bytes: int
    ttl_seconds: Optional[float] = None
