"""Configuration and environment helpers for the project.

Provides small helpers to read typed environment variables and exposes
project-level defaults used when a store or cache service is built from the
environment (memory budget, eviction mode, default TTL).
"""

from __future__ import annotations

import os
from typing import Optional


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_optional_float(name: str, default: Optional[float] = None) -> Optional[float]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


# In-memory key/value store
KV_MAX_MEMORY_BYTES = _env_int("KV_MAX_MEMORY_BYTES", 64 * 1024 * 1024)
KV_EVICTION_MODE = _env_str("KV_EVICTION_MODE", "LRU")

# Cache service (None = entries never expire)
CACHE_DEFAULT_TTL_SECONDS = _env_optional_float("CACHE_DEFAULT_TTL_SECONDS")
