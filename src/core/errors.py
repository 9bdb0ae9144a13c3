from __future__ import annotations


class KeyValueStoreError(Exception):
    """Base error for the key/value store and cache service."""


class ConfigurationError(KeyValueStoreError):
    """Raised when a store is constructed with invalid options."""


class ValidationError(KeyValueStoreError):
    """Raised when an argument passed to a store operation is invalid."""


class CapacityError(KeyValueStoreError):
    """Raised when a single entry can never fit in the memory budget."""

    def __init__(self, key: str, entry_size: int, max_aggregate_memory_in_bytes: int) -> None:
        super().__init__(
            f"Entry size ({entry_size} bytes) for key {key!r} exceeds "
            f"max_aggregate_memory_in_bytes ({max_aggregate_memory_in_bytes} bytes)"
        )
        self.key = key
        self.entry_size = entry_size
        self.max_aggregate_memory_in_bytes = max_aggregate_memory_in_bytes


class SerializationError(KeyValueStoreError):
    """Raised when a cached value cannot be encoded or decoded."""
