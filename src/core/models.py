"""Dataclasses shared by the store, eviction strategies and tools.

Includes the stored entry (CacheEntry), the construction-time settings
(StoreConfig) and the read-only stats snapshot (StoreStats).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Literal

from core.errors import ConfigurationError


EvictionPolicy = Literal["lru", "ttl"]

EVICTION_POLICIES = ("lru", "ttl")

# 1 MiB ceiling on the serialized value
MAX_VALUE_BYTES = 1024 * 1024


@dataclass(slots=True)
class CacheEntry:
    # Timestamps are Clock.now() seconds
    key: str
    value: Any
    created_at: float
    updated_at: float
    expires_at: float
    last_accessed_at: float
    sequence: int  # store-wide tick, breaks timestamp ties

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class StoreConfig:
    """Construction-time settings for a SessionStore.

    Field groups:
    - Capacity: max_entries, eviction_policy
    - Expiry: default_ttl_seconds
    - Limits: max_value_bytes
    """

    max_entries: int = 10_000
    default_ttl_seconds: float = 24 * 60 * 60
    eviction_policy: EvictionPolicy = "lru"
    max_value_bytes: int = MAX_VALUE_BYTES

    def validate(self) -> None:
        if isinstance(self.max_entries, bool) or not isinstance(self.max_entries, int):
            raise ConfigurationError("max_entries must be an integer")
        if self.max_entries <= 0:
            raise ConfigurationError("max_entries must be positive")
        if self.default_ttl_seconds <= 0:
            raise ConfigurationError("default_ttl_seconds must be positive")
        if self.eviction_policy not in EVICTION_POLICIES:
            raise ConfigurationError(
                f"Unsupported eviction policy: {self.eviction_policy!r} "
                f"(expected one of {', '.join(EVICTION_POLICIES)})"
            )
        if self.max_value_bytes <= 0:
            raise ConfigurationError("max_value_bytes must be positive")


@dataclass(frozen=True)
class StoreStats:
    entry_count: int
    max_entries: int
    hits: int
    misses: int
    sets: int
    deletes: int
    evictions: int
    hit_rate: float

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
