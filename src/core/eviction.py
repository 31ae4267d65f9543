"""Pluggable eviction strategies for the session store.

A strategy only picks the victim; the store removes it and counts the
eviction. Ties are broken by the entry sequence number so the choice is
reproducible.
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol

from core.errors import ConfigurationError
from core.models import CacheEntry, EvictionPolicy


class EvictionStrategy(Protocol):
    """Contract for choosing which entry to drop when the store is full."""
    name: str

    def select_victim(self, entries: Mapping[str, CacheEntry]) -> Optional[str]:
        ...


class LRUStrategy:
    # Oldest last access goes first
    name = "lru"

    def select_victim(self, entries: Mapping[str, CacheEntry]) -> Optional[str]:
        if not entries:
            return None
        victim = min(entries.values(), key=lambda e: (e.last_accessed_at, e.sequence))
        return victim.key


class TTLStrategy:
    # Soonest expiry goes first
    name = "ttl"

    def select_victim(self, entries: Mapping[str, CacheEntry]) -> Optional[str]:
        if not entries:
            return None
        victim = min(entries.values(), key=lambda e: (e.expires_at, e.sequence))
        return victim.key


_STRATEGIES = {
    "lru": LRUStrategy,
    "ttl": TTLStrategy,
}


def get_eviction_strategy(policy: EvictionPolicy) -> EvictionStrategy:
    try:
        return _STRATEGIES[policy]()
    except KeyError as e:
        raise ConfigurationError(f"Unsupported eviction policy: {policy!r}") from e
