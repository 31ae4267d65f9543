"""In-memory keyed session store with TTL and bounded capacity.

Entries expire lazily on read and are also removed by the ExpirySweeper.
When a new key would push the store past max_entries, exactly one entry is
evicted through the configured strategy before the insert, under the same
lock, so "check capacity -> evict -> insert" is a single step.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import secrets
from typing import Any, Dict, Optional

from core.clock import Clock, SystemClock
from core.errors import SizeLimitExceeded, ValidationError
from core.eviction import EvictionStrategy, get_eviction_strategy
from core.metrics import CacheMetrics
from core.models import CacheEntry, EvictionPolicy, StoreConfig, StoreStats

logger = logging.getLogger(__name__)

# 32 random bytes -> 64 hex chars
KEY_BYTES = 32


def serialized_size(value: Any) -> int:
    try:
        raw = json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        # UnicodeEncodeError (lone surrogates) is a ValueError
        raise ValidationError(f"Value is not JSON-serializable: {e}") from e
    return len(raw)


class SessionStore:
    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        *,
        clock: Optional[Clock] = None,
        strategy: Optional[EvictionStrategy] = None,
    ) -> None:
        self._config = config or StoreConfig()
        self._config.validate()

        self._clock = clock or SystemClock()
        self._strategy = strategy or get_eviction_strategy(self._config.eviction_policy)
        self._entries: Dict[str, CacheEntry] = {}
        self._metrics = CacheMetrics()
        self._sequence = 0

        # One lock covers entries, metrics and the sequence counter.
        self._lock = asyncio.Lock()

    @property
    def max_entries(self) -> int:
        return self._config.max_entries

    @property
    def default_ttl_seconds(self) -> float:
        return self._config.default_ttl_seconds

    @property
    def eviction_policy(self) -> EvictionPolicy:
        return self._config.eviction_policy

    def __len__(self) -> int:
        return len(self._entries)

    def generate_key(self) -> str:
        return secrets.token_hex(KEY_BYTES)

    async def set(self, key: Optional[str], value: Any, ttl_seconds: Optional[float] = None) -> str:
        ttl = self._resolve_ttl(ttl_seconds)

        # Size check happens before anything is touched
        size = serialized_size(value)
        if size > self._config.max_value_bytes:
            raise SizeLimitExceeded(size, self._config.max_value_bytes)

        stored = copy.deepcopy(value)

        async with self._lock:
            if not key:
                key = self._unused_key()

            now = self._clock.now()
            existing = self._entries.get(key)

            # An expired entry is dead even if nothing has removed it yet
            if existing is not None and existing.is_expired(now):
                self._remove(key)
                existing = None

            if existing is None and len(self._entries) >= self._config.max_entries:
                self._evict_one()

            self._entries[key] = CacheEntry(
                key=key,
                value=stored,
                created_at=existing.created_at if existing is not None else now,
                updated_at=now,
                expires_at=now + ttl,
                last_accessed_at=now,
                sequence=self._next_sequence(),
            )
            self._metrics.sets += 1

        return key

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                self._metrics.misses += 1
                return None

            entry.last_accessed_at = self._clock.now()
            entry.sequence = self._next_sequence()
            self._metrics.hits += 1
            return copy.deepcopy(entry.value)

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._remove(key)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    async def touch(self, key: str, ttl_seconds: Optional[float] = None) -> bool:
        ttl = self._resolve_ttl(ttl_seconds)

        async with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return False

            now = self._clock.now()
            entry.updated_at = now
            entry.expires_at = now + ttl
            entry.last_accessed_at = now
            entry.sequence = self._next_sequence()
            return True

    async def stats(self) -> StoreStats:
        async with self._lock:
            m = self._metrics
            return StoreStats(
                entry_count=len(self._entries),
                max_entries=self._config.max_entries,
                hits=m.hits,
                misses=m.misses,
                sets=m.sets,
                deletes=m.deletes,
                evictions=m.evictions,
                hit_rate=m.hit_rate,
            )

    async def purge_expired(self) -> int:
        """Remove every expired entry and return how many were dropped.

        Removals here are counted as evictions, same as capacity evictions.
        """
        async with self._lock:
            now = self._clock.now()
            dead = [k for k, e in self._entries.items() if e.is_expired(now)]
            for k in dead:
                del self._entries[k]
            self._metrics.evictions += len(dead)

        if dead:
            logger.info("Purged %d expired entries", len(dead))
        return len(dead)

    # --- helpers below assume the lock is held ---

    def _resolve_ttl(self, ttl_seconds: Optional[float]) -> float:
        if ttl_seconds is None:
            return self._config.default_ttl_seconds
        ttl = float(ttl_seconds)
        if ttl <= 0:
            raise ValidationError("ttl_seconds must be positive")
        return ttl

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def _unused_key(self) -> str:
        key = self.generate_key()
        while key in self._entries:
            key = self.generate_key()
        return key

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        # Lazy expiry: drop it now instead of waiting for the sweeper
        if entry.is_expired(self._clock.now()):
            self._remove(key)
            return None
        return entry

    def _remove(self, key: str) -> bool:
        if self._entries.pop(key, None) is None:
            return False
        self._metrics.deletes += 1
        return True

    def _evict_one(self) -> None:
        victim = self._strategy.select_victim(self._entries)
        if victim is None:
            return
        del self._entries[victim]
        self._metrics.evictions += 1
        logger.debug("Evicted one entry (policy=%s, size=%d)", self._strategy.name, len(self._entries))
