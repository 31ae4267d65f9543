"""Session lifecycle on top of SessionStore.

Builds the conventional record, loads it with optional touch-on-access,
and hands out Session handles whose save()/destroy() re-set or delete the
same key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from core.clock import Clock, SystemClock
from core.models import StoreStats
from core.store import SessionStore
from sessions.records import RESERVED_FIELDS, iso_timestamp, new_session_record

logger = logging.getLogger(__name__)


@dataclass
class Session:
    id: str
    data: Dict[str, Any]
    _service: "SessionService" = field(repr=False, compare=False)

    async def save(self) -> None:
        await self._service.save(self)

    async def destroy(self) -> bool:
        return await self._service.destroy(self.id)


class SessionService:
    def __init__(
        self,
        store: SessionStore,
        *,
        clock: Optional[Clock] = None,
        touch_on_access: bool = True,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._touch_on_access = touch_on_access

    @property
    def store(self) -> SessionStore:
        return self._store

    async def create(
        self,
        *,
        user: Optional[Dict[str, Any]] = None,
        inputs: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
        results: Optional[Dict[str, Any]] = None,
        meta: Optional[Dict[str, Any]] = None,
        ttl_seconds: Optional[float] = None,
    ) -> Session:
        now = self._clock.now()
        ttl = self._ttl(ttl_seconds)
        record = new_session_record(
            now=now, user=user, inputs=inputs, config=config, results=results, meta=meta
        )
        record["expires_at"] = iso_timestamp(now + ttl)

        # 256-bit random key; stamped before the record is stored
        session_id = self._store.generate_key()
        record["id"] = session_id
        await self._store.set(session_id, record, ttl)
        logger.debug("Created session (ttl=%.0fs)", ttl)
        return Session(id=session_id, data=record, _service=self)

    async def load(self, session_id: str) -> Optional[Session]:
        data = await self._store.get(session_id)
        if data is None:
            return None

        session = Session(id=session_id, data=data, _service=self)
        if self._touch_on_access:
            # Re-set rather than touch so the stored stamps match the new expiry
            await self.save(session)
        return session

    async def update(self, session_id: str, updates: Mapping[str, Any]) -> Optional[Session]:
        session = await self.load(session_id)
        if session is None:
            return None

        # Shallow merge; stamped fields stay under service control
        for key, value in updates.items():
            if key not in RESERVED_FIELDS:
                session.data[key] = value

        await session.save()
        return session

    async def save(self, session: Session, ttl_seconds: Optional[float] = None) -> None:
        now = self._clock.now()
        ttl = self._ttl(ttl_seconds)
        session.data["id"] = session.id
        session.data["updated_at"] = iso_timestamp(now)
        session.data["expires_at"] = iso_timestamp(now + ttl)
        await self._store.set(session.id, session.data, ttl)

    async def destroy(self, session_id: str) -> bool:
        return await self._store.delete(session_id)

    async def stats(self) -> StoreStats:
        return await self._store.stats()

    def _ttl(self, ttl_seconds: Optional[float]) -> float:
        return self._store.default_ttl_seconds if ttl_seconds is None else float(ttl_seconds)
