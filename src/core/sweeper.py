"""Periodic background removal of expired entries.

The sweeper bounds memory held by sessions nobody reads again. It is not a
substitute for lazy expiry: the store still checks expiry on every read.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from core.errors import ConfigurationError
from core.store import SessionStore

logger = logging.getLogger(__name__)


class ExpirySweeper:
    def __init__(self, store: SessionStore, *, interval_seconds: float = 60.0) -> None:
        interval = float(interval_seconds)
        if interval <= 0:
            raise ConfigurationError("interval_seconds must be positive")
        self._store = store
        self._interval = interval
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> int:
        return await self._store.purge_expired()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._run(), name="expiry-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop.set()
        await self._task
        self._task = None

    async def __aenter__(self) -> "ExpirySweeper":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def _run(self) -> None:
        logger.debug("Expiry sweeper started (interval=%.1fs)", self._interval)
        while not self._stop.is_set():
            # Wake early when stop() is called
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
                break
            except asyncio.TimeoutError:
                pass

            try:
                await self.sweep_once()
            except Exception:
                logger.exception("Expiry sweep failed")
        logger.debug("Expiry sweeper stopped")
