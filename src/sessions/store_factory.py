"""Explicit construction of session stores.

There is no process-wide default store: callers build one and pass it to
whatever needs it. Re-initialising means building a new store and dropping
the old handle.
"""

from __future__ import annotations

from typing import Optional

from config import store_config_from_env
from core.clock import Clock
from core.models import StoreConfig
from core.store import SessionStore


def build_store(config: Optional[StoreConfig] = None, *, clock: Optional[Clock] = None) -> SessionStore:
    """Return a new SessionStore.

    Uses SESSION_* environment variables when no config is given.
    Raises ConfigurationError for invalid settings.
    """
    return SessionStore(config or store_config_from_env(), clock=clock)
