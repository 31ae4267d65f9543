"""Conventional shape of a stored session record.

The store treats values opaquely; this schema is a convention shared by the
session service and the MCP tools.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

SCHEMA_VERSION = 1

# Fields the service stamps itself; callers cannot overwrite them via update
RESERVED_FIELDS = frozenset({"id", "created_at", "updated_at", "expires_at", "version"})


def iso_timestamp(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def new_session_record(
    *,
    now: float,
    user: Optional[Dict[str, Any]] = None,
    inputs: Optional[Dict[str, Any]] = None,
    config: Optional[Dict[str, Any]] = None,
    results: Optional[Dict[str, Any]] = None,
    meta: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    stamp = iso_timestamp(now)
    return {
        "id": None,  # set once the store assigns a key
        "created_at": stamp,
        "updated_at": stamp,
        "expires_at": None,
        "version": SCHEMA_VERSION,
        "user": user,
        "inputs": dict(inputs or {}),
        "config": dict(config or {}),
        "results": dict(results or {}),
        "meta": dict(meta or {}),
    }
