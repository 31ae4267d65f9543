"""MCP tools for managing sessions held in the in-memory store.

Registers 'create_session', 'get_session', 'update_session',
'destroy_session' and 'session_stats' on top of a SessionService.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from core.errors import NotFoundError, ValidationError
from sessions.service import SessionService


def _require_id(session_id: str) -> str:
    sid = (session_id or "").strip()
    if not sid:
        raise ValidationError("session_id is empty")
    return sid


def register(mcp: FastMCP, *, service: SessionService) -> None:
    @mcp.tool(name="create_session")
    async def create_session(
        user: Optional[Dict[str, Any]] = None,
        inputs: Optional[Dict[str, Any]] = None,
        source: str = "mcp",
    ) -> Dict[str, Any]:
        """Create a new session and return its id and record.

        Params:
          - user: optional user sub-record.
          - inputs: optional initial form inputs.
          - source: free-form origin tag stored under meta.source.

        Raises:
          SizeLimitExceeded if the record is larger than the store allows.
        """
        session = await service.create(user=user, inputs=inputs, meta={"source": source})
        return {"session_id": session.id, "session": session.data}

    @mcp.tool(name="get_session")
    async def get_session(session_id: str) -> Dict[str, Any]:
        """Return the session record; extends its TTL when touch-on-access is on.

        Raises:
          NotFoundError if the session is missing or expired.
        """
        sid = _require_id(session_id)
        session = await service.load(sid)
        if session is None:
            raise NotFoundError(f"No active session: {sid}")
        return {"session_id": session.id, "session": session.data}

    @mcp.tool(name="update_session")
    async def update_session(session_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Shallow-merge updates into the session record and save it.

        id, created_at, updated_at, expires_at and version are ignored.

        Raises:
          NotFoundError if the session is missing or expired;
          SizeLimitExceeded if the merged record is too large.
        """
        sid = _require_id(session_id)
        session = await service.update(sid, updates or {})
        if session is None:
            raise NotFoundError(f"No active session: {sid}")
        return {"session_id": session.id, "session": session.data}

    @mcp.tool(name="destroy_session")
    async def destroy_session(session_id: str) -> Dict[str, Any]:
        """Delete the session.

        Raises:
          NotFoundError if there was nothing to delete.
        """
        sid = _require_id(session_id)
        if not await service.destroy(sid):
            raise NotFoundError(f"No active session: {sid}")
        return {"destroyed": True, "session_id": sid}

    @mcp.tool(name="session_stats")
    async def session_stats() -> Dict[str, Any]:
        """Return store statistics: entry count, capacity, counters and hit rate."""
        stats = await service.stats()
        return stats.as_dict()
