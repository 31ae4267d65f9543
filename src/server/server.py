"""Server bootstrap for the session cache MCP service.

Creates the session store from the environment, wires the session
service into the tools, runs the expiry sweeper for the lifetime of the
server, and starts the MCP server (stdio transport).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from mcp.server.fastmcp import FastMCP

from config import LOG_LEVEL, SESSION_SWEEP_INTERVAL, SESSION_TOUCH_ON_ACCESS
from core.logging import configure_logging
from core.sweeper import ExpirySweeper
from sessions.service import SessionService
from sessions.store_factory import build_store

from tools.sessions import register as register_sessions

logger = logging.getLogger(__name__)

store = build_store()
service = SessionService(store, touch_on_access=SESSION_TOUCH_ON_ACCESS)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    sweeper = ExpirySweeper(store, interval_seconds=SESSION_SWEEP_INTERVAL)
    async with sweeper:
        logger.info(
            "Session store ready (max_entries=%d, policy=%s)",
            store.max_entries,
            store.eviction_policy,
        )
        yield
    await store.clear()


mcp = FastMCP("session-cache-mcp", lifespan=lifespan)


def register_tools() -> None:
    register_sessions(mcp, service=service)


register_tools()


def main() -> None:
    configure_logging(LOG_LEVEL)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
