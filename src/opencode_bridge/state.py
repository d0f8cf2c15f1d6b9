"""
Shared Bridge State

Holds at most one sidecar process handle and its server info. Each field
has its own lock so readers of one never wait on writers of the other.
Construct one per application and pass it to every component.
"""

import asyncio
from typing import Any

import httpx

from .errors import NotRunningError
from .models.server import ServerInfo


class SharedState:
    """Process handle + server info, plus the shared HTTP client."""

    def __init__(self, http_client: httpx.AsyncClient | None = None):
        self.process: Any | None = None  # asyncio.subprocess.Process
        self.server_info: ServerInfo | None = None
        self.process_lock = asyncio.Lock()
        self.info_lock = asyncio.Lock()
        self.http_client = http_client or httpx.AsyncClient()

    async def get_info(self) -> ServerInfo | None:
        """Snapshot of the current server info."""
        async with self.info_lock:
            return self.server_info

    async def set_info(self, info: ServerInfo | None):
        async with self.info_lock:
            self.server_info = info

    async def require_active_info(self) -> ServerInfo:
        """Snapshot that must describe a starting or running server."""
        info = await self.get_info()
        if info is None or not info.is_active:
            raise NotRunningError()
        return info

    async def close(self):
        """Close the shared HTTP client."""
        await self.http_client.aclose()
