"""
OpenCode Session Client

This module provides a request/response client for the sidecar's session and
message endpoints. It keeps no state of its own: every call snapshots the
server info from the shared state.
"""

from typing import Any

import httpx
from pydantic import StrictBool, TypeAdapter, ValidationError

from ..config import bridge_logger
from ..errors import DecodeError, HttpError, TransportError
from ..models.message import ChatRequest, Message
from ..models.session import Session
from ..state import SharedState

_session = TypeAdapter(Session)
_session_list = TypeAdapter(list[Session])
_message = TypeAdapter(Message)
_message_list = TypeAdapter(list[Message])
_abort_result = TypeAdapter(StrictBool)


class SessionClient:
    """Client for the OpenCode session API."""

    def __init__(self, state: SharedState):
        self.state = state

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        json_data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Issue one request against the current base URL; no retries."""
        info = await self.state.require_active_info()
        url = f"{info.base_url}{path}"

        try:
            response = await self.state.http_client.request(method, url, json=json_data)
        except httpx.HTTPError as e:
            raise TransportError(f"{operation} failed: {e}") from e

        if not response.is_success:
            raise HttpError(response.status_code, response.text, operation)
        return response

    @staticmethod
    def _decode(response: httpx.Response, adapter: TypeAdapter, operation: str) -> Any:
        try:
            return adapter.validate_json(response.content)
        except ValidationError as e:
            raise DecodeError(f"Failed to parse {operation} response: {e}") from e

    async def create_session(self) -> Session:
        """Create a new session."""
        response = await self._request("POST", "/session", "Session creation")
        session = self._decode(response, _session, "session")
        bridge_logger.debug(f"Created OpenCode session {session.id}")
        return session

    async def list_sessions(self) -> list[Session]:
        """List all sessions, in the order the sidecar returns them."""
        response = await self._request("GET", "/session", "Session list")
        return self._decode(response, _session_list, "sessions")

    async def get_session_messages(self, session_id: str) -> list[Message]:
        """Get messages for a session."""
        response = await self._request("GET", f"/session/{session_id}/message", "Get messages")
        return self._decode(response, _message_list, "messages")

    async def send_chat_message(self, session_id: str, request: ChatRequest) -> Message:
        """
        Send a chat message.

        The returned message is the sidecar's synchronous acknowledgment; the
        streamed content arrives through the event relay.
        """
        response = await self._request(
            "POST",
            f"/session/{session_id}/message",
            "Chat request",
            json_data=request.to_wire(),
        )
        return self._decode(response, _message, "chat")

    async def abort_session(self, session_id: str) -> bool:
        """Abort a session; returns the sidecar's success flag."""
        response = await self._request("POST", f"/session/{session_id}/abort", "Abort request")
        return self._decode(response, _abort_result, "abort")
