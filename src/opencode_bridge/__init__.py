"""
OpenCode Bridge

Supervises a local OpenCode sidecar server and relays its activity to a
consuming application. It includes:

- Process launch, port discovery and readiness gating of the sidecar
- Request/response access to sessions and messages
- A server-sent event relay that republishes typed events on a pub/sub bus,
  globally and per session

Main Components:
- supervisor: sidecar process lifecycle
- client: session/message HTTP client
- events: event bus and stream relay
- models: pydantic models for the sidecar wire format
- main: FastAPI command boundary

Example Usage:
    from opencode_bridge import OpenCodeBridge

    bridge = OpenCodeBridge()
    bridge.bus.subscribe("session-idle", on_idle)

    session = await bridge.execute_chat("Explain this repo", model="claude-sonnet-4")
"""

from .client.session_client import SessionClient
from .config import SupervisorConfig, bridge_logger
from .errors import OpenCodeBridgeError
from .events.bus import EventBus
from .events.relay import EventRelay, RelayHandle
from .models.message import ChatRequest, Message
from .models.server import ServerInfo, ServerStatus
from .models.session import Session
from .state import SharedState
from .supervisor.manager import ServerSupervisor

__version__ = "1.0.0"

DEFAULT_PROVIDER = "anthropic"


class OpenCodeBridge:
    """
    High-level entry point composing supervisor, client and relay.

    All components share one SharedState and one EventBus.
    """

    def __init__(
        self,
        config: SupervisorConfig | None = None,
        state: SharedState | None = None,
        bus: EventBus | None = None,
        supervisor: ServerSupervisor | None = None,
    ):
        self.config = config or SupervisorConfig()
        self.state = state or SharedState()
        self.bus = bus or EventBus()
        self.supervisor = supervisor or ServerSupervisor(self.state, self.bus, self.config)
        self.client = SessionClient(self.state)
        self.relay = EventRelay(self.state, self.bus)

    async def start_server(self) -> ServerInfo:
        """Start the OpenCode server (no-op if already running)."""
        return await self.supervisor.start()

    async def stop_server(self):
        """Stop the event relay and the OpenCode server."""
        await self.relay.close()
        await self.supervisor.stop()

    async def get_server_status(self) -> ServerInfo | None:
        return await self.supervisor.get_info()

    async def create_session(self) -> Session:
        return await self.client.create_session()

    async def list_sessions(self) -> list[Session]:
        return await self.client.list_sessions()

    async def get_session_messages(self, session_id: str) -> list[Message]:
        return await self.client.get_session_messages(session_id)

    async def send_chat_message(self, session_id: str, message: str, provider_id: str, model_id: str) -> Message:
        """Send a single text message to a session."""
        request = ChatRequest.from_text(message, provider_id=provider_id, model_id=model_id)
        return await self.client.send_chat_message(session_id, request)

    async def connect_event_stream(self) -> RelayHandle:
        return await self.relay.connect()

    async def abort_session(self, session_id: str) -> bool:
        bridge_logger.info(f"Aborting OpenCode session: {session_id}")
        return await self.client.abort_session(session_id)

    def get_logs(self, limit: int = 100) -> list[dict]:
        return self.supervisor.get_logs(limit)

    async def execute_chat(self, prompt: str, model: str, provider: str | None = None) -> Session:
        """
        Start a new conversation.

        Starts the server unless it is already running, creates a session,
        connects the event stream and sends the prompt as the first message.
        A failure to connect the event stream is logged, not raised.
        """
        bridge_logger.info(f"Starting OpenCode chat with model: {model} (provider: {provider})")

        info = await self.supervisor.get_info()
        if info is None or info.status != ServerStatus.RUNNING:
            await self.supervisor.start()

        session = await self.client.create_session()

        try:
            await self.relay.connect()
        except OpenCodeBridgeError as e:
            bridge_logger.warning(f"Failed to connect event stream: {e}")

        await self.send_chat_message(session.id, prompt, provider or DEFAULT_PROVIDER, model)

        bridge_logger.info(f"OpenCode chat session started successfully: {session.id}")
        return session

    async def continue_chat(self, session_id: str, prompt: str, model: str, provider: str | None = None) -> Message:
        """Send a follow-up prompt to an existing session."""
        bridge_logger.info(
            f"Continuing OpenCode chat session: {session_id} with model: {model} (provider: {provider})"
        )
        message = await self.send_chat_message(session_id, prompt, provider or DEFAULT_PROVIDER, model)
        bridge_logger.info("OpenCode chat continued successfully")
        return message

    async def aclose(self):
        """Stop everything and release the HTTP client."""
        await self.stop_server()
        await self.state.close()


__all__ = [
    "OpenCodeBridge",
    "SharedState",
    "ServerSupervisor",
    "SessionClient",
    "EventBus",
    "EventRelay",
    "RelayHandle",
    "SupervisorConfig",
]
