"""
OpenCode Bridge Service

A FastAPI service exposing the bridge operations to a consuming application.
Outbound notifications are forwarded over the /ws/events WebSocket.
"""

import asyncio
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, WebSocket
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from . import DEFAULT_PROVIDER, OpenCodeBridge, __version__
from .config import SupervisorConfig, bridge_logger
from .errors import NotRunningError, OpenCodeBridgeError, SpawnError
from .events.bus import WILDCARD


class ChatMessageRequest(BaseModel):
    """Request model for sending a message to a session."""
    message: str
    model_id: str
    provider_id: str = DEFAULT_PROVIDER


class ExecuteChatRequest(BaseModel):
    """Request model for starting or continuing a chat."""
    prompt: str
    model: str
    provider: str | None = None


def _http_error(prefix: str, error: OpenCodeBridgeError) -> HTTPException:
    """Map a bridge error onto an HTTP status with a descriptive detail."""
    if isinstance(error, NotRunningError):
        status_code = 503
    elif isinstance(error, SpawnError):
        status_code = 500
    else:
        status_code = 502
    return HTTPException(status_code=status_code, detail=f"{prefix}: {error}")


def create_app(bridge: OpenCodeBridge | None = None) -> FastAPI:
    """Build the service; a bridge is created from the environment when none is given."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        app.state.bridge = bridge or OpenCodeBridge(SupervisorConfig.from_env())
        bridge_logger.info("OpenCode bridge service started")

        yield

        # Shutdown
        try:
            await app.state.bridge.aclose()
            bridge_logger.info("OpenCode bridge shutdown complete")
        except Exception as e:
            bridge_logger.error(f"Error during shutdown: {e}")

    app = FastAPI(
        title="OpenCode Bridge Service",
        description="Supervises a local OpenCode server and relays its events",
        version=__version__,
        lifespan=lifespan
    )

    def get_bridge(request: Request) -> OpenCodeBridge:
        return request.app.state.bridge

    @app.post("/server/start")
    async def start_server(request: Request):
        """Start the OpenCode server."""
        try:
            return await get_bridge(request).start_server()
        except OpenCodeBridgeError as e:
            raise _http_error("Failed to start OpenCode server", e)

    @app.post("/server/stop")
    async def stop_server(request: Request):
        """Stop the OpenCode server."""
        await get_bridge(request).stop_server()
        return {"success": True}

    @app.get("/server/status")
    async def server_status(request: Request):
        """Get current OpenCode server status."""
        return await get_bridge(request).get_server_status()

    @app.post("/sessions")
    async def create_session(request: Request):
        try:
            return await get_bridge(request).create_session()
        except OpenCodeBridgeError as e:
            raise _http_error("Failed to create OpenCode session", e)

    @app.get("/sessions")
    async def list_sessions(request: Request):
        try:
            return await get_bridge(request).list_sessions()
        except OpenCodeBridgeError as e:
            raise _http_error("Failed to list OpenCode sessions", e)

    @app.get("/sessions/{session_id}/messages")
    async def get_session_messages(session_id: str, request: Request):
        try:
            return await get_bridge(request).get_session_messages(session_id)
        except OpenCodeBridgeError as e:
            raise _http_error("Failed to get session messages", e)

    @app.post("/sessions/{session_id}/messages")
    async def send_chat_message(session_id: str, body: ChatMessageRequest, request: Request):
        try:
            return await get_bridge(request).send_chat_message(
                session_id, body.message, body.provider_id, body.model_id
            )
        except OpenCodeBridgeError as e:
            raise _http_error("Failed to send chat message", e)

    @app.post("/sessions/{session_id}/abort")
    async def abort_session(session_id: str, request: Request):
        try:
            return {"aborted": await get_bridge(request).abort_session(session_id)}
        except OpenCodeBridgeError as e:
            raise _http_error("Failed to abort session", e)

    @app.post("/chat")
    async def execute_chat(body: ExecuteChatRequest, request: Request):
        """Start the server if needed, open a session and send the first prompt."""
        try:
            return await get_bridge(request).execute_chat(body.prompt, body.model, body.provider)
        except OpenCodeBridgeError as e:
            raise _http_error("Failed to start OpenCode chat", e)

    @app.post("/chat/{session_id}")
    async def continue_chat(session_id: str, body: ExecuteChatRequest, request: Request):
        try:
            return await get_bridge(request).continue_chat(session_id, body.prompt, body.model, body.provider)
        except OpenCodeBridgeError as e:
            raise _http_error("Failed to continue chat", e)

    @app.post("/events/connect")
    async def connect_event_stream(request: Request):
        try:
            await get_bridge(request).connect_event_stream()
            return {"connected": True}
        except OpenCodeBridgeError as e:
            raise _http_error("Failed to connect to event stream", e)

    @app.get("/logs")
    async def get_logs(request: Request, limit: int = 100):
        """Get recent log entries."""
        return {"logs": get_bridge(request).get_logs(limit)}

    @app.websocket("/ws/events")
    async def event_stream(websocket: WebSocket):
        """Forward every bus publication as {"topic", "payload"} JSON."""
        await websocket.accept()
        queue: asyncio.Queue = asyncio.Queue()
        unsubscribe = websocket.app.state.bridge.bus.subscribe(
            WILDCARD, lambda topic, payload: queue.put_nowait((topic, payload))
        )

        async def forward():
            while True:
                topic, payload = await queue.get()
                await websocket.send_json({"topic": topic, "payload": jsonable_encoder(payload)})

        await websocket.send_json({
            "type": "connection",
            "message": "WebSocket connected to OpenCode bridge",
        })
        forward_task = asyncio.create_task(forward())

        try:
            # Incoming messages are ignored; this only watches for disconnect
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            forward_task.cancel()
            unsubscribe()
            bridge_logger.debug("Event WebSocket disconnected")

    return app


app = create_app()


def main():
    import uvicorn

    # Get configuration from environment
    host = os.getenv("OPENCODE_BRIDGE_HOST", "127.0.0.1")
    port = int(os.getenv("OPENCODE_BRIDGE_PORT", "8054"))

    bridge_logger.info(f"Starting OpenCode bridge on {host}:{port}")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info"
    )


if __name__ == "__main__":
    main()
