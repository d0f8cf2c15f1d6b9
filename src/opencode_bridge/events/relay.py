"""
OpenCode Event Relay

This module opens the sidecar's server-sent event stream, reassembles its
records, decodes them into typed events and republishes them on the event
bus. Disconnection ends the relay quietly; it does not reconnect.
"""

import asyncio
import codecs
from collections.abc import AsyncIterator
from typing import assert_never

import httpx

from ..config import bridge_logger
from ..errors import StreamConnectError, StreamDecodeError
from ..models.events import (
    Event,
    MessagePartUpdated,
    MessageRemoved,
    MessageUpdated,
    SessionDeleted,
    SessionError,
    SessionIdle,
    SessionUpdated,
    UnknownEvent,
    decode_event,
)
from ..state import SharedState
from .bus import (
    GENERIC_EVENT,
    MESSAGE_PART_UPDATED,
    MESSAGE_UPDATED,
    RAW_EVENT,
    SESSION_DELETED,
    SESSION_ERROR,
    SESSION_IDLE,
    SESSION_UPDATED,
    EventBus,
)

RECORD_SEPARATOR = "\n\n"
DATA_PREFIX = "data: "

# Connect may time out; reads never do
STREAM_TIMEOUT = httpx.Timeout(10.0, read=None)


class RelayHandle:
    """Handle on the background task that owns the event stream."""

    def __init__(self, task: asyncio.Task):
        self.task = task

    @property
    def done(self) -> bool:
        return self.task.done()

    def cancel(self):
        self.task.cancel()

    async def wait(self):
        """Wait for the relay to finish (EOF, stream error or cancellation)."""
        await asyncio.gather(self.task, return_exceptions=True)


class EventRelay:
    """Relays the sidecar's /event stream onto an EventBus."""

    def __init__(self, state: SharedState, bus: EventBus):
        self.state = state
        self.bus = bus
        self.handle: RelayHandle | None = None
        self._connect_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self.handle is not None and not self.handle.done

    async def connect(self) -> RelayHandle:
        """
        Open the event stream and start relaying in the background.

        Returns immediately once the stream is open. Calling again while a
        relay is running returns the existing handle.

        Raises:
            NotRunningError: no active server info
            StreamConnectError: transport failure or non-success status
        """
        async with self._connect_lock:
            return await self._connect_locked()

    async def _connect_locked(self) -> RelayHandle:
        if self.is_connected:
            return self.handle

        info = await self.state.require_active_info()
        url = f"{info.base_url}/event"

        bridge_logger.info(f"Connecting to OpenCode event stream at {url}")

        client = self.state.http_client
        request = client.build_request(
            "GET",
            url,
            headers={"Accept": "text/event-stream", "Cache-Control": "no-cache"},
            timeout=STREAM_TIMEOUT,
        )

        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise StreamConnectError(f"Failed to connect to event stream: {e}") from e

        if not response.is_success:
            await response.aclose()
            raise StreamConnectError(
                f"Event stream connection failed with status: {response.status_code}"
            )

        self.handle = RelayHandle(asyncio.create_task(self._run(response)))
        return self.handle

    async def close(self):
        """Cancel the running relay, if any, and wait for it to finish."""
        async with self._connect_lock:
            handle, self.handle = self.handle, None
            if handle is not None and not handle.done:
                handle.cancel()
                await handle.wait()

    async def _run(self, response: httpx.Response):
        try:
            await self.process_stream(response.aiter_bytes())
            bridge_logger.info("OpenCode event stream ended")
        except asyncio.CancelledError:
            bridge_logger.info("OpenCode event stream relay cancelled")
            raise
        except Exception as e:
            bridge_logger.error(f"Event stream processing error: {e}")
        finally:
            await response.aclose()

    async def process_stream(self, chunks: AsyncIterator[bytes]):
        """Reassemble records from raw chunks and handle each complete one."""
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        buffer = ""

        async for chunk in chunks:
            buffer += decoder.decode(chunk)
            buffer = buffer.replace("\r\n", "\n")

            while RECORD_SEPARATOR in buffer:
                record, buffer = buffer.split(RECORD_SEPARATOR, 1)
                await self.handle_record(record)

    async def handle_record(self, record: str):
        """Decode and dispatch every data line of one record."""
        for line in record.split("\n"):
            if not line.startswith(DATA_PREFIX):
                continue

            data = line[len(DATA_PREFIX):]
            if not data.strip() or data == "{}":
                continue

            try:
                event = decode_event(data)
            except StreamDecodeError as e:
                bridge_logger.debug(f"{e} - Data: {data}")
                await self.bus.publish(RAW_EVENT, data)
                continue

            await self.dispatch(event)

    async def dispatch(self, event: Event):
        """Publish an event on its global topic and, where it has one, its session topic."""
        if isinstance(event, MessageUpdated):
            await self.bus.publish_event(MESSAGE_UPDATED, event, event.info.session_id)
        elif isinstance(event, MessagePartUpdated):
            await self.bus.publish_event(MESSAGE_PART_UPDATED, event, event.session_id)
        elif isinstance(event, SessionIdle):
            await self.bus.publish_event(SESSION_IDLE, event, event.session_id)
        elif isinstance(event, SessionError):
            await self.bus.publish_event(SESSION_ERROR, event, event.session_id)
        elif isinstance(event, SessionUpdated):
            await self.bus.publish(SESSION_UPDATED, event)
        elif isinstance(event, SessionDeleted):
            await self.bus.publish(SESSION_DELETED, event)
        elif isinstance(event, (MessageRemoved, UnknownEvent)):
            await self.bus.publish(GENERIC_EVENT, event)
        else:
            assert_never(event)
