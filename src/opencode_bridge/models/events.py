"""
Event Models

Tagged union of the events carried by the sidecar's /event stream, and the
decoder that turns one `data:` payload into a typed event.
"""

import json
from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter, ValidationError

from ..errors import StreamDecodeError
from .base import OpenCodeModel
from .message import Message, MessagePart
from .session import Session


class MessageUpdated(OpenCodeModel):
    type: Literal["message.updated"] = "message.updated"
    info: Message


class MessagePartUpdated(OpenCodeModel):
    type: Literal["message.part.updated"] = "message.part.updated"
    part: MessagePart
    session_id: str = Field(alias="sessionID")
    message_id: str = Field(alias="messageID")


class MessageRemoved(OpenCodeModel):
    type: Literal["message.removed"] = "message.removed"
    session_id: str = Field(alias="sessionID")
    message_id: str = Field(alias="messageID")


class SessionUpdated(OpenCodeModel):
    type: Literal["session.updated"] = "session.updated"
    info: Session


class SessionDeleted(OpenCodeModel):
    type: Literal["session.deleted"] = "session.deleted"
    info: Session


class SessionIdle(OpenCodeModel):
    type: Literal["session.idle"] = "session.idle"
    session_id: str = Field(alias="sessionID")


class SessionError(OpenCodeModel):
    type: Literal["session.error"] = "session.error"
    session_id: str | None = Field(default=None, alias="sessionID")
    error: Any = None


class UnknownEvent(OpenCodeModel):
    """Any event type this bridge does not model yet."""

    type: str
    data: dict[str, Any] = Field(default_factory=dict)


KnownEvent = Annotated[
    MessageUpdated
    | MessagePartUpdated
    | MessageRemoved
    | SessionUpdated
    | SessionDeleted
    | SessionIdle
    | SessionError,
    Field(discriminator="type"),
]

Event = (
    MessageUpdated
    | MessagePartUpdated
    | MessageRemoved
    | SessionUpdated
    | SessionDeleted
    | SessionIdle
    | SessionError
    | UnknownEvent
)

KNOWN_EVENT_TYPES = frozenset({
    "message.updated",
    "message.part.updated",
    "message.removed",
    "session.updated",
    "session.deleted",
    "session.idle",
    "session.error",
})

_event_adapter = TypeAdapter(KnownEvent)


def _flatten(payload: dict[str, Any]) -> dict[str, Any]:
    """Lift fields nested under "properties" to the top level."""
    properties = payload.get("properties")
    if not isinstance(properties, dict):
        return payload
    flat = {k: v for k, v in payload.items() if k != "properties"}
    for key, value in properties.items():
        flat.setdefault(key, value)
    return flat


def decode_event(data: str) -> Event:
    """
    Decode one `data:` payload.

    Raises:
        StreamDecodeError: payload is not a JSON object with a string "type",
            or a known event type does not match its schema
    """
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise StreamDecodeError(data, f"invalid JSON: {e}") from e

    if not isinstance(payload, dict) or not isinstance(payload.get("type"), str):
        raise StreamDecodeError(data, "payload has no string 'type' field")

    payload = _flatten(payload)
    event_type = payload["type"]

    if event_type not in KNOWN_EVENT_TYPES:
        return UnknownEvent(
            type=event_type,
            data={k: v for k, v in payload.items() if k != "type"}
        )

    try:
        return _event_adapter.validate_python(payload)
    except ValidationError as e:
        raise StreamDecodeError(data, f"invalid {event_type} event: {e.error_count()} validation errors") from e
