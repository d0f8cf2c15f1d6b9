"""
OpenCode Models Module

Pydantic models for the sidecar's wire format and the bridge's own
connection descriptor.
"""

from .events import (
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
from .message import (
    ChatRequest,
    FileInput,
    FilePart,
    Message,
    StepStartPart,
    TextInput,
    TextPart,
    TokenInfo,
    ToolPart,
    ToolStateCompleted,
    ToolStateError,
    ToolStatePending,
    ToolStateRunning,
)
from .server import ServerInfo, ServerStatus
from .session import Session

__all__ = [
    "ServerInfo",
    "ServerStatus",
    "Session",
    "Message",
    "TextPart",
    "ToolPart",
    "FilePart",
    "StepStartPart",
    "ToolStatePending",
    "ToolStateRunning",
    "ToolStateCompleted",
    "ToolStateError",
    "TokenInfo",
    "ChatRequest",
    "TextInput",
    "FileInput",
    "Event",
    "MessageUpdated",
    "MessagePartUpdated",
    "MessageRemoved",
    "SessionUpdated",
    "SessionDeleted",
    "SessionIdle",
    "SessionError",
    "UnknownEvent",
    "decode_event",
]
