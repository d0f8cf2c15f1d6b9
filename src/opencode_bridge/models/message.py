"""
Message Models

Messages, their tagged parts and the tool state machine, plus the chat
request payload sent to the sidecar.
"""

from typing import Annotated, Any, Literal

from pydantic import Field

from .base import OpenCodeModel


class ToolTimeInfo(OpenCodeModel):
    start: int
    end: int | None = None


class ToolStatePending(OpenCodeModel):
    status: Literal["pending"] = "pending"


class ToolStateRunning(OpenCodeModel):
    status: Literal["running"] = "running"
    input: Any = None
    time: ToolTimeInfo
    title: str | None = None
    metadata: Any = None


class ToolStateCompleted(OpenCodeModel):
    status: Literal["completed"] = "completed"
    input: Any = None
    output: str
    time: ToolTimeInfo
    title: str | None = None
    metadata: Any = None


class ToolStateError(OpenCodeModel):
    status: Literal["error"] = "error"
    input: Any = None
    error: str
    time: ToolTimeInfo


ToolState = Annotated[
    ToolStatePending | ToolStateRunning | ToolStateCompleted | ToolStateError,
    Field(discriminator="status"),
]

TERMINAL_TOOL_STATES = (ToolStateCompleted, ToolStateError)


class TextPart(OpenCodeModel):
    type: Literal["text"] = "text"
    text: str


class ToolPart(OpenCodeModel):
    type: Literal["tool"] = "tool"
    tool: str
    id: str
    state: ToolState

    @property
    def is_terminal(self) -> bool:
        """Completed and error states never transition again."""
        return isinstance(self.state, TERMINAL_TOOL_STATES)


class FilePart(OpenCodeModel):
    type: Literal["file"] = "file"
    url: str
    mime: str
    filename: str


class StepStartPart(OpenCodeModel):
    type: Literal["step-start"] = "step-start"


MessagePart = Annotated[
    TextPart | ToolPart | FilePart | StepStartPart,
    Field(discriminator="type"),
]


class CacheInfo(OpenCodeModel):
    read: int
    write: int


class TokenInfo(OpenCodeModel):
    input: int
    output: int
    reasoning: int
    cache: CacheInfo


class PathInfo(OpenCodeModel):
    cwd: str
    root: str


class MessageTime(OpenCodeModel):
    created: int
    updated: int | None = None
    completed: int | None = None


class Message(OpenCodeModel):
    """A user or assistant message inside a session."""

    id: str
    role: str
    session_id: str = Field(alias="sessionID")
    parts: list[MessagePart] = Field(default_factory=list)
    time: MessageTime
    model_id: str | None = Field(default=None, alias="modelID")
    provider_id: str | None = Field(default=None, alias="providerID")
    cost: float | None = None
    tokens: TokenInfo | None = None
    system: list[str] | None = None
    path: PathInfo | None = None
    summary: bool | None = None
    error: Any = None


class TextInput(OpenCodeModel):
    type: Literal["text"] = "text"
    text: str


class FileInput(OpenCodeModel):
    type: Literal["file"] = "file"
    url: str
    mime: str
    filename: str


UserMessagePart = Annotated[TextInput | FileInput, Field(discriminator="type")]


class ChatRequest(OpenCodeModel):
    """Body of POST /session/{id}/message."""

    provider_id: str = Field(alias="providerID")
    model_id: str = Field(alias="modelID")
    parts: list[UserMessagePart]

    @classmethod
    def from_text(cls, text: str, provider_id: str, model_id: str) -> "ChatRequest":
        return cls(provider_id=provider_id, model_id=model_id, parts=[TextInput(text=text)])
