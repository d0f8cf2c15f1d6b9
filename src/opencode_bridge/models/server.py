"""
Server Models

Connection descriptor for the supervised sidecar.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ServerStatus(Enum):
    """Lifecycle states of the sidecar process."""
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"


ACTIVE_STATUSES = frozenset({ServerStatus.STARTING, ServerStatus.RUNNING})


class ServerInfo(BaseModel):
    """Snapshot of the running sidecar; transitions return a new value."""

    model_config = ConfigDict(frozen=True)

    port: int = Field(ge=0, le=65535)
    hostname: str
    pid: int | None = None
    status: ServerStatus = ServerStatus.STARTING
    error: str | None = Field(default=None, description="Message carried by the error state")

    @computed_field
    @property
    def base_url(self) -> str:
        if self.status not in ACTIVE_STATUSES:
            return ""
        return f"http://{self.hostname}:{self.port}"

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def mark_running(self) -> "ServerInfo":
        return self.model_copy(update={"status": ServerStatus.RUNNING, "error": None})

    def mark_stopped(self) -> "ServerInfo":
        return self.model_copy(update={"status": ServerStatus.STOPPED, "error": None})

    def mark_error(self, message: str) -> "ServerInfo":
        return self.model_copy(update={"status": ServerStatus.ERROR, "error": message})
