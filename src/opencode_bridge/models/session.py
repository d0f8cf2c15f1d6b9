"""Session models as returned by the sidecar."""

from pydantic import Field

from .base import OpenCodeModel


class TimeInfo(OpenCodeModel):
    created: int
    updated: int


class ShareInfo(OpenCodeModel):
    url: str


class RevertInfo(OpenCodeModel):
    message_id: str = Field(alias="messageID")
    part: int
    snapshot: str | None = None


class Session(OpenCodeModel):
    """A conversation owned by the sidecar."""

    id: str
    parent_id: str | None = Field(default=None, alias="parentID")
    title: str
    version: str
    time: TimeInfo
    share: ShareInfo | None = None
    revert: RevertInfo | None = None
