"""
Bridge Errors

Exception types raised by the supervisor, session client and event relay.
"""


class OpenCodeBridgeError(Exception):
    """Base class for all bridge errors."""


class SpawnError(OpenCodeBridgeError):
    """The sidecar process could not be launched."""


class RuntimeNotFoundError(SpawnError):
    """None of the candidate runtime binaries is on PATH."""

    def __init__(self, candidates: list[str]):
        self.candidates = list(candidates)
        super().__init__(f"Could not find any of: {', '.join(self.candidates)}")


class SidecarNotFoundError(SpawnError):
    """The sidecar entry script does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"OpenCode server not found at: {path}")


class PortDiscoveryError(SpawnError):
    """No listening port appeared in the sidecar output."""


class ReadinessTimeoutError(OpenCodeBridgeError):
    """The sidecar never answered its liveness probe."""


class NotRunningError(OpenCodeBridgeError):
    """No active server info is available."""

    def __init__(self, message: str = "OpenCode server not running"):
        super().__init__(message)


class HttpError(OpenCodeBridgeError):
    """The sidecar answered with a non-success status."""

    def __init__(self, status: int, body: str, operation: str = "Request"):
        self.status = status
        self.body = body
        super().__init__(f"{operation} failed with status {status}: {body}")


class TransportError(OpenCodeBridgeError):
    """The request never got a response (connection refused, timeout...)."""


class DecodeError(OpenCodeBridgeError):
    """A response body did not match the expected shape."""


class StreamConnectError(OpenCodeBridgeError):
    """The event stream could not be opened."""


class StreamDecodeError(OpenCodeBridgeError):
    """A single event stream record could not be decoded."""

    def __init__(self, data: str, reason: str):
        self.data = data
        self.reason = reason
        super().__init__(f"Failed to parse OpenCode event: {reason}")
