"""
OpenCode Client Module

Request/response access to the sidecar's session API.
"""

from .session_client import SessionClient

__all__ = ["SessionClient"]
