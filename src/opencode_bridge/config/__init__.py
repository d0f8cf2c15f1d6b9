"""
Bridge Configuration Module

Provides the shared structured logger and supervisor settings.
"""

from .logging_config import bridge_logger
from .settings import DEFAULT_ENTRY_SCRIPT, SupervisorConfig

__all__ = [
    "bridge_logger",
    "SupervisorConfig",
    "DEFAULT_ENTRY_SCRIPT",
]
