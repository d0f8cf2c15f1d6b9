"""
Sidecar Supervisor Module

Process launch, port discovery and readiness gating for the OpenCode sidecar.
"""

from .launcher import SidecarLauncher
from .manager import ServerSupervisor
from .output import discover_port, extract_port_from_line

__all__ = [
    "ServerSupervisor",
    "SidecarLauncher",
    "discover_port",
    "extract_port_from_line",
]
