"""
OpenCode Events Module

Publish/subscribe bus for bridge notifications and the relay that feeds it
from the sidecar's server-sent event stream.
"""

from .bus import EventBus, scoped_topic
from .relay import EventRelay, RelayHandle

__all__ = [
    "EventBus",
    "EventRelay",
    "RelayHandle",
    "scoped_topic",
]
