"""
Event Bus

Publish/subscribe bus used to deliver bridge notifications to the consuming
application. Topics are plain strings; session-scoped topics append
":{session_id}" to the global topic name.
"""

import inspect
from collections.abc import Callable
from typing import Any

from ..config import bridge_logger

WILDCARD = "*"

SERVER_STARTED = "server-started"
MESSAGE_UPDATED = "message-updated"
MESSAGE_PART_UPDATED = "message-part-updated"
SESSION_UPDATED = "session-updated"
SESSION_DELETED = "session-deleted"
SESSION_IDLE = "session-idle"
SESSION_ERROR = "session-error"
RAW_EVENT = "raw-event"
GENERIC_EVENT = "event"

Handler = Callable[[str, Any], Any]


def scoped_topic(topic: str, session_id: str) -> str:
    """Session-scoped form of a global topic."""
    return f"{topic}:{session_id}"


class EventBus:
    """Fan-out of (topic, payload) publications to registered handlers."""

    def __init__(self):
        self.handlers: dict[str, list[Handler]] = {}

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """
        Register a handler for a topic ("*" receives everything).

        Args:
            topic: Exact topic name or "*"
            handler: Sync or async callable taking (topic, payload)

        Returns:
            A callable that removes the subscription
        """
        self.handlers.setdefault(topic, []).append(handler)

        def unsubscribe():
            handlers = self.handlers.get(topic, [])
            if handler in handlers:
                handlers.remove(handler)
            if not handlers:
                self.handlers.pop(topic, None)

        return unsubscribe

    async def publish(self, topic: str, payload: Any = None):
        """Deliver a payload to exact-topic handlers, then wildcard handlers."""
        targets = list(self.handlers.get(topic, []))
        if topic != WILDCARD:
            targets += self.handlers.get(WILDCARD, [])

        for handler in targets:
            try:
                result = handler(topic, payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                bridge_logger.error(f"Error in event handler for {topic}: {e}")

    async def publish_event(self, topic: str, payload: Any = None, session_id: str | None = None):
        """Publish globally and, when a session id is given, on the scoped topic."""
        await self.publish(topic, payload)
        if session_id:
            await self.publish(scoped_topic(topic, session_id), payload)

    def subscriber_count(self, topic: str) -> int:
        return len(self.handlers.get(topic, []))
