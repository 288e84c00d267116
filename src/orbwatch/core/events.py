"""In-process message channel between UI surfaces and the engine.

Replaces window-level broadcasts: a surface that wants the current
inspection closed publishes ``Topic.CLEAR_SELECTION`` on the bus it was
handed, and the engine, subscribed at construction, reacts.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class Topic(Enum):
    """Messages carried by the bus."""

    CLEAR_SELECTION = "clear_selection"
    SELECTION_CHANGED = "selection_changed"
    PATH_LOADED = "path_loaded"
    DISPLAY_CHANGED = "display_changed"
    STATUS_CHANGED = "status_changed"


class EventBus:
    """Synchronous publish/subscribe keyed by Topic.

    Handlers run in subscription order on the publisher's thread of
    control. A handler that raises stops delivery and the exception
    propagates to the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[Topic, list[Handler]] = {topic: [] for topic in Topic}

    def subscribe(self, topic: Topic, handler: Handler) -> Callable[[], None]:
        """Register ``handler`` for ``topic``.

        Returns:
            A callable that removes the subscription.
        """
        self._handlers[topic].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[topic]:
                self._handlers[topic].remove(handler)

        return unsubscribe

    def publish(self, topic: Topic, payload: Any = None) -> int:
        """Deliver ``payload`` to every handler of ``topic``.

        Returns:
            Number of handlers invoked.
        """
        handlers = list(self._handlers[topic])
        logger.debug("Publishing %s to %d handlers", topic.value, len(handlers))
        for handler in handlers:
            handler(payload)
        return len(handlers)
