"""In-process change notifications for the event store."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable


class EventBus:
    """Publish/subscribe bus for store changes.

    Handlers run synchronously, in subscription order, on the publishing
    thread. A subscriber registered for ``object`` receives every message.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, message_type: type, handler: Callable[[Any], None]) -> None:
        self._subscribers[message_type].append(handler)

    def publish(self, message: Any) -> None:
        for handler in list(self._subscribers.get(type(message), [])):
            handler(message)
        for handler in list(self._subscribers.get(object, [])):
            handler(message)
