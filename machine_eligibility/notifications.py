"""Change notifications handed to the live-update layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A ``{type, data}`` message describing changed job or machine state."""

    type: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> Dict[str, Any]:
        return {"type": self.type, "data": dict(self.data)}


class ChangePublisher(Protocol):
    def publish(self, event: ChangeEvent) -> None:
        ...


Subscriber = Callable[[Dict[str, Any]], None]


class InProcessPublisher:
    """Fans events out to subscribers registered in this process."""

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, event: ChangeEvent) -> None:
        message = event.to_message()
        logger.debug("Publishing %s to %d subscriber(s)", event.type, len(self._subscribers))
        for subscriber in list(self._subscribers):
            subscriber(message)


__all__ = ["ChangeEvent", "ChangePublisher", "InProcessPublisher"]
