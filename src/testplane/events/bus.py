"""Synchronous publish/subscribe channel for runner lifecycle events.

Every lifecycle transition of the runner is announced here. Subscribers are
called in subscription order, on the caller's stack, with the event payload.
A failing subscriber is logged and does not prevent the remaining ones from
seeing the event.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from enum import Enum
from typing import Any

import structlog

log = structlog.get_logger(__name__)


class EventType(str, Enum):
    """Events published by the runner."""

    TEST_ADDED = "test-added"
    SUITE_ADDED = "suite-added"
    BEFORE_ALL = "before-all"
    AFTER_ALL = "after-all"
    BEFORE_SUITE = "before-suite"
    AFTER_SUITE = "after-suite"
    BEFORE_TEST = "before-test"
    AFTER_TEST = "after-test"
    SKIPPED_TEST = "skipped-test"
    ABORT = "abort"


Subscriber = Callable[[Any], object]


class EventBus:
    """Map from event type to an ordered list of subscribers."""

    def __init__(self) -> None:
        self._subscribers: dict[EventType, list[Subscriber]] = defaultdict(list)

    def subscribe(self, event: EventType | str, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for ``event``. Returns an unsubscribe function."""
        event_type = EventType(event)
        self._subscribers[event_type].append(callback)

        def unsubscribe() -> None:
            subscribers = self._subscribers[event_type]
            if callback in subscribers:
                subscribers.remove(callback)

        return unsubscribe

    def trigger(self, event: EventType | str, payload: Any = None) -> None:
        """Deliver ``payload`` to every subscriber of ``event``."""
        event_type = EventType(event)
        # Copy: subscribers may unsubscribe while being notified
        for callback in list(self._subscribers[event_type]):
            try:
                callback(payload)
            except Exception:
                log.exception("subscriber_failed", event_type=event_type.value)

    def subscriber_count(self, event: EventType | str) -> int:
        return len(self._subscribers[EventType(event)])
