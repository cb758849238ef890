"""Event bus exports."""

from testplane.events.bus import EventBus, EventType, Subscriber

__all__ = ["EventBus", "EventType", "Subscriber"]
