"""Tests for the lifecycle event bus."""

import logging

import pytest

from testplane.events.bus import EventBus, EventType


class TestSubscribe:
    """Subscription and unsubscription."""

    def test_given_subscribers_when_trigger_then_called_in_order(self) -> None:
        # Given
        bus = EventBus()
        calls: list[str] = []
        bus.subscribe(EventType.AFTER_TEST, lambda p: calls.append(f"first:{p}"))
        bus.subscribe(EventType.AFTER_TEST, lambda p: calls.append(f"second:{p}"))

        # When
        bus.trigger(EventType.AFTER_TEST, "t1")

        # Then
        assert calls == ["first:t1", "second:t1"]

    def test_given_string_event_name_when_subscribe_then_accepted(self) -> None:
        bus = EventBus()
        seen: list[object] = []

        bus.subscribe("before-all", seen.append)
        bus.trigger(EventType.BEFORE_ALL)

        assert seen == [None]

    def test_given_unknown_event_name_when_subscribe_then_rejected(self) -> None:
        bus = EventBus()

        with pytest.raises(ValueError):
            bus.subscribe("not-an-event", print)

    def test_given_unsubscribe_when_trigger_then_not_called(self) -> None:
        bus = EventBus()
        seen: list[object] = []
        unsubscribe = bus.subscribe(EventType.ABORT, seen.append)

        unsubscribe()
        bus.trigger(EventType.ABORT)

        assert seen == []
        assert bus.subscriber_count(EventType.ABORT) == 0

    def test_given_double_unsubscribe_then_noop(self) -> None:
        bus = EventBus()
        unsubscribe = bus.subscribe(EventType.ABORT, print)

        unsubscribe()
        unsubscribe()

        assert bus.subscriber_count(EventType.ABORT) == 0

    def test_given_no_subscribers_when_trigger_then_noop(self) -> None:
        EventBus().trigger(EventType.AFTER_ALL, object())


class TestTrigger:
    """Delivery semantics."""

    def test_given_unsubscribe_during_delivery_then_rest_still_notified(self) -> None:
        """Everyone subscribed when the event fires sees it."""
        bus = EventBus()
        calls: list[str] = []
        unsubscribe_second = None

        def first(_payload: object) -> None:
            calls.append("first")
            assert unsubscribe_second is not None
            unsubscribe_second()

        bus.subscribe(EventType.BEFORE_TEST, first)
        unsubscribe_second = bus.subscribe(EventType.BEFORE_TEST, lambda _: calls.append("second"))

        bus.trigger(EventType.BEFORE_TEST)
        bus.trigger(EventType.BEFORE_TEST)

        assert calls == ["first", "second", "first"]

    def test_given_failing_subscriber_when_trigger_then_others_still_run(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        bus = EventBus()
        seen: list[object] = []

        def broken(_payload: object) -> None:
            raise RuntimeError("listener exploded")

        bus.subscribe(EventType.AFTER_TEST, broken)
        bus.subscribe(EventType.AFTER_TEST, seen.append)

        with caplog.at_level(logging.ERROR):
            bus.trigger(EventType.AFTER_TEST, "payload")

        assert seen == ["payload"]

    def test_events_are_isolated(self) -> None:
        bus = EventBus()
        seen: list[object] = []
        bus.subscribe(EventType.BEFORE_SUITE, seen.append)

        bus.trigger(EventType.AFTER_SUITE, "x")

        assert seen == []
