"""Tests for the event bus system."""

import time
from dataclasses import dataclass

import pytest

from wayfinder.core.event_bus import Event, EventBus, EventPriority


@dataclass(frozen=True)
class SampleEvent(Event):
    """Event with data."""

    data: str = ""


@dataclass(frozen=True)
class OtherEvent(Event):
    """Another event type."""

    value: int = 0


@dataclass(frozen=True)
class RequiredFieldEvent(Event):
    """Event whose field has no default."""

    label: str


class TestEventBus:
    """Test suite for EventBus."""

    def test_subscribe_and_publish(self) -> None:
        """Test that subscribed handlers receive published events."""
        bus = EventBus()
        received = []

        bus.subscribe(SampleEvent, received.append)
        event = SampleEvent(data="test")
        bus.publish(event)

        assert received == [event]
        assert received[0].data == "test"

    def test_priority_order(self) -> None:
        """Test that handlers are called in priority order."""
        bus = EventBus()
        call_order = []

        bus.subscribe(SampleEvent, lambda e: call_order.append("normal"), EventPriority.NORMAL)
        bus.subscribe(SampleEvent, lambda e: call_order.append("critical"), EventPriority.CRITICAL)
        bus.subscribe(SampleEvent, lambda e: call_order.append("low"), EventPriority.LOW)
        bus.subscribe(SampleEvent, lambda e: call_order.append("high"), EventPriority.HIGH)

        bus.publish(SampleEvent(data="test"))

        assert call_order == ["critical", "high", "normal", "low"]

    def test_same_priority_keeps_subscription_order(self) -> None:
        """Test that handlers of equal priority run in subscription order."""
        bus = EventBus()
        calls = []

        bus.subscribe(SampleEvent, lambda e: calls.append(1))
        bus.subscribe(SampleEvent, lambda e: calls.append(2))
        bus.subscribe(SampleEvent, lambda e: calls.append(3))
        bus.publish(SampleEvent())

        assert calls == [1, 2, 3]

    def test_different_event_types_isolated(self) -> None:
        """Test that different event types don't interfere."""
        bus = EventBus()
        samples = []
        others = []

        bus.subscribe(SampleEvent, samples.append)
        bus.subscribe(OtherEvent, others.append)

        bus.publish(SampleEvent(data="a"))
        bus.publish(OtherEvent(value=42))
        bus.publish(SampleEvent(data="b"))

        assert len(samples) == 2
        assert len(others) == 1

    def test_unsubscribe(self) -> None:
        """Test that unsubscribing removes a handler and cleans up."""
        bus = EventBus()
        received = []

        bus.subscribe(SampleEvent, received.append)
        bus.publish(SampleEvent())
        bus.unsubscribe(SampleEvent, received.append)
        bus.publish(SampleEvent())

        assert len(received) == 1
        assert bus.get_subscriber_count(SampleEvent) == 0

    def test_unsubscribe_nonexistent_handler(self) -> None:
        """Test that unsubscribing a non-existent handler is safe."""
        bus = EventBus()
        bus.unsubscribe(SampleEvent, print)

    def test_handler_may_unsubscribe_itself(self) -> None:
        """Test that a handler removing itself during dispatch does not skip others."""
        bus = EventBus()
        calls = []

        def once(event: SampleEvent) -> None:
            calls.append("once")
            bus.unsubscribe(SampleEvent, once)

        bus.subscribe(SampleEvent, once)
        bus.subscribe(SampleEvent, lambda e: calls.append("always"))

        bus.publish(SampleEvent())
        bus.publish(SampleEvent())

        assert calls == ["once", "always", "always"]

    def test_clear(self) -> None:
        """Test that clear removes all handlers."""
        bus = EventBus()
        received = []

        bus.subscribe(SampleEvent, received.append)
        bus.clear()
        bus.publish(SampleEvent())

        assert received == []

    def test_event_has_timestamp(self) -> None:
        """Test that events have timestamps."""
        before = time.time()
        event = SampleEvent(data="test")
        after = time.time()

        assert before <= event.timestamp <= after

    def test_timestamp_is_keyword_only(self) -> None:
        """Test that subclasses can declare required fields ahead of the timestamp."""
        event = RequiredFieldEvent("x", timestamp=12.5)

        assert event.label == "x"
        assert event.timestamp == 12.5

    def test_events_are_immutable(self) -> None:
        """Test that published events cannot be modified by handlers."""
        event = SampleEvent(data="test")

        with pytest.raises(AttributeError):
            event.data = "changed"  # type: ignore[misc]

    def test_handler_exception_propagates(self) -> None:
        """Test that exceptions in handlers propagate to caller."""
        bus = EventBus()

        def failing_handler(event: SampleEvent) -> None:
            raise ValueError("Handler error")

        bus.subscribe(SampleEvent, failing_handler)

        with pytest.raises(ValueError, match="Handler error"):
            bus.publish(SampleEvent())
