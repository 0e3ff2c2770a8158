"""Event bus for synchronous event dispatch.

The navigation engine publishes its output (instructions, state snapshots,
lifecycle changes) here. UI and audio collaborators subscribe by event class
and are called synchronously, in priority order, on the publishing thread.

Typical usage example:
    from wayfinder.core.event_bus import EventBus
    from wayfinder.navigation.events import InstructionIssued

    bus = EventBus()
    bus.subscribe(InstructionIssued, on_instruction)
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class EventPriority(Enum):
    """Priority levels for event handlers.

    Handlers are executed in order from CRITICAL to LOW.
    """

    CRITICAL = auto()
    HIGH = auto()
    NORMAL = auto()
    LOW = auto()


@dataclass(frozen=True)
class Event:
    """Base class for all events.

    Attributes:
        timestamp: Time the event was created. Keyword-only, so subclasses
            may declare required fields.
    """

    timestamp: float = field(default_factory=time.time, kw_only=True)


class EventBus:
    """Central event bus for synchronous event dispatch.

    Examples:
        >>> bus = EventBus()
        >>> bus.subscribe(NavigationStopped, lambda event: print("stopped"))
        >>> bus.publish(NavigationStopped(reason="user"))
        stopped
    """

    def __init__(self) -> None:
        """Initialize an empty event bus."""
        self._handlers: dict[type[Event], list[tuple[Callable[[Any], None], EventPriority]]] = {}

    def subscribe(
        self,
        event_type: type[Event],
        handler: Callable[[Any], None],
        priority: EventPriority = EventPriority.NORMAL,
    ) -> None:
        """Subscribe a handler to an event type.

        Args:
            event_type: The class of event to subscribe to. Subclasses are
                not matched; subscribe to each concrete type.
            handler: Callable that accepts the event as its only parameter.
            priority: Priority level for this handler. Defaults to NORMAL.
        """
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append((handler, priority))
        # stable sort keeps subscription order within a priority
        handlers.sort(key=lambda x: x[1].value)

    def unsubscribe(self, event_type: type[Event], handler: Callable[[Any], None]) -> None:
        """Unsubscribe a handler from an event type.

        Unknown handlers are ignored.

        Args:
            event_type: The event type to unsubscribe from.
            handler: The handler function to remove.
        """
        if event_type in self._handlers:
            self._handlers[event_type] = [
                (h, p) for h, p in self._handlers[event_type] if h != handler
            ]

            if not self._handlers[event_type]:
                del self._handlers[event_type]

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers.

        Handlers run synchronously. Exceptions raised by a handler propagate
        to the publisher. The handler list is copied before dispatch, so a
        handler may unsubscribe itself.

        Args:
            event: The event to publish.
        """
        for handler, _ in list(self._handlers.get(type(event), ())):
            handler(event)

    def get_subscriber_count(self, event_type: type[Event]) -> int:
        """Get the number of handlers subscribed to an event type."""
        return len(self._handlers.get(event_type, []))

    def clear(self) -> None:
        """Remove all event handlers."""
        self._handlers.clear()
