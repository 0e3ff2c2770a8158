"""Bounded priority message queue for the speech and UI collaborators.

The engine itself talks through the synchronous :mod:`wayfinder.core.event_bus`.
Collaborators that must not run on the engine's thread (speech playback,
haptics) receive :class:`Message` objects through this queue instead and drain
it at their own pace with :meth:`MessageQueue.process`.

Typical usage example:
    from wayfinder.core.messaging import Message, MessagePriority, MessageQueue, MessageTopic

    queue = MessageQueue(maxsize=32)
    queue.subscribe(MessageTopic.ANNOUNCEMENT, speak)
    queue.publish(Message(
        sender="announcer",
        topic=MessageTopic.ANNOUNCEMENT,
        data={"text": "Turn left"},
        priority=MessagePriority.HIGH,
    ))
    queue.process()
"""

import itertools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from queue import Empty, Full, PriorityQueue
from typing import Any

logger = logging.getLogger(__name__)

_sequence = itertools.count()


class MessagePriority(Enum):
    """Priority levels for messages.

    Messages are processed in order from CRITICAL to LOW.
    """

    CRITICAL = 0
    HIGH = 1
    NORMAL = 2
    LOW = 3


@dataclass(order=True)
class Message:
    """A queued message.

    Ordering uses priority first, then publication order, so messages of
    equal priority are delivered first-in first-out.

    Attributes:
        sender: Name of the component sending the message.
        topic: Message category (see :class:`MessageTopic`).
        data: Arbitrary message payload.
        priority: Message priority.
        timestamp: Unix timestamp when the message was created.
    """

    sort_key: tuple[int, int] = field(init=False, repr=False)
    sender: str = field(compare=False)
    topic: str = field(compare=False)
    data: dict[str, Any] = field(default_factory=dict, compare=False)
    priority: MessagePriority = field(default=MessagePriority.NORMAL, compare=False)
    timestamp: float = field(default_factory=time.time, compare=False)

    def __post_init__(self) -> None:
        self.sort_key = (self.priority.value, next(_sequence))


class MessageTopic:
    """Well-known topic names."""

    ANNOUNCEMENT = "navigation.announcement"
    STOP_SPEECH = "navigation.stop_speech"
    STATE = "navigation.state"


class MessageQueue:
    """Bounded priority queue with topic subscriptions.

    When the queue is full, new messages are dropped and counted rather than
    blocking the publisher.

    Examples:
        >>> queue = MessageQueue(maxsize=8)
        >>> queue.subscribe("navigation.announcement", lambda msg: print(msg.data["text"]))
        >>> queue.publish(Message(sender="test", topic="navigation.announcement",
        ...                       data={"text": "Move forward"}))
        >>> queue.process()
        Move forward
        1
    """

    def __init__(self, maxsize: int = 64) -> None:
        """Initialize an empty message queue.

        Args:
            maxsize: Maximum number of pending messages (0 for unbounded).
        """
        self._queue: PriorityQueue[Message] = PriorityQueue(maxsize=maxsize)
        self._subscriptions: dict[str, list[Callable[[Message], None]]] = {}
        self.dropped_count = 0

    def subscribe(self, topic: str, handler: Callable[[Message], None]) -> None:
        """Subscribe a handler to a topic.

        Args:
            topic: Topic string to subscribe to.
            handler: Callable that accepts a Message as its only parameter.
        """
        self._subscriptions.setdefault(topic, []).append(handler)

    def unsubscribe(self, topic: str, handler: Callable[[Message], None]) -> None:
        """Unsubscribe a handler from a topic. Unknown handlers are ignored."""
        if topic in self._subscriptions:
            self._subscriptions[topic] = [h for h in self._subscriptions[topic] if h != handler]

            if not self._subscriptions[topic]:
                del self._subscriptions[topic]

    def publish(self, message: Message) -> bool:
        """Publish a message to the queue.

        Args:
            message: Message to publish.

        Returns:
            True if queued, False if dropped because the queue is full.
        """
        try:
            self._queue.put_nowait(message)
        except Full:
            self.dropped_count += 1
            logger.warning("Message queue full, dropped %s from %s", message.topic, message.sender)
            return False
        return True

    def process(self, max_messages: int = 100) -> int:
        """Dispatch queued messages to subscribers in priority order.

        Args:
            max_messages: Maximum number of messages to process in this call.

        Returns:
            Number of messages processed.
        """
        processed = 0

        while processed < max_messages:
            try:
                message = self._queue.get_nowait()
            except Empty:
                break
            for handler in list(self._subscriptions.get(message.topic, ())):
                handler(message)
            processed += 1

        return processed

    def clear(self) -> None:
        """Drop all pending messages. Subscriptions are kept."""
        while True:
            try:
                self._queue.get_nowait()
            except Empty:
                break

    def pending_count(self) -> int:
        """Get the number of pending messages in the queue."""
        return self._queue.qsize()

    def get_subscriber_count(self, topic: str) -> int:
        """Get the number of subscribers for a topic."""
        return len(self._subscriptions.get(topic, []))
