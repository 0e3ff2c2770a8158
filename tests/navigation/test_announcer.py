"""Tests for the rate-limited instruction announcer."""

import pytest

from wayfinder.core.event_bus import EventBus
from wayfinder.core.messaging import Message, MessagePriority, MessageQueue, MessageTopic
from wayfinder.mapdata import NavigationGraphStore
from wayfinder.navigation import (
    InstructionAnnouncer,
    InstructionIssued,
    NavigationInstruction,
    NavigationStarted,
    NavigationStopped,
)

TURN_LEFT = NavigationInstruction.TURN_LEFT
FORWARD = NavigationInstruction.MOVE_FORWARD


@pytest.fixture
def queue() -> MessageQueue:
    return MessageQueue()


@pytest.fixture
def spoken(queue: MessageQueue) -> list[Message]:
    received: list[Message] = []
    queue.subscribe(MessageTopic.ANNOUNCEMENT, received.append)
    return received


@pytest.fixture
def announcer(event_bus: EventBus, queue: MessageQueue, clock) -> InstructionAnnouncer:
    announcer = InstructionAnnouncer(event_bus, queue, clock=clock)
    announcer.subscribe_to_events()
    return announcer


class TestInstructionAnnouncer:
    """Tests for InstructionAnnouncer."""

    def test_forwards_instruction(self, announcer, event_bus, queue, spoken) -> None:
        """Test the message payload for a guidance instruction."""
        event_bus.publish(InstructionIssued(instruction=TURN_LEFT, angle_deg=70.0))
        queue.process()

        assert len(spoken) == 1
        assert spoken[0].data == {
            "instruction": "turnLeft",
            "text": "Turn left",
            "audio_file": "turn_left",
            "icon": "arrow.turn.up.left",
        }
        assert spoken[0].priority is MessagePriority.NORMAL

    def test_same_instruction_cooldown(self, announcer, clock) -> None:
        """Test that a repeat is suppressed for three seconds."""
        assert announcer.announce(TURN_LEFT)

        clock.advance(2.9)
        assert not announcer.announce(TURN_LEFT)

        clock.advance(0.2)
        assert announcer.announce(TURN_LEFT)
        assert announcer.suppressed_count == 1

    def test_any_instruction_cooldown(self, announcer, clock) -> None:
        """Test that a different instruction waits 1.5 seconds."""
        assert announcer.announce(TURN_LEFT)

        clock.advance(1.4)
        assert not announcer.announce(FORWARD)

        clock.advance(0.2)
        assert announcer.announce(FORWARD)

    def test_suppressed_attempts_do_not_extend_cooldown(self, announcer, clock) -> None:
        """Test that the cooldown runs from the last message actually queued."""
        announcer.announce(TURN_LEFT)
        for _ in range(5):
            clock.advance(0.5)
            announcer.announce(FORWARD)

        assert announcer.last_instruction is FORWARD
        assert announcer.last_announcement_time == pytest.approx(1.5)

    def test_forced_bypasses_cooldowns(self, announcer, event_bus, queue, spoken) -> None:
        """Test lifecycle instructions are always forwarded, with high priority."""
        event_bus.publish(InstructionIssued(instruction=TURN_LEFT))
        event_bus.publish(InstructionIssued(instruction=NavigationInstruction.RECALCULATING, forced=True))
        event_bus.publish(InstructionIssued(instruction=NavigationInstruction.RECALCULATING, forced=True))
        queue.process()

        assert [m.data["instruction"] for m in spoken] == ["recalculating", "recalculating", "turnLeft"]
        assert spoken[0].priority is MessagePriority.HIGH

    def test_navigation_started_resets_cooldowns(
        self, announcer, event_bus, corridor_store: NavigationGraphStore
    ) -> None:
        """Test that a new session may repeat the last instruction immediately."""
        announcer.announce(TURN_LEFT)
        event_bus.publish(
            NavigationStarted(destination=corridor_store.get_poi(1), path=(1, 2, 3), total_distance=12.0)
        )

        assert announcer.last_instruction is None
        assert announcer.announce(TURN_LEFT)

    def test_navigation_stopped_flushes_and_stops_speech(self, announcer, event_bus, queue, spoken) -> None:
        """Test that stopping drops queued speech and requests silence."""
        stops: list[Message] = []
        queue.subscribe(MessageTopic.STOP_SPEECH, stops.append)
        announcer.announce(TURN_LEFT)

        event_bus.publish(NavigationStopped(reason="arrived"))
        queue.process()

        assert spoken == []
        assert len(stops) == 1
        assert stops[0].data == {"reason": "arrived"}

    def test_stop_directly(self, announcer, queue) -> None:
        stops: list[Message] = []
        queue.subscribe(MessageTopic.STOP_SPEECH, stops.append)

        announcer.stop()
        queue.process()

        assert stops[0].data == {"reason": "requested"}
        assert stops[0].priority is MessagePriority.CRITICAL

    def test_unsubscribe(self, announcer, event_bus, queue) -> None:
        """Test that an unsubscribed announcer ignores engine events."""
        announcer.unsubscribe_from_events()
        event_bus.publish(InstructionIssued(instruction=TURN_LEFT))

        assert queue.pending_count() == 0
