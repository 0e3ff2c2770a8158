"""Rate-limited delivery of instructions to the speech collaborator.

The engine re-evaluates the instruction on every fix; speaking each one would
flood the user. The announcer sits between the event bus and the message
queue and only forwards guidance instructions that survive two cooldowns.
Lifecycle instructions (start, recalculating, arrival) are forced and always
forwarded.

Typical usage:
    from wayfinder.navigation.announcer import InstructionAnnouncer

    announcer = InstructionAnnouncer(event_bus, message_queue, settings)
    announcer.subscribe_to_events()
    ...
    message_queue.process()
"""

import logging
import time
from collections.abc import Callable

from wayfinder.core.event_bus import EventBus
from wayfinder.core.messaging import Message, MessagePriority, MessageQueue, MessageTopic
from wayfinder.navigation.events import InstructionIssued, NavigationStarted, NavigationStopped
from wayfinder.navigation.instructions import NavigationInstruction
from wayfinder.navigation.settings import NavigationSettings

logger = logging.getLogger(__name__)


class InstructionAnnouncer:
    """Forwards instructions from the engine to the message queue.

    A non-forced instruction is suppressed if it repeats the last announced
    instruction within ``same_instruction_cooldown`` seconds, or if any
    instruction was announced within ``any_instruction_cooldown`` seconds.

    Attributes:
        event_bus: Bus the engine publishes on.
        message_queue: Queue the speech collaborator drains.
        settings: Cooldown durations.
        last_instruction: Last forwarded instruction, or None.
        last_announcement_time: Clock value of the last forward, or None.
        suppressed_count: Instructions dropped by a cooldown.

    Examples:
        >>> announcer = InstructionAnnouncer(bus, queue)
        >>> announcer.subscribe_to_events()
        >>> bus.publish(InstructionIssued(instruction=NavigationInstruction.TURN_LEFT))
        >>> queue.pending_count()
        1
    """

    SENDER = "instruction_announcer"

    def __init__(
        self,
        event_bus: EventBus,
        message_queue: MessageQueue,
        settings: NavigationSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.event_bus = event_bus
        self.message_queue = message_queue
        self.settings = settings or NavigationSettings()
        self._clock = clock

        self.last_instruction: NavigationInstruction | None = None
        self.last_announcement_time: float | None = None
        self.suppressed_count = 0

        logger.info(
            "InstructionAnnouncer initialized (same=%.1fs, any=%.1fs)",
            self.settings.same_instruction_cooldown,
            self.settings.any_instruction_cooldown,
        )

    def subscribe_to_events(self) -> None:
        """Start listening to engine events."""
        self.event_bus.subscribe(InstructionIssued, self._on_instruction)
        self.event_bus.subscribe(NavigationStarted, self._on_navigation_started)
        self.event_bus.subscribe(NavigationStopped, self._on_navigation_stopped)

    def unsubscribe_from_events(self) -> None:
        self.event_bus.unsubscribe(InstructionIssued, self._on_instruction)
        self.event_bus.unsubscribe(NavigationStarted, self._on_navigation_started)
        self.event_bus.unsubscribe(NavigationStopped, self._on_navigation_stopped)

    def announce(self, instruction: NavigationInstruction, force: bool = False) -> bool:
        """Forward an instruction unless a cooldown suppresses it.

        Args:
            instruction: Instruction to announce.
            force: Bypass both cooldowns.

        Returns:
            True if a message was queued.
        """
        now = self._clock()

        if not force and self.last_announcement_time is not None:
            elapsed = now - self.last_announcement_time

            if instruction == self.last_instruction and elapsed < self.settings.same_instruction_cooldown:
                logger.debug("Skipping %s - same instruction cooldown", instruction.value)
                self.suppressed_count += 1
                return False

            if elapsed < self.settings.any_instruction_cooldown:
                logger.debug("Skipping %s - general cooldown", instruction.value)
                self.suppressed_count += 1
                return False

        queued = self.message_queue.publish(
            Message(
                sender=self.SENDER,
                topic=MessageTopic.ANNOUNCEMENT,
                data={
                    "instruction": instruction.value,
                    "text": instruction.description,
                    "audio_file": instruction.audio_file_name,
                    "icon": instruction.icon_name,
                },
                priority=MessagePriority.HIGH if force else MessagePriority.NORMAL,
            )
        )
        if queued:
            self.last_instruction = instruction
            self.last_announcement_time = now
            logger.debug("Announcing: %s", instruction.description)
        return queued

    def reset_cooldowns(self) -> None:
        self.last_instruction = None
        self.last_announcement_time = None

    def _on_instruction(self, event: InstructionIssued) -> None:
        self.announce(event.instruction, force=event.forced)

    def _on_navigation_started(self, event: NavigationStarted) -> None:
        self.reset_cooldowns()

    def stop(self, reason: str = "requested") -> None:
        """Drop pending announcements and ask the speech side to go quiet."""
        self.message_queue.clear()
        self.message_queue.publish(
            Message(
                sender=self.SENDER,
                topic=MessageTopic.STOP_SPEECH,
                data={"reason": reason},
                priority=MessagePriority.CRITICAL,
            )
        )

    def _on_navigation_stopped(self, event: NavigationStopped) -> None:
        self.stop(event.reason)
