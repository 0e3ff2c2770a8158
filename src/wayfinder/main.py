"""Wayfinder - indoor pedestrian navigation.

Command line entry point. Loads a venue, replays a recorded pose trace
through the navigation engine and prints what the user would hear.

Typical usage:
    wayfinder --map data/HQ_navigation_data.json --list-pois
    wayfinder --map data/HQ_navigation_data.json --destination 3 --trace walk.yaml
    python -m wayfinder.main --map venue.yaml --destination 3 --trace walk.json --config my.yaml
"""

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from wayfinder.core.config import ConfigError, ConfigLoader
from wayfinder.core.event_bus import EventBus
from wayfinder.core.logging_system import LoggingError, get_logger, initialize_logging
from wayfinder.core.messaging import Message, MessageQueue, MessageTopic
from wayfinder.core.resource_path import get_config_path
from wayfinder.core.scheduler import TaskScheduler
from wayfinder.localization import PoseFix, normalize_localization_result
from wayfinder.mapdata import MapDataError, NavigationGraphStore
from wayfinder.navigation import (
    DestinationReached,
    InstructionAnnouncer,
    NavigationEngine,
    NavigationSettings,
    NavigationStopped,
    RouteRecalculated,
)
from wayfinder.spatial import Orientation, Position

logger = get_logger(__name__)

EXIT_ARRIVED = 0
EXIT_ERROR = 1
EXIT_NOT_ARRIVED = 2

DEFAULT_FIX_INTERVAL_S = 0.2


class TraceError(Exception):
    """Raised when a pose trace cannot be read."""


class TraceClock:
    """Clock driven by the timestamps of the replayed trace."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_to(self, t: float) -> None:
        self.now = max(self.now, t)


def load_trace(path: str | Path, min_confidence: float | None = None) -> list[tuple[float, PoseFix]]:
    """Read a pose trace.

    The file is YAML or JSON holding a list of fixes (or a mapping with a
    ``fixes`` list). A fix is either ``{t, position, rotation}`` or a raw
    localization response with an optional ``t``. Fixes without ``t`` follow
    the previous one by 0.2 s. Failed localizations are skipped.

    Args:
        path: Trace file.
        min_confidence: Drop localization responses below this confidence.

    Returns:
        ``(t, fix)`` pairs in file order.

    Raises:
        TraceError: If the file cannot be read or a fix is malformed.
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f) if path.suffix.lower() == ".json" else yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise TraceError(f"Cannot read trace {path}: {e}") from e

    if isinstance(data, Mapping):
        data = data.get("fixes")
    if not isinstance(data, list):
        raise TraceError(f"Trace {path} must contain a list of fixes")

    fixes: list[tuple[float, PoseFix]] = []
    t = -DEFAULT_FIX_INTERVAL_S
    for index, entry in enumerate(data):
        if not isinstance(entry, Mapping):
            raise TraceError(f"Fix #{index} in {path} is not a mapping")

        try:
            t = float(entry["t"]) if "t" in entry else t + DEFAULT_FIX_INTERVAL_S
        except (TypeError, ValueError) as e:
            raise TraceError(f"Fix #{index} in {path} has an invalid time: {e}") from e

        fix = _parse_fix(entry, index, min_confidence)
        if fix is None:
            logger.info("Skipping fix #%d at t=%.2f: no pose", index, t)
            continue
        fixes.append((t, fix))

    logger.info("Loaded %d fixes from %s", len(fixes), path)
    return fixes


def _parse_fix(entry: Mapping[str, Any], index: int, min_confidence: float | None) -> PoseFix | None:
    if "poseFound" in entry:
        return normalize_localization_result(entry, min_confidence=min_confidence)

    try:
        return PoseFix(
            position=Position.from_dict(entry["position"]),
            orientation=Orientation.from_dict(entry["rotation"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise TraceError(f"Fix #{index} is malformed: {e}") from e


class TraceReplay:
    """Wires the navigation stack together and replays one trace.

    Attributes:
        store: Venue graph.
        event_bus: Engine output channel.
        message_queue: Announcements for the speech layer.
        engine: Navigation engine.
        announcer: Cooldown filter between engine and speech.
        arrived: True once the destination was reached.
    """

    def __init__(
        self,
        store: NavigationGraphStore,
        settings: NavigationSettings | None = None,
        queue_size: int = 64,
        output: Any = None,
    ) -> None:
        self.store = store
        self.settings = settings or NavigationSettings()
        self.output = output or sys.stdout
        self.clock = TraceClock()

        self.event_bus = EventBus()
        self.message_queue = MessageQueue(maxsize=queue_size)
        self.engine = NavigationEngine(
            store,
            self.event_bus,
            self.settings,
            clock=self.clock,
            scheduler=TaskScheduler(self.clock),
        )
        self.announcer = InstructionAnnouncer(self.event_bus, self.message_queue, self.settings, clock=self.clock)
        self.announcer.subscribe_to_events()

        self.arrived = False
        self.reroutes = 0

        self.event_bus.subscribe(DestinationReached, self._on_destination_reached)
        self.event_bus.subscribe(RouteRecalculated, self._on_route_recalculated)
        self.event_bus.subscribe(NavigationStopped, self._on_navigation_stopped)
        self.message_queue.subscribe(MessageTopic.ANNOUNCEMENT, self._on_announcement)

    def run(self, destination: int, fixes: Sequence[tuple[float, PoseFix]]) -> int:
        """Replay the fixes, starting navigation once the first fix is in.

        Returns:
            Process exit code.
        """
        if not fixes:
            logger.error("Trace contains no usable fixes")
            return EXIT_ERROR

        started = False
        for t, fix in fixes:
            self.clock.advance_to(t)
            self.engine.update_position(fix.position, fix.orientation)

            if not started:
                if not self.engine.start_navigation(destination):
                    self.message_queue.process()
                    return EXIT_ERROR
                started = True

            self.message_queue.process()
            if self.arrived:
                break

        # let scheduled work (first instruction, arrival teardown) run
        self.clock.advance_to(self.clock.now + self.settings.arrival_teardown_delay)
        self.engine.tick()
        self.message_queue.process()

        if self.arrived:
            return EXIT_ARRIVED

        state = self.engine.state
        self._write(f"Trace ended {state.remaining_distance:.1f}m from destination")
        return EXIT_NOT_ARRIVED

    def list_pois(self) -> None:
        for poi in sorted(self.store.get_pois(), key=lambda p: p.id):
            self._write(f"{poi.id:>4}  {poi.name}  {poi.position}  ({poi.type or 'poi'})")

    def _write(self, text: str) -> None:
        print(text, file=self.output)

    def _on_announcement(self, message: Message) -> None:
        self._write(f"[{self.clock.now:7.2f}s] {message.data['text']}")

    def _on_destination_reached(self, event: DestinationReached) -> None:
        self.arrived = True
        logger.info("Destination reached: %s", event.destination.name)

    def _on_route_recalculated(self, event: RouteRecalculated) -> None:
        self.reroutes += 1
        logger.info("Route recalculated: %s -> %s", event.previous_path, event.path)

    def _on_navigation_stopped(self, event: NavigationStopped) -> None:
        logger.info("Navigation stopped: %s", event.reason)


def load_settings(config_path: str | Path | None) -> tuple[NavigationSettings, int]:
    """Load engine settings and the speech queue size.

    The shipped ``config/navigation.yaml`` is read first when present (a
    source or editable checkout); values from ``config_path`` override it.
    Without either, built-in defaults apply.
    """
    default = get_config_path("navigation.yaml")
    config = ConfigLoader.load(default) if default.exists() else ConfigLoader()
    if config_path is not None:
        config.merge(ConfigLoader.load(config_path))

    queue_size = config.get_int("messaging.queue_size", 64)
    return NavigationSettings.from_config(config), queue_size


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description="Wayfinder - indoor pedestrian navigation trace replay")

    parser.add_argument(
        "--map",
        type=str,
        required=True,
        help="Navigation data export (.json, .yaml or .yml)",
    )

    parser.add_argument(
        "--destination",
        type=int,
        help="Destination POI id",
    )

    parser.add_argument(
        "--trace",
        type=str,
        help="Pose trace to replay (.json, .yaml or .yml)",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Navigation settings YAML (default: config/navigation.yaml)",
    )

    parser.add_argument(
        "--log-config",
        type=str,
        help="Logging configuration YAML (default: config/logging.yaml)",
    )

    parser.add_argument(
        "--min-confidence",
        type=float,
        help="Ignore localization responses below this confidence",
    )

    parser.add_argument(
        "--list-pois",
        action="store_true",
        help="List the venue's points of interest and exit",
    )

    args = parser.parse_args(argv)
    if not args.list_pois and (args.destination is None or args.trace is None):
        parser.error("--destination and --trace are required unless --list-pois is given")
    return args


def _initialize_logging(log_config: str | None) -> None:
    if log_config:
        initialize_logging(log_config, use_platform_dir=True)
        return

    logging_config = get_config_path("logging.yaml")
    if logging_config.exists():
        initialize_logging(str(logging_config), use_platform_dir=True)
    else:
        initialize_logging(use_platform_dir=True)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code: 0 on arrival, 1 on error, 2 if the trace ended first.
    """
    args = parse_args(argv)

    try:
        _initialize_logging(args.log_config)
        logger.info("Wayfinder starting up...")

        settings, queue_size = load_settings(args.config)

        store = NavigationGraphStore()
        store.load_from_file(args.map)

        replay = TraceReplay(store, settings, queue_size=queue_size)
        if args.list_pois:
            replay.list_pois()
            return 0

        fixes = load_trace(args.trace, min_confidence=args.min_confidence)
        return replay.run(args.destination, fixes)
    except (ConfigError, LoggingError, MapDataError, TraceError) as e:
        logger.error("%s", e)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
