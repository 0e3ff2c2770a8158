"""Logging setup for the navigation engine and its collaborators.

Loads a YAML logging configuration, places the combined log in a
platform-aware directory, and rotates it on every start.

Platform-specific log locations:
    - macOS: ~/Library/Logs/Wayfinder/wayfinder.log
    - Linux: ~/.wayfinder/logs/wayfinder.log
    - Windows: %AppData%/Wayfinder/Logs/wayfinder.log

Typical usage example:
    from wayfinder.core.logging_system import get_logger, initialize_logging

    initialize_logging("config/logging.yaml")
    log = get_logger("wayfinder.replay")
    log.info("Replaying %d fixes", count)
"""

import logging
import os
import platform
import time
from pathlib import Path
from typing import Any

import yaml

_logging_config: dict[str, Any] = {}
_loggers_cache: dict[str, logging.Logger] = {}
_initialized = False


class LoggingError(Exception):
    """Raised when logging system operations fail."""


def get_platform_log_dir() -> Path:
    """Get platform-specific log directory.

    Returns:
        Path to the platform-appropriate log directory.

    Examples:
        >>> get_platform_log_dir()  # on Linux
        PosixPath('/home/user/.wayfinder/logs')
    """
    system = platform.system()

    if system == "Darwin":
        return Path.home() / "Library" / "Logs" / "Wayfinder"
    elif system == "Windows":
        appdata = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return appdata / "Wayfinder" / "Logs"
    else:
        return Path.home() / ".wayfinder" / "logs"


def rotate_logs(log_dir: Path, log_filename: str = "wayfinder.log", keep_count: int = 5) -> None:
    """Rotate logs on startup, keeping the last N runs.

    wayfinder.log becomes wayfinder.log.1, older logs shift up by one and
    anything beyond ``keep_count`` is deleted.

    Args:
        log_dir: Directory containing log files.
        log_filename: Base name of the log file.
        keep_count: Number of old logs to keep.
    """
    log_file = log_dir / log_filename

    if not log_file.exists():
        return

    oldest_log = log_dir / f"{log_filename}.{keep_count}"
    if oldest_log.exists():
        oldest_log.unlink()

    for i in range(keep_count - 1, 0, -1):
        old_log = log_dir / f"{log_filename}.{i}"
        if old_log.exists():
            old_log.rename(log_dir / f"{log_filename}.{i + 1}")

    log_file.rename(log_dir / f"{log_filename}.1")


def initialize_logging(config_path: str | Path | None = None, use_platform_dir: bool = True) -> None:
    """Initialize the logging system from YAML configuration.

    Call once at startup, before the engine is constructed.

    Args:
        config_path: Path to logging configuration YAML file.
            If None, uses the default configuration.
        use_platform_dir: If True, write logs to the platform log directory
            instead of the ``log_dir`` from the config.

    Raises:
        LoggingError: If the configuration cannot be read.
    """
    global _logging_config, _initialized

    if config_path:
        config_path = Path(config_path)
        if not config_path.exists():
            raise LoggingError(f"Logging config file not found: {config_path}")

        try:
            with config_path.open("r", encoding="utf-8") as f:
                _logging_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise LoggingError(f"Failed to load logging config: {e}") from e
    else:
        _logging_config = _get_default_config()

    if use_platform_dir:
        _logging_config["log_dir"] = str(get_platform_log_dir())

    log_dir = Path(_logging_config.get("log_dir", "logs"))
    file_config = _logging_config.get("file", {})

    if file_config.get("enabled", True):
        log_dir.mkdir(parents=True, exist_ok=True)
        rotate_logs(
            log_dir,
            file_config.get("filename", "wayfinder.log"),
            file_config.get("backup_count", 5),
        )

    _configure_root_logger()
    _configure_components()
    _loggers_cache.clear()
    _initialized = True


def _get_default_config() -> dict[str, Any]:
    return {
        "level": "INFO",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        "date_format": "%Y-%m-%d %H:%M:%S",
        "log_dir": "logs",
        "file": {
            "enabled": True,
            "filename": "wayfinder.log",
            "backup_count": 5,
        },
        "console": {
            "enabled": True,
            "level": "INFO",
        },
        "components": {},
    }


def _configure_root_logger() -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # filtered per handler
    root_logger.handlers.clear()

    console_config = _logging_config.get("console", {})
    if console_config.get("enabled", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, console_config.get("level", "INFO")))
        console_handler.setFormatter(_get_formatter())
        root_logger.addHandler(console_handler)

    file_config = _logging_config.get("file", {})
    if file_config.get("enabled", True):
        log_dir = Path(_logging_config.get("log_dir", "logs"))
        file_handler = logging.FileHandler(
            log_dir / file_config.get("filename", "wayfinder.log"),
            mode="w",  # already rotated
            encoding="utf-8",
        )
        file_handler.setLevel(getattr(logging, _logging_config.get("level", "DEBUG")))
        file_handler.setFormatter(_get_formatter())
        root_logger.addHandler(file_handler)


def _configure_components() -> None:
    # modules use logging.getLogger directly, so levels are applied by name here
    for name, component_config in (_logging_config.get("components") or {}).items():
        component_logger = logging.getLogger(name)
        component_logger.disabled = not component_config.get("enabled", True)
        if "level" in component_config:
            component_logger.setLevel(getattr(logging, component_config["level"]))


class MillisecondFormatter(logging.Formatter):
    """Formatter that appends milliseconds with a dot separator.

    Pose fixes arrive every ~200 ms, so second resolution is not enough to
    read a navigation log.
    """

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        ct = self.converter(record.created)
        s = time.strftime(datefmt or "%Y-%m-%d %H:%M:%S", ct)
        return f"{s}.{int(record.msecs):03d}"


def _get_formatter() -> logging.Formatter:
    fmt = _logging_config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    datefmt = _logging_config.get("date_format", "%Y-%m-%d %H:%M:%S")
    return MillisecondFormatter(fmt, datefmt)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a component.

    Loggers are cached. A component can be given its own level (or disabled)
    under the ``components`` section of the logging config.

    Args:
        name: Logger name (usually a module ``__name__``).

    Returns:
        Configured logger instance.

    Examples:
        >>> log = get_logger("wayfinder.navigation.engine")
        >>> log.debug("Advanced to waypoint index %d", 3)
    """
    if not _initialized:
        initialize_logging()

    if name in _loggers_cache:
        return _loggers_cache[name]

    logger = logging.getLogger(name)
    component_config = _logging_config.get("components", {}).get(name, {})

    if component_config.get("enabled", True):
        if "level" in component_config:
            logger.setLevel(getattr(logging, component_config["level"]))
    else:
        logger.disabled = True

    _loggers_cache[name] = logger
    return logger


def shutdown_logging() -> None:
    """Flush and close all handlers."""
    global _initialized

    logging.shutdown()
    logging.getLogger().handlers.clear()
    _loggers_cache.clear()
    _initialized = False
