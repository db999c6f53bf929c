"""Structured logging for the actuator package.

Loggers take a message plus keyword fields and hand each record to their
own handlers and to those of every dotted parent, up to the ``actuator``
root logger. Levels are inherited the same way: a logger without its own
level uses the nearest parent's.

Nothing is written until handlers are installed, normally through
``configure_logging``:

Example:
    >>> from actuator import ActuatorConfig, configure_logging, get_logger
    >>> configure_logging(ActuatorConfig(log_level="DEBUG"))
    >>> logger = get_logger("actuator.autoconfigure")
    >>> logger.debug("Creating single health indicator", bean_name="db")
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, TextIO, runtime_checkable


if TYPE_CHECKING:
    from actuator.config import ActuatorConfig


ROOT_LOGGER_NAME = "actuator"


class LogLevel(Enum):
    """Record severities, numbered like the standard library's levels."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @classmethod
    def from_string(cls, name: str) -> LogLevel:
        """Look a level up by name, case-insensitively.

        Raises:
            ValueError: If ``name`` is not a level name.
        """
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: {name!r}") from None


@dataclass(frozen=True, slots=True)
class LogRecord:
    """One logged event.

    Attributes:
        level: Severity.
        message: Fixed event text, e.g. "Creating single health indicator".
        logger_name: Dotted name of the logger that emitted it.
        fields: Keyword fields passed with the message.
        timestamp: Creation time (UTC).
    """

    level: LogLevel
    message: str
    logger_name: str
    fields: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def format(self) -> str:
        """Render as ``<time> [LEVEL] name: message | key=value ...``."""
        line = f"{self.timestamp.isoformat()} [{self.level.name}] {self.logger_name}: {self.message}"
        if self.fields:
            line += " | " + " ".join(f"{key}={value}" for key, value in self.fields.items())
        return line


@runtime_checkable
class LogHandler(Protocol):
    """Receives records that passed the logger's level."""

    def handle(self, record: LogRecord) -> None: ...


class StreamHandler:
    """Writes formatted records to a text stream, stderr by default."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def handle(self, record: LogRecord) -> None:
        stream = self._stream or sys.stderr
        stream.write(record.format() + "\n")


class ActuatorLogger:
    """Logger taking keyword fields, e.g. ``logger.warning(msg, contributor="db")``."""

    def __init__(
        self,
        name: str,
        parent: ActuatorLogger | None = None,
        level: LogLevel | None = None,
    ) -> None:
        self.name = name
        self.parent = parent
        self.level = level
        self.handlers: list[LogHandler] = []

    @property
    def effective_level(self) -> LogLevel:
        """This logger's level, else the nearest parent's, else INFO."""
        logger: ActuatorLogger | None = self
        while logger is not None:
            if logger.level is not None:
                return logger.level
            logger = logger.parent
        return LogLevel.INFO

    def add_handler(self, handler: LogHandler) -> None:
        if handler not in self.handlers:
            self.handlers.append(handler)

    def remove_handler(self, handler: LogHandler) -> None:
        if handler in self.handlers:
            self.handlers.remove(handler)

    def is_enabled_for(self, level: LogLevel) -> bool:
        return level.value >= self.effective_level.value

    def log(self, level: LogLevel, message: str, **fields: Any) -> None:
        if not self.is_enabled_for(level):
            return
        record = LogRecord(level=level, message=message, logger_name=self.name, fields=fields)
        logger: ActuatorLogger | None = self
        while logger is not None:
            for handler in logger.handlers:
                handler.handle(record)
            logger = logger.parent

    def debug(self, message: str, **fields: Any) -> None:
        self.log(LogLevel.DEBUG, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self.log(LogLevel.WARNING, message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self.log(LogLevel.ERROR, message, **fields)


_loggers: dict[str, ActuatorLogger] = {}


def get_logger(name: str) -> ActuatorLogger:
    """Return the logger for a dotted name, creating it and its parents.

    Names outside the ``actuator`` namespace are attached directly to the
    root logger.
    """
    if name in _loggers:
        return _loggers[name]
    if name == ROOT_LOGGER_NAME:
        parent = None
    elif name.startswith(ROOT_LOGGER_NAME + "."):
        parent = get_logger(name.rsplit(".", 1)[0])
    else:
        parent = get_logger(ROOT_LOGGER_NAME)
    logger = _loggers[name] = ActuatorLogger(name, parent)
    return logger


def configure_logging(
    config: ActuatorConfig | None = None,
    *,
    level: LogLevel | str | None = None,
    handlers: list[LogHandler] | None = None,
) -> ActuatorLogger:
    """Set the root level and handlers of the actuator loggers.

    Args:
        config: Configuration whose ``log_level`` is applied.
        level: Explicit level, taking precedence over ``config``.
        handlers: Root handlers. A stderr StreamHandler when omitted.

    Returns:
        The root ``actuator`` logger.
    """
    if level is None:
        level = config.log_level if config is not None else LogLevel.INFO
    if isinstance(level, str):
        level = LogLevel.from_string(level)
    root = get_logger(ROOT_LOGGER_NAME)
    root.level = level
    root.handlers = list(handlers) if handlers is not None else [StreamHandler()]
    return root
