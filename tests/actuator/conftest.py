"""Pytest fixtures for actuator tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from actuator.config import ActuatorConfig
from actuator.logging import ROOT_LOGGER_NAME, ActuatorLogger, LogLevel, LogRecord, get_logger


class RecordingHandler:
    """Handler keeping every record it receives."""

    def __init__(self) -> None:
        self.records: list[LogRecord] = []

    def handle(self, record: LogRecord) -> None:
        self.records.append(record)


def _capture(name: str) -> Iterator[RecordingHandler]:
    handler = RecordingHandler()
    logger = get_logger(name)
    previous_level = logger.level
    logger.level = LogLevel.DEBUG
    logger.add_handler(handler)
    try:
        yield handler
    finally:
        logger.remove_handler(handler)
        logger.level = previous_level


@pytest.fixture
def autoconfigure_logs() -> Iterator[RecordingHandler]:
    """Capture records logged by the autoconfigure logger at DEBUG level."""
    yield from _capture("actuator.autoconfigure")


@pytest.fixture
def health_logs() -> Iterator[RecordingHandler]:
    """Capture records logged by the health logger at DEBUG level."""
    yield from _capture("actuator.health")


@pytest.fixture
def root_logger() -> Iterator[ActuatorLogger]:
    """Give the root actuator logger back its level and handlers afterwards."""
    root = get_logger(ROOT_LOGGER_NAME)
    level, handlers = root.level, list(root.handlers)
    try:
        yield root
    finally:
        root.level = level
        root.handlers = handlers


@pytest.fixture
def strict_config() -> ActuatorConfig:
    """Create a configuration that forbids reflective indicator creation."""
    return ActuatorConfig(allow_reflective_factory=False)


@pytest.fixture
def hidden_details_config() -> ActuatorConfig:
    """Create a configuration that hides indicator details."""
    return ActuatorConfig(show_details=False)


@pytest.fixture
def recording_handler() -> RecordingHandler:
    """Create a handler that keeps the records it receives."""
    return RecordingHandler()
