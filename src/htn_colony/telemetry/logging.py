"""Runtime telemetry sinks and logging setup."""

from __future__ import annotations

import logging
from typing import Protocol


class Telemetry(Protocol):
    """Reports operational events, such as plans made and wood delivered."""

    def emit(self, event_name: str, payload: dict) -> None:
        """Publish telemetry event to the configured sink."""


class LoggingTelemetry:
    """Telemetry sink that forwards events to a standard logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("htn_colony.telemetry")

    def emit(self, event_name: str, payload: dict) -> None:
        self._logger.info(event_name, extra={"payload": payload})


class RecordingTelemetry:
    """Keeps emitted events in memory."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def emit(self, event_name: str, payload: dict) -> None:
        self.events.append((event_name, payload))


def configure_logging(level: str = "INFO") -> None:
    """Install a plain console handler on the ``htn_colony`` logger tree."""
    logger = logging.getLogger("htn_colony")
    logger.setLevel(level.upper())
    if not any(getattr(handler, "_htn_colony", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        handler._htn_colony = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
