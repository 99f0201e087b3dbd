"""Telemetry and logging sinks."""

from .logging import LoggingTelemetry, RecordingTelemetry, Telemetry, configure_logging

__all__ = ["LoggingTelemetry", "RecordingTelemetry", "Telemetry", "configure_logging"]
