"""Logging setup, OpenTelemetry tracing, and span helpers for service code."""

from workdesk.shared.telemetry.logging import setup_logging
from workdesk.shared.telemetry.telemetry import TelemetryConfig, get_telemetry, set_telemetry
from workdesk.shared.telemetry.tracing import (
    add_span_attributes,
    get_trace_id,
    set_span_error,
    traced,
)

__all__ = [
    "TelemetryConfig",
    "add_span_attributes",
    "get_telemetry",
    "get_trace_id",
    "set_span_error",
    "set_telemetry",
    "setup_logging",
    "traced",
]
