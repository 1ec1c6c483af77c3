"""Observability helpers."""

from intentra.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_scan,
    record_delivery,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_scan",
    "record_delivery",
]
