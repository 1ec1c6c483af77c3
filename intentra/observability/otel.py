"""Optional OpenTelemetry wiring for hook invocations."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from intentra import config

logger = logging.getLogger("intentra.observability")


_initialized = False
_enabled = False
_tracer: Any | None = None
_trace_provider: Any | None = None
_meter_provider: Any | None = None

_scans_counter: Any | None = None
_scan_events_hist: Any | None = None
_tokens_counter: Any | None = None
_cost_counter: Any | None = None
_delivery_counter: Any | None = None
_delivery_latency_hist: Any | None = None


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def initialize() -> None:
    global _initialized, _enabled, _tracer, _trace_provider, _meter_provider
    global _scans_counter, _scan_events_hist, _tokens_counter, _cost_counter
    global _delivery_counter, _delivery_latency_hist

    if _initialized:
        return
    _initialized = True

    if not config.OTEL_ENABLED:
        logger.debug("OpenTelemetry disabled (INTENTRA_OTEL_ENABLED=false)")
        return

    try:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        logger.warning("OpenTelemetry dependencies unavailable: %s", exc)
        return

    traces_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces")
    metrics_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    service_name = config.OTEL_SERVICE_NAME or "intentra-hooks"

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "intentra",
        }
    )

    trace_provider = TracerProvider(resource=resource)
    trace_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=traces_endpoint or None)))
    trace.set_tracer_provider(trace_provider)
    tracer = trace.get_tracer("intentra.hooks")

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=metrics_endpoint or None)
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("intentra.hooks")

    _scans_counter = meter.create_counter(
        "intentra_scans_total",
        unit="1",
        description="Scans built from terminated sessions",
    )
    _scan_events_hist = meter.create_histogram(
        "intentra_scan_events",
        unit="1",
        description="Retained events per scan",
    )
    _tokens_counter = meter.create_counter(
        "intentra_tokens_total",
        unit="1",
        description="Token totals by tool and model",
    )
    _cost_counter = meter.create_counter(
        "intentra_cost_usd_total",
        unit="usd",
        description="Estimated cost totals by tool and model",
    )
    _delivery_counter = meter.create_counter(
        "intentra_deliveries_total",
        unit="1",
        description="Scan and session-end delivery outcomes",
    )
    _delivery_latency_hist = meter.create_histogram(
        "intentra_delivery_latency_ms",
        unit="ms",
        description="Latency of delivery requests",
    )

    _trace_provider = trace_provider
    _meter_provider = meter_provider
    _tracer = tracer
    _enabled = True

    logger.debug(
        "OpenTelemetry initialized (service=%s endpoint=%s)",
        service_name,
        config.OTEL_ENDPOINT,
    )


def shutdown() -> None:
    """Flush exporters; hook processes exit right after the pipeline runs."""
    global _enabled
    if not _initialized:
        return
    for provider in (_meter_provider, _trace_provider):
        if provider is None:
            continue
        try:
            provider.shutdown()
        except Exception as exc:  # noqa: BLE001
            logger.debug("OpenTelemetry shutdown failed: %s", exc)
    _enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span


def record_scan(*, tool: str, model: str, event_count: int, total_tokens: int, cost_usd: float) -> None:
    labels = {
        "tool": tool or "unknown",
        "model": (model or "unknown").strip() or "unknown",
    }
    if _enabled and _scans_counter is not None:
        _scans_counter.add(1, labels)
    if _enabled and _scan_events_hist is not None:
        _scan_events_hist.record(max(0, int(event_count)), labels)
    if _enabled and _tokens_counter is not None and total_tokens > 0:
        _tokens_counter.add(int(total_tokens), labels)
    if _enabled and _cost_counter is not None and cost_usd > 0:
        _cost_counter.add(float(cost_usd), labels)


def record_delivery(kind: str, path: str, result: str, duration_ms: float = 0.0) -> None:
    labels = {
        "kind": kind or "unknown",
        "path": path or "unknown",
        "result": result or "unknown",
    }
    if _enabled and _delivery_counter is not None:
        _delivery_counter.add(1, labels)
    if _enabled and _delivery_latency_hist is not None and duration_ms > 0:
        _delivery_latency_hist.record(float(duration_ms), labels)
