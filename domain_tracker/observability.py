from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlsplit

from fastapi import FastAPI

from .config import settings

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_METRICS_PATH = "/metrics"

_decision_counter: Optional[Any] = None


def _has_route(app: FastAPI, path: str) -> bool:
    return any(getattr(route, "path", None) == path for route in app.routes)


def _probe_host() -> str:
    return urlsplit(settings.probe_url).hostname or ""


def configure_structured_logging() -> bool:
    root = logging.getLogger()
    if getattr(root, "_domain_tracker_logging", False):
        return False

    handler = logging.StreamHandler()
    try:
        from pythonjsonlogger.json import JsonFormatter

        handler.setFormatter(
            JsonFormatter(
                _LOG_FORMAT,
                rename_fields={"levelname": "level", "name": "logger"},
                static_fields={
                    "service": settings.otel_service_name,
                    "environment": settings.environment,
                },
            )
        )
    except ImportError:
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))

    root.handlers = [handler]
    root.setLevel(settings.log_level)
    root._domain_tracker_logging = True
    return True


def _metrics_on() -> bool:
    return settings.enable_optional_observability and settings.metrics_enabled


def configure_metrics(app: FastAPI) -> bool:
    if not _metrics_on() or _has_route(app, _METRICS_PATH):
        return False

    try:
        from prometheus_fastapi_instrumentator import Instrumentator
    except ImportError:
        return False

    Instrumentator(excluded_handlers=["/health", "/ready", _METRICS_PATH]).instrument(
        app
    ).expose(app, endpoint=_METRICS_PATH, include_in_schema=False)
    return True


def record_probe_decision(decision: str) -> bool:
    """Count one probe outcome under ``domain_tracker_probe_decisions_total``."""
    global _decision_counter
    if not _metrics_on():
        return False
    if _decision_counter is None:
        try:
            from prometheus_client import Counter
        except ImportError:
            return False
        _decision_counter = Counter(
            "domain_tracker_probe_decisions_total",
            "Search-domain probe outcomes by decision",
            ["decision"],
        )
    _decision_counter.labels(decision=decision).inc()
    return True


def configure_tracing(app: FastAPI) -> bool:
    endpoint = settings.otel_exporter_otlp_endpoint
    if not settings.enable_optional_observability or not endpoint:
        return False
    if getattr(app.state, "otel_configured", False):
        return False

    try:
        from opentelemetry import trace
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
            OTLPSpanExporter,
        )
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError:
        return False

    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": settings.otel_service_name,
                "deployment.environment": settings.environment,
                "domain_tracker.probe_host": _probe_host(),
            }
        )
    )
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(
        app, tracer_provider=provider, excluded_urls="health,ready"
    )
    app.state.otel_configured = True
    return True


def configure_sentry() -> bool:
    if not settings.enable_optional_observability or not settings.sentry_dsn:
        return False

    try:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration
    except ImportError:
        return False

    if sentry_sdk.Hub.current.client is not None:
        return False

    # Probe failures are logged at INFO/WARNING; only errors become events.
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        integrations=[
            FastApiIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        send_default_pii=False,
    )
    sentry_sdk.set_tag("probe_host", _probe_host())
    return True


def configure_observability(app: FastAPI) -> dict[str, Any]:
    enabled = {
        "logging": configure_structured_logging(),
        "metrics": configure_metrics(app),
        "tracing": configure_tracing(app),
        "sentry": configure_sentry(),
    }
    logger.debug("observability configured", extra=enabled)
    return enabled
