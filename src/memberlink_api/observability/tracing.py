"""OpenTelemetry wiring: one tracer provider per process, FastAPI spans, log correlation."""

from __future__ import annotations

from typing import Dict

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.semconv.resource import ResourceAttributes

from memberlink_api.core.settings import Settings

_PROVIDER: TracerProvider | None = None


def parse_otlp_headers(raw: str | None) -> Dict[str, str] | None:
    """``key=value,key2=value2`` as used by ``OTEL_EXPORTER_OTLP_HEADERS``."""

    if not raw:
        return None
    headers: Dict[str, str] = {}
    for pair in raw.split(","):
        key, sep, value = pair.partition("=")
        if sep and key.strip():
            headers[key.strip()] = value.strip()
    return headers or None


def _build_exporter(settings: Settings) -> SpanExporter | None:
    if settings.otel_exporter_otlp_endpoint:
        return OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            headers=parse_otlp_headers(settings.otel_exporter_otlp_headers),
        )
    if settings.tracing_console_export:
        return ConsoleSpanExporter()
    # Spans still get ids for log correlation, they are just not exported.
    return None


def configure_tracing(app: FastAPI, *, settings: Settings, service_name: str, service_version: str) -> TracerProvider:
    """Install the process tracer provider once and instrument ``app`` with it."""

    global _PROVIDER

    if _PROVIDER is None:
        provider = TracerProvider(
            resource=Resource.create(
                {
                    ResourceAttributes.SERVICE_NAME: service_name,
                    ResourceAttributes.SERVICE_VERSION: service_version,
                    ResourceAttributes.DEPLOYMENT_ENVIRONMENT: settings.environment,
                }
            )
        )
        exporter = _build_exporter(settings)
        if exporter is not None:
            provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(provider)
        LoggingInstrumentor().instrument(set_logging_format=False)
        _PROVIDER = provider

    FastAPIInstrumentor.instrument_app(app, tracer_provider=_PROVIDER)
    return _PROVIDER


__all__ = ["configure_tracing", "parse_otlp_headers"]
