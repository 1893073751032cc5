"""
OpenTelemetry tracing for the CraveBites API

Spans are opened in the services with ``trace.get_tracer(__name__)``. Until
``setup_opentelemetry`` installs a real provider those spans are no-ops, which
is what the test suite runs with.
"""
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, DEPLOYMENT_ENVIRONMENT
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from typing import Optional
import logging

from cravebites.common_config import CommonSettings

logger = logging.getLogger(__name__)


def setup_opentelemetry(settings: CommonSettings) -> Optional[TracerProvider]:
    """Install the OTLP exporter as the global tracer provider.

    Returns the provider so the caller can flush it on shutdown, or None
    when tracing is disabled.
    """
    if not settings.otel_enabled:
        logger.info("OpenTelemetry disabled")
        return None

    service_name = settings.otel_service_name or settings.service_name
    provider = TracerProvider(resource=Resource(attributes={
        SERVICE_NAME: service_name,
        DEPLOYMENT_ENVIRONMENT: settings.environment,
    }))
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otel_endpoint, insecure=True))
    )
    trace.set_tracer_provider(provider)

    # Uploads to the media host go through httpx
    HTTPXClientInstrumentor().instrument()

    logger.info(f"OpenTelemetry initialized for {service_name}, exporting to {settings.otel_endpoint}")
    return provider


def instrument_fastapi(app):
    FastAPIInstrumentor.instrument_app(app, excluded_urls="health,ready")
    logger.info("FastAPI instrumented with OpenTelemetry")


def instrument_sqlalchemy(engine):
    SQLAlchemyInstrumentor().instrument(engine=engine)
    logger.info("SQLAlchemy instrumented with OpenTelemetry")
