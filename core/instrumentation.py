"""
OpenTelemetry instrumentation setup.

This module configures OpenTelemetry for distributed tracing and
optionally exposes Prometheus metrics on a dedicated port.
"""

import logging
import os

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.django import DjangoInstrumentor
from opentelemetry.instrumentation.psycopg2 import Psycopg2Instrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Status, StatusCode  # noqa: F401
from prometheus_client import start_http_server

logger = logging.getLogger(__name__)


def tracing_enabled() -> bool:
    """Tracing is exported only when an OTLP endpoint is configured."""
    return bool(os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT"))


def setup_opentelemetry():
    """
    Configure OpenTelemetry instrumentation.

    Sets up:
    - Distributed tracing (exported via OTLP)
    - Auto-instrumentation for Django, PostgreSQL, Redis
    - Prometheus metrics server, when PROMETHEUS_PORT is set
    """
    service_name = os.environ.get("OTEL_SERVICE_NAME", "clinic-license-service")
    service_version = os.environ.get("OTEL_SERVICE_VERSION", "1.0.0")
    environment = os.environ.get("ENVIRONMENT", "development")

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.version": service_version,
            "deployment.environment": environment,
        }
    )

    trace_provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(trace_provider)

    otlp_exporter = OTLPSpanExporter(
        endpoint=os.environ["OTEL_EXPORTER_OTLP_ENDPOINT"],
        insecure=os.environ.get("OTEL_EXPORTER_OTLP_INSECURE", "true").lower() == "true",
    )
    trace_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    DjangoInstrumentor().instrument()
    Psycopg2Instrumentor().instrument()
    RedisInstrumentor().instrument()

    prometheus_port = os.environ.get("PROMETHEUS_PORT")
    if prometheus_port:
        try:
            start_http_server(int(prometheus_port), addr="0.0.0.0")
            logger.info("Prometheus metrics server started on 0.0.0.0:%s", prometheus_port)
        except OSError as e:
            logger.warning("Could not start Prometheus metrics server: %s", e)

    logger.info("OpenTelemetry instrumentation configured")


def get_tracer(name: str) -> trace.Tracer:
    """
    Get a tracer instance for manual instrumentation.

    Without a configured provider the API returns a no-op tracer.

    Args:
        name: Tracer name (usually module name)

    Returns:
        Tracer instance
    """
    return trace.get_tracer(name)
