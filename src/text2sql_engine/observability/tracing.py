"""
OpenTelemetry Tracing
=====================

One span per answered question and one per executed statement, both tagged
with the execution target. Without ``setup_tracing`` the global provider is
a no-op and spans cost nothing.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from text2sql_engine.config import get_settings
from text2sql_engine.models import ExecutionTarget
from text2sql_engine.observability.logging_config import get_logger

logger = get_logger(__name__)


def setup_tracing(
    service_name: str = "text2sql-engine",
    otlp_endpoint: str | None = None,
) -> TracerProvider:
    """
    Install a tracer provider for the process.

    Args:
        service_name: ``service.name`` resource attribute
        otlp_endpoint: gRPC collector address; ``"disabled"`` or empty keeps
            spans in-process (default: ``Settings.otlp_endpoint``)
    """
    settings = get_settings()
    endpoint = otlp_endpoint or settings.otlp_endpoint

    provider = TracerProvider(resource=Resource.create({
        SERVICE_NAME: service_name,
        SERVICE_VERSION: "0.1.0",
        "deployment.environment": settings.environment,
    }))
    if endpoint and endpoint != "disabled":
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
        )
        logger.info("OTLP span exporter configured", endpoint=endpoint)

    trace.set_tracer_provider(provider)
    return provider


def get_tracer(name: str = __name__) -> trace.Tracer:
    return trace.get_tracer(name)


@contextmanager
def target_span(
    tracer: trace.Tracer, name: str, target: ExecutionTarget
) -> Iterator[trace.Span]:
    """Span carrying the domain, dialect and target key."""
    with tracer.start_as_current_span(name) as span:
        span.set_attribute("text2sql.domain", target.domain.value)
        span.set_attribute("text2sql.dialect", target.dialect.value)
        span.set_attribute("text2sql.target", target.key)
        yield span
