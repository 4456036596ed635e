"""OpenTelemetry tracing for the analysis service."""

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

SERVICE_NAME = "conflict-engine"
SERVICE_VERSION = "1.0.0"


def service_resource(environment: str) -> Resource:
    """Resource attributes shared by exported spans and log records."""
    return Resource.create(
        {
            "service.name": SERVICE_NAME,
            "service.version": SERVICE_VERSION,
            "deployment.environment": environment,
        }
    )


def setup_tracing(otlp_endpoint: str, environment: str = "development") -> TracerProvider:
    provider = TracerProvider(resource=service_resource(environment))
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
    )
    trace.set_tracer_provider(provider)
    return provider
