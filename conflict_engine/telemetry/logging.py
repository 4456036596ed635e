"""Structured JSON logging with optional OTLP export and trace context."""

import logging
import sys

from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor

from conflict_engine.telemetry.tracing import SERVICE_NAME, service_resource

_JSON_FORMAT = (
    '{"timestamp":"%(asctime)s","level":"%(levelname)s",'
    '"logger":"%(name)s","message":"%(message)s",'
    '"trace_id":"%(otelTraceID)s","span_id":"%(otelSpanID)s",'
    '"service":"%(otelServiceName)s"}'
)

_OTEL_DEFAULTS = {
    "otelTraceID": "0",
    "otelSpanID": "0",
    "otelServiceName": SERVICE_NAME,
}


class SafeOtelFormatter(logging.Formatter):
    """Formatter that injects OTEL fields with safe defaults for non-instrumented loggers."""

    def format(self, record: logging.LogRecord) -> str:
        for key, default in _OTEL_DEFAULTS.items():
            if not hasattr(record, key):
                setattr(record, key, default)
        return super().format(record)


def setup_logging(
    otlp_endpoint: str = "",
    level: str = "INFO",
    environment: str = "development",
) -> logging.Logger:
    """Configure the ``engine`` logger tree; OTLP export only when an endpoint is set."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(SafeOtelFormatter(_JSON_FORMAT))

    logger = logging.getLogger("engine")
    logger.setLevel(log_level)
    logger.handlers = [stream_handler]

    if otlp_endpoint:
        log_provider = LoggerProvider(resource=service_resource(environment))
        otlp_exporter = OTLPLogExporter(endpoint=otlp_endpoint, insecure=True)
        log_provider.add_log_record_processor(BatchLogRecordProcessor(otlp_exporter))
        logger.addHandler(LoggingHandler(level=log_level, logger_provider=log_provider))

    return logger
