# src/flexstore/tracing.py

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)


def configure_tracing(service_name: str = "flexstore", console: bool = True) -> None:
    """
    Configure OpenTelemetry tracing.

    Spans go to stdout through the console exporter when `console` is set.
    Calling this twice is a no-op.
    """
    if isinstance(trace.get_tracer_provider(), TracerProvider):
        return

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if console:
        # Synchronous export: a batch worker can outlive pytest's stdout capture
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
