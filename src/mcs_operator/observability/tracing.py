"""
OpenTelemetry tracing for the MCS operator.

Spans are exported over OTLP/gRPC when TRACING_ENABLED is set. Registry
requests are traced through the httpx instrumentation, so a reconcile span
shows every registry call it made as a child. With tracing disabled the
global no-op provider stays in place and the span helpers cost nothing.
"""

import contextlib
import functools
import inspect
import logging
from collections.abc import Callable
from typing import ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.trace import SpanKind, Status, StatusCode, Tracer

logger = logging.getLogger(__name__)

_tracer_provider: TracerProvider | None = None
_initialized: bool = False

P = ParamSpec("P")
R = TypeVar("R")


def setup_tracing(
    enabled: bool = False,
    endpoint: str = "http://localhost:4317",
    service_name: str = "mcs-operator",
    sample_rate: float = 1.0,
    insecure: bool = True,
) -> TracerProvider | None:
    """
    Install the OTLP tracer provider once per process.

    Args:
        enabled: When False only marks tracing as configured
        endpoint: OTLP gRPC collector address
        service_name: Value of the service.name resource attribute
        sample_rate: Fraction of root spans kept; child spans follow their parent
        insecure: Talk to the collector without TLS

    Returns:
        The installed provider, or None when tracing is disabled
    """
    global _tracer_provider, _initialized

    if _initialized:
        return _tracer_provider
    _initialized = True

    if not enabled:
        logger.info("Tracing disabled")
        return None

    provider = TracerProvider(
        resource=Resource.create({"service.name": service_name}),
        sampler=ParentBased(root=TraceIdRatioBased(sample_rate)),
    )
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=insecure))
    )
    trace.set_tracer_provider(provider)
    HTTPXClientInstrumentor().instrument()

    _tracer_provider = provider
    logger.info(
        f"Tracing to {endpoint} as {service_name} (sample rate {sample_rate})"
    )
    return provider


def shutdown_tracing() -> None:
    """Flush pending spans and allow setup_tracing to run again."""
    global _tracer_provider, _initialized

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        _tracer_provider = None
        # Only instrumented when a provider was installed
        with contextlib.suppress(Exception):
            HTTPXClientInstrumentor().uninstrument()

    _initialized = False


def get_tracer(name: str = __name__) -> Tracer:
    return trace.get_tracer(name)


def traced_handler(
    operation_name: str,
    resource_type: str = "serviceexport",
    span_kind: SpanKind = SpanKind.INTERNAL,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Run an async kopf handler inside a span named operation_name.

    The span is tagged with the name and namespace kopf passes to the
    handler. A raised exception marks the span as failed and propagates.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"traced_handler requires an async function: {func!r}")

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            attributes = {
                "k8s.namespace": kwargs.get("namespace") or "",
                "k8s.resource.name": kwargs.get("name") or "",
                "k8s.resource.type": resource_type,
                "kopf.handler": func.__name__,
            }
            with get_tracer(func.__module__).start_as_current_span(
                operation_name, kind=span_kind, attributes=attributes
            ) as span:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise

        return wrapper

    return decorator
