"""
Prometheus metrics for the MCS operator.

Metrics live in a dedicated CollectorRegistry rather than the process-wide
default, so /metrics exposes only what the operator itself records. The
same aiohttp server answers the liveness probe on /healthz.
"""

import contextlib
import logging
import time
from contextlib import asynccontextmanager

# aiohttp is also kopf's own HTTP stack.
from aiohttp.web import Application, AppRunner, Request, Response, TCPSite
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

_metrics_registry: CollectorRegistry | None = None

RECONCILIATION_TOTAL = Counter(
    "mcs_operator_reconciliation_total",
    "Reconciliation passes by outcome",
    ["resource_type", "namespace", "name", "result"],
    registry=None,
)

RECONCILIATION_DURATION = Histogram(
    "mcs_operator_reconciliation_duration_seconds",
    "Wall time of a reconciliation pass, registry round-trips included",
    ["resource_type", "namespace", "operation"],
    buckets=[0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=None,
)

RECONCILIATION_ERRORS = Counter(
    "mcs_operator_reconciliation_errors_total",
    "Failed reconciliation passes by error class",
    ["resource_type", "namespace", "error_type", "retryable"],
    registry=None,
)

REGISTRY_OPERATIONS = Counter(
    "mcs_operator_registry_operations_total",
    "Calls made to the cluster-set service registry",
    ["operation", "result"],
    registry=None,
)

EXPORTED_ENDPOINTS = Gauge(
    "mcs_operator_exported_endpoints",
    "Endpoints of this cluster registered for an exported service",
    ["namespace", "name"],
    registry=None,
)

FINALIZER_TRANSITIONS = Counter(
    "mcs_operator_finalizer_transitions_total",
    "ServiceExport finalizer writes",
    ["namespace", "transition"],
    registry=None,
)


def get_metrics_registry() -> CollectorRegistry:
    """Return the operator's registry, registering the metrics on first use."""
    global _metrics_registry

    if _metrics_registry is None:
        registry = CollectorRegistry()
        for metric in (
            RECONCILIATION_TOTAL,
            RECONCILIATION_DURATION,
            RECONCILIATION_ERRORS,
            REGISTRY_OPERATIONS,
            EXPORTED_ENDPOINTS,
            FINALIZER_TRANSITIONS,
        ):
            registry.register(metric)
        _metrics_registry = registry

    return _metrics_registry


class MetricsCollector:
    def __init__(self):
        self.registry = get_metrics_registry()

    @asynccontextmanager
    async def track_reconciliation(
        self,
        resource_type: str,
        namespace: str,
        name: str,
        operation: str = "reconcile",
    ):
        """
        Count and time the wrapped reconciliation pass.

        Errors are counted by class and retryability, then re-raised.
        """
        started = time.monotonic()
        result = "cancelled"
        try:
            yield
            result = "success"
        except Exception as e:
            result = "error"
            RECONCILIATION_ERRORS.labels(
                resource_type=resource_type,
                namespace=namespace,
                error_type=type(e).__name__,
                retryable=str(bool(getattr(e, "retryable", False))).lower(),
            ).inc()
            raise
        finally:
            RECONCILIATION_TOTAL.labels(
                resource_type=resource_type,
                namespace=namespace,
                name=name,
                result=result,
            ).inc()
            RECONCILIATION_DURATION.labels(
                resource_type=resource_type, namespace=namespace, operation=operation
            ).observe(time.monotonic() - started)

    def record_registry_operation(self, operation: str, success: bool) -> None:
        REGISTRY_OPERATIONS.labels(
            operation=operation, result="success" if success else "failure"
        ).inc()

    def update_exported_endpoints(self, namespace: str, name: str, count: int) -> None:
        EXPORTED_ENDPOINTS.labels(namespace=namespace, name=name).set(count)

    def clear_exported_endpoints(self, namespace: str, name: str) -> None:
        """Drop the gauge series of a service that is no longer exported."""
        with contextlib.suppress(KeyError):
            EXPORTED_ENDPOINTS.remove(namespace, name)

    def record_finalizer_transition(self, namespace: str, transition: str) -> None:
        FINALIZER_TRANSITIONS.labels(namespace=namespace, transition=transition).inc()


class MetricsServer:
    """Serves /metrics and /healthz on a port separate from kopf's own probe."""

    def __init__(self, port: int = 8081, host: str = "0.0.0.0"):
        self.port = port
        self.host = host
        self.app = Application()
        self.app.router.add_get("/metrics", self._metrics_handler)
        self.app.router.add_get("/healthz", self._healthz_handler)
        self.runner: AppRunner | None = None
        self.site: TCPSite | None = None

    async def _metrics_handler(self, request: Request) -> Response:
        try:
            body = generate_latest(get_metrics_registry())
        except Exception as e:
            logger.error(f"Rendering metrics failed: {e}")
            return Response(text=f"metrics unavailable: {type(e).__name__}", status=500)
        return Response(body=body, headers={"Content-Type": CONTENT_TYPE_LATEST})

    async def _healthz_handler(self, request: Request) -> Response:
        return Response(text="ok")

    async def start(self) -> None:
        self.runner = AppRunner(self.app)
        await self.runner.setup()
        self.site = TCPSite(self.runner, self.host, self.port)
        await self.site.start()
        logger.info(f"Serving metrics on {self.host}:{self.port}")

    async def stop(self) -> None:
        if self.site is not None:
            await self.site.stop()
            self.site = None
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None
        logger.info("Metrics server stopped")


metrics_collector = MetricsCollector()
