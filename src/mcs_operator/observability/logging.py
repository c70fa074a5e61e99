"""
Logging setup for the MCS operator.

Every reconciliation gets a short correlation ID that follows it through
the registry calls it makes, so one pass over a ServiceExport can be pulled
out of the interleaved log of a busy operator. Records are emitted as one
JSON object per line, carrying the registry fields (cluster id, endpoint
count, operation) as top-level keys.
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Scrape and liveness requests, dropped unless LOG_HEALTH_PROBES is set
HEALTH_PROBE_PATHS = frozenset({"/healthz", "/metrics"})

# Record attributes promoted to top-level JSON keys when present
STRUCTURED_FIELDS = (
    "resource_type",
    "resource_name",
    "namespace",
    "operation",
    "duration",
    "error_type",
    "cluster_id",
    "cluster_set_id",
    "endpoint_count",
    "finalizer",
    "http_status",
    "response_body",
)


class HealthProbeFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(path in message for path in HEALTH_PROBE_PATHS)


class CorrelationIDFilter(logging.Filter):
    """Stamp records with the correlation ID of the current task.

    A record logged outside any reconciliation starts a fresh ID for its
    context, so operator-level lines are still grouped.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        current = correlation_id.get() or set_correlation_id(
            generate_correlation_id()
        )
        record.correlation_id = current
        return True


class StructuredFormatter(logging.Formatter):
    """Render a record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", ""),
        }
        entry.update(
            (name, getattr(record, name))
            for name in STRUCTURED_FIELDS
            if hasattr(record, name)
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def generate_correlation_id() -> str:
    return uuid.uuid4().hex[:8]


def set_correlation_id(corr_id: str) -> str:
    correlation_id.set(corr_id)
    return corr_id


def get_correlation_id() -> str:
    return correlation_id.get()


def setup_structured_logging(
    log_level: str = "INFO",
    enable_json_formatting: bool = True,
    correlation_id_enabled: bool = True,
    log_health_probes: bool = False,
) -> None:
    """
    Replace the root handlers with a single stream handler.

    Args:
        log_level: Root level name; unknown names fall back to INFO
        enable_json_formatting: Emit JSON lines instead of plain text
        correlation_id_enabled: Attach the correlation ID to every record
        log_health_probes: Keep /healthz and /metrics request lines
    """
    if enable_json_formatting:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        prefix = "%(asctime)s %(levelname)s %(name)s"
        if correlation_id_enabled:
            prefix += " [%(correlation_id)s]"
        formatter = logging.Formatter(f"{prefix}: %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    if correlation_id_enabled:
        handler.addFilter(CorrelationIDFilter())
    if not log_health_probes:
        handler.addFilter(HealthProbeFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Client libraries are chatty at INFO
    for noisy in ("kopf", "httpx", "kubernetes", "aiohttp.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class OperatorLogger:
    """Logger wrapper with one method per lifecycle event of a reconciliation."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def log_reconciliation_start(
        self,
        resource_type: str,
        resource_name: str,
        namespace: str,
        correlation_id: str | None = None,
    ) -> str:
        """
        Open a reconciliation: bind a correlation ID to the current task and
        log it.

        Returns:
            The correlation ID now bound to the task
        """
        corr_id = set_correlation_id(correlation_id or generate_correlation_id())
        self.logger.info(
            f"Reconciling {resource_type} {namespace}/{resource_name}",
            extra={
                "resource_type": resource_type,
                "resource_name": resource_name,
                "namespace": namespace,
                "operation": "reconcile_start",
            },
        )
        return corr_id

    def log_reconciliation_success(
        self, resource_type: str, resource_name: str, namespace: str, duration: float
    ) -> None:
        self.logger.info(
            f"Reconciled {resource_type} {namespace}/{resource_name} "
            f"in {duration:.3f}s",
            extra={
                "resource_type": resource_type,
                "resource_name": resource_name,
                "namespace": namespace,
                "operation": "reconcile_success",
                "duration": duration,
            },
        )

    def log_reconciliation_error(
        self,
        resource_type: str,
        resource_name: str,
        namespace: str,
        error: Exception,
        duration: float,
    ) -> None:
        self.logger.error(
            f"Reconciling {resource_type} {namespace}/{resource_name} failed: {error}",
            extra={
                "resource_type": resource_type,
                "resource_name": resource_name,
                "namespace": namespace,
                "operation": "reconcile_error",
                "error_type": type(error).__name__,
                "duration": duration,
            },
            exc_info=True,
        )

    def log_registry_operation(
        self,
        operation: str,
        namespace: str,
        service_name: str,
        endpoint_count: int = 0,
        cluster_id: str | None = None,
    ) -> None:
        """Log a registry write such as create_service or delete_endpoints."""
        message = f"Registry {operation} for {namespace}/{service_name}"
        if endpoint_count:
            message += f" ({endpoint_count} endpoints)"

        self.logger.info(
            message,
            extra={
                "resource_name": service_name,
                "namespace": namespace,
                "operation": operation,
                "endpoint_count": endpoint_count,
                "cluster_id": cluster_id or "",
            },
        )

    def debug(self, message: str, **fields) -> None:
        self.logger.debug(message, extra=fields)

    def info(self, message: str, **fields) -> None:
        self.logger.info(message, extra=fields)
