#!/usr/bin/env python3
"""
MCS Operator - Main entry point for the Kopf-based multi-cluster services operator.

This operator publishes Services marked by a ServiceExport to a shared
cluster-set service registry:
- Ready EndpointSlice addresses are registered under this cluster's id
- Stale endpoints of this cluster are removed from the registry
- Deleting a ServiceExport removes all of this cluster's endpoints

Usage:
    python -m mcs_operator.operator
    # Or with kopf directly:
    kopf run -m mcs_operator.operator --all-namespaces

Environment Variables:
    MCS_OPERATOR_NAMESPACES: Comma-separated list of namespaces to watch
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
    REGISTRY_URL: Base URL of the cluster-set service registry
"""

import logging
import sys

import kopf

# Import all handler modules to register them with kopf
from mcs_operator.handlers import service_export  # noqa: F401
from mcs_operator.observability.logging import setup_structured_logging
from mcs_operator.observability.metrics import MetricsServer
from mcs_operator.observability.tracing import setup_tracing, shutdown_tracing
from mcs_operator.settings import settings as operator_settings
from mcs_operator.utils.kubernetes import KubernetesClusterAPI
from mcs_operator.utils.registry import HttpRegistryClient

# Global reference to metrics server for cleanup
_global_metrics_server: MetricsServer | None = None


def configure_logging() -> None:
    """Configure structured logging for the operator based on operator_settings."""
    setup_structured_logging(
        log_level=operator_settings.log_level.upper(),
        enable_json_formatting=operator_settings.json_logs,
        correlation_id_enabled=operator_settings.correlation_ids,
        log_health_probes=operator_settings.log_health_probes,
    )


def get_watched_namespaces() -> list[str] | None:
    """
    Get the list of namespaces to watch from operator_settings.

    Returns:
        List of namespace names, or None to watch all namespaces
    """
    return operator_settings.watched_namespaces


@kopf.on.startup()
async def startup_handler(memo: kopf.Memo, **_) -> None:
    """
    Operator startup configuration.

    Starts tracing and the metrics server, and stores the shared Cluster API
    and registry clients in the memo for the handlers. Building the Cluster
    API loads the in-cluster or local Kubernetes configuration.
    """
    logging.info("Starting MCS Operator...")

    watched_namespaces = get_watched_namespaces()
    if watched_namespaces:
        logging.info(f"Watching namespaces: {', '.join(watched_namespaces)}")
    else:
        logging.info("Watching all namespaces (cluster-wide mode)")

    setup_tracing(
        enabled=operator_settings.tracing_enabled,
        endpoint=operator_settings.tracing_endpoint,
        service_name=operator_settings.operator_name,
        sample_rate=operator_settings.tracing_sample_rate,
    )

    # Start metrics server for Prometheus scraping and health checks
    try:
        metrics_server = MetricsServer(
            port=operator_settings.metrics_port, host=operator_settings.metrics_host
        )
        await metrics_server.start()

        global _global_metrics_server
        _global_metrics_server = metrics_server

    except Exception as e:
        logging.error(f"Failed to start metrics server: {e}")
        # Don't fail operator startup if metrics server fails
        logging.warning("Continuing without metrics server")

    memo.cluster_api = KubernetesClusterAPI()
    memo.registry_client = HttpRegistryClient(
        base_url=operator_settings.registry_url,
        token=operator_settings.registry_token or None,
        verify_ssl=operator_settings.registry_verify_ssl,
        timeout=operator_settings.registry_timeout_seconds,
    )
    logging.info(f"Registry client configured for {operator_settings.registry_url}")


@kopf.on.cleanup()
async def cleanup_handler(memo: kopf.Memo, **_) -> None:
    """
    Operator cleanup handler.

    Stops the metrics server, closes the registry client and flushes
    pending spans.
    """
    logging.info("Shutting down MCS Operator...")

    global _global_metrics_server
    if _global_metrics_server:
        try:
            await _global_metrics_server.stop()
        except Exception as e:
            logging.error(f"Error stopping metrics server: {e}")
        _global_metrics_server = None

    registry_client = getattr(memo, "registry_client", None)
    if registry_client is not None:
        await registry_client.close()

    shutdown_tracing()


def main() -> None:
    """
    Main entry point for the operator.

    Configures logging, determines the namespace scope and runs kopf.
    """
    configure_logging()

    watched_namespaces = get_watched_namespaces()

    try:
        if watched_namespaces:
            kopf.run(
                namespaces=watched_namespaces,
                liveness_endpoint="http://0.0.0.0:8080/healthz",
            )
        else:
            kopf.run(
                clusterwide=True,
                liveness_endpoint="http://0.0.0.0:8080/healthz",
            )
    except KeyboardInterrupt:
        logging.info("Received shutdown signal")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Operator failed with error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
