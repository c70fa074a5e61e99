"""
Observability utilities for the MCS operator.

This module provides metrics, tracing and structured logging
capabilities for production monitoring and troubleshooting.
"""

from .logging import OperatorLogger, setup_structured_logging
from .metrics import MetricsServer, get_metrics_registry

__all__ = [
    "MetricsServer",
    "get_metrics_registry",
    "OperatorLogger",
    "setup_structured_logging",
]
