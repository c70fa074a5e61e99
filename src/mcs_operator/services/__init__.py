"""
Service layer for the MCS operator.

This module provides the reconciliation logic that publishes exported
services to the cluster-set registry, separated from the kopf handler layer.
"""

from .base_reconciler import BaseReconciler, ReconcileResult
from .cluster_identity import ClusterIdentityResolver
from .endpoint_collector import EndpointCollector
from .endpoint_diff import EndpointDiff, apply_diff, diff_endpoints
from .finalizer import FinalizerManager
from .registry_sync import RegistrySynchronizer
from .service_export_reconciler import ServiceExportReconciler

__all__ = [
    "BaseReconciler",
    "ReconcileResult",
    "ClusterIdentityResolver",
    "EndpointCollector",
    "EndpointDiff",
    "apply_diff",
    "diff_endpoints",
    "FinalizerManager",
    "RegistrySynchronizer",
    "ServiceExportReconciler",
]
