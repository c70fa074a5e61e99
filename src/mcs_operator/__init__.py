"""
MCS Operator - Multi-cluster service export controller for Kubernetes.

This operator mirrors the endpoints backing locally exported services into a
shared, cross-cluster service registry:
- One ServiceExport maps to one registry (namespace, name) service
- Only endpoints owned by this cluster are ever registered or removed
- Finalizers gate ServiceExport deletion on registry-side cleanup
"""

__version__ = "0.1.0"
