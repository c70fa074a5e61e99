"""
Models package - Pydantic models for type-safe resource handling.

Defines data models for:
- Cluster identity and namespaced references
- Endpoints and identity-deduplicated endpoint sets
- ServiceExport metadata
- Registry service records
"""

from .common import ClusterIdentity, ResourceRef
from .endpoint import Endpoint, EndpointPort, EndpointSet
from .registry import RegistryService
from .service_export import ServiceExport

__all__ = [
    "ClusterIdentity",
    "ResourceRef",
    "Endpoint",
    "EndpointPort",
    "EndpointSet",
    "RegistryService",
    "ServiceExport",
]
