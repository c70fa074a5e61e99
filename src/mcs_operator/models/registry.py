"""
Pydantic models for records held by the multi-cluster service registry.
"""

from typing import Any

from pydantic import BaseModel, Field

from .common import ResourceRef
from .endpoint import Endpoint, EndpointSet


class RegistryService(BaseModel):
    """
    A registry service keyed by (namespace, name).

    Holds the endpoints of every cluster in the set; callers scope them to
    their own cluster before diffing or deleting.
    """

    namespace: str = Field(..., description="Registry namespace")
    name: str = Field(..., description="Service name")
    endpoints: list[Endpoint] = Field(
        default_factory=list, description="Endpoints of all clusters"
    )

    @property
    def ref(self) -> ResourceRef:
        return ResourceRef(namespace=self.namespace, name=self.name)

    def endpoints_for_cluster(self, cluster_id: str) -> EndpointSet:
        """Endpoints owned by ``cluster_id``, deduplicated by identity."""
        # Scope before deduplicating: identity is only unique per cluster
        return EndpointSet(e for e in self.endpoints if e.cluster_id == cluster_id)

    @classmethod
    def from_registry(cls, data: dict[str, Any]) -> "RegistryService":
        ref = ResourceRef(namespace=data["namespace"], name=data["name"])
        return cls(
            namespace=ref.namespace,
            name=ref.name,
            endpoints=[
                Endpoint.from_registry(item, ref)
                for item in data.get("endpoints") or []
            ],
        )
