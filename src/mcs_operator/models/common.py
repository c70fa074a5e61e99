"""
Common models shared across different resource types.

This module defines shared data structures used by multiple models,
such as namespaced object references and the cluster identity.
"""

from pydantic import BaseModel, Field


class ResourceRef(BaseModel):
    """Namespaced reference to a Kubernetes object or registry service."""

    model_config = {"frozen": True}

    namespace: str = Field(..., description="Namespace of the object")
    name: str = Field(..., description="Name of the object")

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class ClusterIdentity(BaseModel):
    """
    Identity of the local cluster within its cluster set.

    Resolved from ClusterProperty objects on every reconciliation and passed
    explicitly to every component that scopes registry state.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    cluster_id: str = Field(..., alias="clusterId", description="Cluster ID")
    cluster_set_id: str = Field(
        ..., alias="clusterSetId", description="Cluster set ID"
    )
