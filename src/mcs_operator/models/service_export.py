"""
Pydantic model for ServiceExport resources.

A ServiceExport is a desired-state marker: its presence asks for the
same-named Service to be published to the cluster set. Only the metadata
matters to reconciliation; the raw object is kept for write-back.
"""

from copy import deepcopy
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr

from .common import ResourceRef


class ServiceExport(BaseModel):
    """View of a ServiceExport object's metadata."""

    model_config = {"populate_by_name": True}

    namespace: str = Field(..., description="Namespace of the ServiceExport")
    name: str = Field(..., description="Name of the ServiceExport and its Service")
    finalizers: list[str] = Field(default_factory=list, description="Finalizers")
    creation_timestamp: datetime | None = Field(None, alias="creationTimestamp")
    deletion_timestamp: datetime | None = Field(None, alias="deletionTimestamp")
    resource_version: str | None = Field(None, alias="resourceVersion")

    _raw: dict[str, Any] = PrivateAttr(default_factory=dict)

    @classmethod
    def from_k8s(cls, obj: dict[str, Any]) -> "ServiceExport":
        """Build from a Kubernetes object dict."""
        metadata = obj.get("metadata") or {}
        export = cls(
            namespace=metadata.get("namespace", ""),
            name=metadata.get("name", ""),
            finalizers=list(metadata.get("finalizers") or []),
            creationTimestamp=metadata.get("creationTimestamp"),
            deletionTimestamp=metadata.get("deletionTimestamp"),
            resourceVersion=metadata.get("resourceVersion"),
        )
        export._raw = deepcopy(obj)
        return export

    @property
    def ref(self) -> ResourceRef:
        return ResourceRef(namespace=self.namespace, name=self.name)

    @property
    def is_deleting(self) -> bool:
        return self.deletion_timestamp is not None

    def has_finalizer(self, finalizer: str) -> bool:
        return finalizer in self.finalizers

    def with_finalizers(self, finalizers: list[str]) -> dict[str, Any]:
        """Return the raw object with its finalizer list replaced."""
        obj = deepcopy(self._raw)
        metadata = obj.setdefault("metadata", {})
        metadata.setdefault("namespace", self.namespace)
        metadata.setdefault("name", self.name)
        metadata["finalizers"] = list(finalizers)
        return obj
