"""
Pydantic models for service endpoints and endpoint sets.

An endpoint is identified by its (ip, port) pair within the scope of one
service and one cluster. Everything else it carries is an attribute stored
in the registry for consumers in other clusters.
"""

from collections.abc import Iterable, Iterator
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from mcs_operator.constants import DEFAULT_PROTOCOL, SERVICE_TYPE_CLUSTERSET_IP

from .common import ResourceRef

EndpointKey = tuple[str, int]


class EndpointPort(BaseModel):
    """A named port with protocol, as found on EndpointSlices and Services."""

    model_config = {"frozen": True}

    name: str = Field("", description="Port name (may be empty)")
    port: int = Field(..., ge=0, le=65535, description="Port number")
    protocol: str = Field(DEFAULT_PROTOCOL, description="TCP, UDP or SCTP")

    @field_validator("protocol", mode="before")
    @classmethod
    def normalize_protocol(cls, v):
        return (v or DEFAULT_PROTOCOL).upper()


class Endpoint(BaseModel):
    """A single network endpoint owned by one cluster."""

    model_config = {"frozen": True, "populate_by_name": True}

    ip: str = Field(..., description="Endpoint address")
    port: EndpointPort = Field(..., description="Port the endpoint listens on")
    service: ResourceRef = Field(..., description="Owning service")
    cluster_id: str = Field(..., alias="clusterId", description="Owning cluster")
    cluster_set_id: str = Field(
        "", alias="clusterSetId", description="Cluster set of the owning cluster"
    )
    service_port: EndpointPort | None = Field(
        None, alias="servicePort", description="Service port fronting this endpoint"
    )
    ready: bool = Field(True, description="Whether the endpoint is ready")
    hostname: str | None = Field(None, description="Endpoint hostname")
    nodename: str | None = Field(
        None, alias="nodeName", description="Node hosting the endpoint"
    )
    service_type: str = Field(
        SERVICE_TYPE_CLUSTERSET_IP,
        alias="serviceType",
        description="ClusterSetIP or Headless",
    )
    service_export_creation_timestamp: datetime | None = Field(
        None,
        alias="serviceExportCreationTimestamp",
        description="Creation time of the ServiceExport that published it",
    )

    @property
    def key(self) -> EndpointKey:
        """Identity of the endpoint within its service and cluster."""
        return (self.ip, self.port.port)

    @property
    def id(self) -> str:
        """Stable registry id, e.g. ``tcp-192_168_0_1-80``."""
        address = self.ip.replace(".", "_").replace(":", "_")
        return f"{self.port.protocol.lower()}-{address}-{self.port.port}"

    def to_registry(self) -> dict:
        """Serialize for the registry API."""
        data = self.model_dump(by_alias=True, mode="json", exclude={"service"})
        data["id"] = self.id
        return data

    @classmethod
    def from_registry(cls, data: dict, service: ResourceRef) -> "Endpoint":
        """Build an endpoint from a registry API record of ``service``."""
        payload = {k: v for k, v in data.items() if k != "id"}
        payload["service"] = service
        return cls.model_validate(payload)


class EndpointSet:
    """
    Set of endpoints of one service and one cluster, deduplicated by identity.

    Iteration follows first-insertion order so registry calls built from a
    set are deterministic; set semantics never depend on that order.
    """

    def __init__(self, endpoints: Iterable[Endpoint] = ()):
        self._items: dict[EndpointKey, Endpoint] = {}
        for endpoint in endpoints:
            self.add(endpoint)

    def add(self, endpoint: Endpoint) -> None:
        self._items.setdefault(endpoint.key, endpoint)

    def keys(self) -> set[EndpointKey]:
        return set(self._items)

    def get(self, key: EndpointKey) -> Endpoint | None:
        return self._items.get(key)

    def to_list(self) -> list[Endpoint]:
        return list(self._items.values())

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Endpoint):
            return item.key in self._items
        return item in self._items

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EndpointSet):
            return NotImplemented
        return self.keys() == other.keys()

    def __repr__(self) -> str:
        keys = ", ".join(f"{ip}:{port}" for ip, port in self._items)
        return f"EndpointSet({keys})"
