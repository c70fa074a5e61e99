"""
Collection of the locally desired endpoint set.

Reads the Service behind a ServiceExport and the EndpointSlices feeding it,
and turns every ready address into an Endpoint owned by this cluster.
"""

import logging
from typing import Any

from mcs_operator.constants import (
    KIND_ENDPOINT_SLICE,
    KIND_SERVICE,
    SERVICE_NAME_LABEL,
    SERVICE_TYPE_CLUSTERSET_IP,
    SERVICE_TYPE_HEADLESS,
)
from mcs_operator.models import (
    ClusterIdentity,
    Endpoint,
    EndpointPort,
    EndpointSet,
    ServiceExport,
)
from mcs_operator.utils.kubernetes import ClusterAPI

logger = logging.getLogger(__name__)

# EndpointSlice address types carrying IP addresses
IP_ADDRESS_TYPES = frozenset({"IPv4", "IPv6"})


def is_ready(endpoint: dict[str, Any]) -> bool:
    """An unset ready condition means ready, as in the EndpointSlice API."""
    ready = (endpoint.get("conditions") or {}).get("ready")
    return ready is None or bool(ready)


def service_type_of(service: dict[str, Any]) -> str:
    cluster_ip = (service.get("spec") or {}).get("clusterIP")
    return SERVICE_TYPE_HEADLESS if cluster_ip == "None" else SERVICE_TYPE_CLUSTERSET_IP


def service_ports_of(service: dict[str, Any]) -> dict[str, EndpointPort]:
    """Service ports keyed by name, for matching against slice ports."""
    ports = {}
    for port in (service.get("spec") or {}).get("ports") or []:
        if port.get("port") is None:
            continue
        service_port = EndpointPort(
            name=port.get("name") or "",
            port=port["port"],
            protocol=port.get("protocol"),
        )
        ports[service_port.name] = service_port
    return ports


class EndpointCollector:
    """Builds the desired EndpointSet for one ServiceExport."""

    def __init__(self, cluster_api: ClusterAPI):
        self.cluster_api = cluster_api

    async def collect(
        self, export: ServiceExport, identity: ClusterIdentity
    ) -> EndpointSet:
        """
        Collect the ready endpoints of the exported service.

        Args:
            export: The ServiceExport being reconciled
            identity: This cluster's identity, stamped on every endpoint

        Returns:
            Desired endpoints; empty when the Service does not exist
        """
        service = await self.cluster_api.get(KIND_SERVICE, export.name, export.namespace)
        if service is None:
            logger.info(
                f"Service {export.namespace}/{export.name} not found, "
                f"desired endpoint set is empty"
            )
            return EndpointSet()

        slices = await self.cluster_api.list(
            KIND_ENDPOINT_SLICE,
            export.namespace,
            label_selector=f"{SERVICE_NAME_LABEL}={export.name}",
        )

        service_type = service_type_of(service)
        service_ports = service_ports_of(service)
        endpoints = EndpointSet()

        for endpoint_slice in slices:
            if endpoint_slice.get("addressType", "IPv4") not in IP_ADDRESS_TYPES:
                continue

            ports = [
                EndpointPort(
                    name=p.get("name") or "",
                    port=p["port"],
                    protocol=p.get("protocol"),
                )
                for p in endpoint_slice.get("ports") or []
                if p.get("port") is not None
            ]

            for slice_endpoint in endpoint_slice.get("endpoints") or []:
                if not is_ready(slice_endpoint):
                    continue
                for address in slice_endpoint.get("addresses") or []:
                    for port in ports:
                        endpoints.add(
                            Endpoint(
                                ip=address,
                                port=port,
                                service=export.ref,
                                cluster_id=identity.cluster_id,
                                cluster_set_id=identity.cluster_set_id,
                                service_port=service_ports.get(port.name),
                                ready=True,
                                hostname=slice_endpoint.get("hostname"),
                                nodename=slice_endpoint.get("nodeName"),
                                service_type=service_type,
                                service_export_creation_timestamp=export.creation_timestamp,
                            )
                        )

        logger.debug(
            f"Collected {len(endpoints)} ready endpoints for "
            f"{export.namespace}/{export.name} from {len(slices)} slices"
        )
        return endpoints
