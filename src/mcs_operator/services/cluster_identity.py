"""
Cluster identity resolution.

The cluster id and cluster set id live in two cluster-scoped ClusterProperty
objects. Without both, no registry state can be addressed, so their absence
is a configuration error rather than a transient failure.
"""

import logging

from mcs_operator.constants import (
    CLUSTER_ID_PROPERTY,
    CLUSTER_SET_ID_PROPERTY,
    ERROR_CLUSTER_PROPERTY_EMPTY,
    ERROR_CLUSTER_PROPERTY_NOT_FOUND,
    KIND_CLUSTER_PROPERTY,
)
from mcs_operator.errors import ConfigurationError
from mcs_operator.models import ClusterIdentity
from mcs_operator.utils.kubernetes import ClusterAPI

logger = logging.getLogger(__name__)


class ClusterIdentityResolver:
    """Reads the local ClusterIdentity from ClusterProperty objects."""

    def __init__(self, cluster_api: ClusterAPI, cache: bool = False):
        """
        Args:
            cluster_api: Access to cluster objects
            cache: Keep the first successfully resolved identity
        """
        self.cluster_api = cluster_api
        self.cache = cache
        self._identity: ClusterIdentity | None = None

    async def resolve(self) -> ClusterIdentity:
        """
        Resolve the cluster identity.

        Raises:
            ConfigurationError: If either property is missing or empty
        """
        if self._identity is not None:
            return self._identity

        identity = ClusterIdentity(
            cluster_id=await self._read_property(CLUSTER_ID_PROPERTY),
            cluster_set_id=await self._read_property(CLUSTER_SET_ID_PROPERTY),
        )
        logger.debug(
            f"Resolved cluster identity {identity.cluster_id} "
            f"in cluster set {identity.cluster_set_id}"
        )

        if self.cache:
            self._identity = identity
        return identity

    async def _read_property(self, name: str) -> str:
        obj = await self.cluster_api.get(KIND_CLUSTER_PROPERTY, name)
        if obj is None:
            raise ConfigurationError(
                ERROR_CLUSTER_PROPERTY_NOT_FOUND.format(name),
                user_action=f"Create the cluster-scoped ClusterProperty '{name}'",
            )

        value = (obj.get("spec") or {}).get("value")
        if not value:
            raise ConfigurationError(
                ERROR_CLUSTER_PROPERTY_EMPTY.format(name),
                user_action=f"Set spec.value on ClusterProperty '{name}'",
            )
        return str(value)
