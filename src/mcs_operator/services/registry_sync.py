"""
Registry synchronization.

Executes registry calls for one ServiceExport: making sure the registry
service exists, applying an endpoint diff, and tearing down every endpoint
this cluster owns. No call is retried or rolled back here; each is
idempotent by endpoint identity, so the next reconciliation converges.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from mcs_operator.constants import ERROR_SERVICE_NOT_VISIBLE
from mcs_operator.errors import RegistryError
from mcs_operator.models import EndpointSet, RegistryService, ResourceRef
from mcs_operator.observability.logging import OperatorLogger
from mcs_operator.observability.metrics import metrics_collector
from mcs_operator.utils.registry import RegistryClient

from .endpoint_diff import EndpointDiff

T = TypeVar("T")


class RegistrySynchronizer:
    """Runs get/create/register/delete calls against a RegistryClient."""

    def __init__(
        self,
        registry: RegistryClient,
        visibility_attempts: int = 1,
        visibility_delay: float = 0.0,
    ):
        """
        Args:
            registry: Registry client
            visibility_attempts: Reads of a newly created service before failing
            visibility_delay: Seconds between those reads
        """
        self.registry = registry
        self.visibility_attempts = max(1, visibility_attempts)
        self.visibility_delay = visibility_delay
        self.logger = OperatorLogger(self.__class__.__name__)

    async def _call(
        self, operation: str, func: Callable[..., Awaitable[T]], *args
    ) -> T:
        try:
            result = await func(*args)
        except Exception:
            metrics_collector.record_registry_operation(operation, success=False)
            raise
        metrics_collector.record_registry_operation(operation, success=True)
        return result

    async def get_service(self, ref: ResourceRef) -> RegistryService | None:
        return await self._call(
            "get_service", self.registry.get_service, ref.namespace, ref.name
        )

    async def ensure_service(self, ref: ResourceRef) -> RegistryService:
        """
        Return the registry service, creating it when absent.

        Creation is eventually consistent, so the canonical handle comes
        from re-reading the service after the create call.
        """
        service = await self.get_service(ref)
        if service is not None:
            return service

        await self._call(
            "create_service", self.registry.create_service, ref.namespace, ref.name
        )
        self.logger.log_registry_operation("create_service", ref.namespace, ref.name)
        return await self.wait_until_visible(ref)

    async def wait_until_visible(self, ref: ResourceRef) -> RegistryService:
        """
        Re-read a just-created service until the registry returns it.

        Raises:
            RegistryError: If it is still absent after all attempts
        """
        for attempt in range(self.visibility_attempts):
            if attempt and self.visibility_delay:
                await asyncio.sleep(self.visibility_delay)
            service = await self.get_service(ref)
            if service is not None:
                return service
            self.logger.debug(
                f"Registry service {ref} not visible yet "
                f"(attempt {attempt + 1}/{self.visibility_attempts})"
            )

        raise RegistryError(
            ERROR_SERVICE_NOT_VISIBLE.format(
                ref.namespace, ref.name, self.visibility_attempts
            ),
            operation="get_service",
        )

    async def apply_diff(
        self, ref: ResourceRef, diff: EndpointDiff, cluster_id: str
    ) -> None:
        """Register additions, then delete removals; no-op for an empty diff."""
        if diff.to_add:
            await self._call(
                "register_endpoints",
                self.registry.register_endpoints,
                ref.namespace,
                ref.name,
                diff.to_add,
            )
            self.logger.log_registry_operation(
                "register_endpoints",
                ref.namespace,
                ref.name,
                endpoint_count=len(diff.to_add),
                cluster_id=cluster_id,
            )

        if diff.to_remove:
            await self._call(
                "delete_endpoints",
                self.registry.delete_endpoints,
                ref.namespace,
                ref.name,
                diff.to_remove,
            )
            self.logger.log_registry_operation(
                "delete_endpoints",
                ref.namespace,
                ref.name,
                endpoint_count=len(diff.to_remove),
                cluster_id=cluster_id,
            )

    async def teardown(self, ref: ResourceRef, cluster_id: str) -> int:
        """
        Delete every registry endpoint of ``ref`` owned by ``cluster_id``.

        Returns:
            Number of endpoints deleted
        """
        service = await self.get_service(ref)
        if service is None:
            self.logger.info(f"Registry service {ref} not found, nothing to tear down")
            return 0

        owned: EndpointSet = service.endpoints_for_cluster(cluster_id)
        if not owned:
            return 0

        await self._call(
            "delete_endpoints",
            self.registry.delete_endpoints,
            ref.namespace,
            ref.name,
            owned.to_list(),
        )
        self.logger.log_registry_operation(
            "delete_endpoints",
            ref.namespace,
            ref.name,
            endpoint_count=len(owned),
            cluster_id=cluster_id,
        )
        return len(owned)
