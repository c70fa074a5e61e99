"""
Finalizer lifecycle for ServiceExports.

The finalizer is the only record that a registry sync has happened, so the
in-memory view changes only after the cluster has confirmed the write.
"""

from mcs_operator.constants import (
    FINALIZER_ADDED,
    FINALIZER_REMOVED,
    SERVICE_EXPORT_FINALIZER,
)
from mcs_operator.errors import KubernetesAPIError, PersistenceError
from mcs_operator.models import ServiceExport
from mcs_operator.observability.logging import OperatorLogger
from mcs_operator.observability.metrics import metrics_collector
from mcs_operator.utils.kubernetes import ClusterAPI


class FinalizerManager:
    """Adds and removes the ServiceExport finalizer."""

    def __init__(
        self, cluster_api: ClusterAPI, finalizer: str = SERVICE_EXPORT_FINALIZER
    ):
        self.cluster_api = cluster_api
        self.finalizer = finalizer
        self.logger = OperatorLogger(self.__class__.__name__)

    def has_finalizer(self, export: ServiceExport) -> bool:
        return export.has_finalizer(self.finalizer)

    async def ensure_added(self, export: ServiceExport) -> bool:
        """
        Add the finalizer if absent.

        Returns:
            True if a write was made

        Raises:
            PersistenceError: If the write was not confirmed
        """
        if self.has_finalizer(export):
            return False

        await self._persist(export, [*export.finalizers, self.finalizer], FINALIZER_ADDED)
        return True

    async def ensure_removed(self, export: ServiceExport) -> bool:
        """
        Remove the finalizer if present, releasing the ServiceExport for deletion.

        Returns:
            True if a write was made

        Raises:
            PersistenceError: If the write was not confirmed
        """
        if not self.has_finalizer(export):
            return False

        remaining = [f for f in export.finalizers if f != self.finalizer]
        await self._persist(export, remaining, FINALIZER_REMOVED)
        return True

    async def _persist(
        self, export: ServiceExport, finalizers: list[str], transition: str
    ) -> None:
        try:
            await self.cluster_api.update(export.with_finalizers(finalizers))
        except KubernetesAPIError as e:
            raise PersistenceError(
                f"Failed to persist finalizer {transition} on ServiceExport "
                f"{export.namespace}/{export.name}: {e}",
                cause=e,
            ) from e

        export.finalizers = finalizers
        metrics_collector.record_finalizer_transition(export.namespace, transition)
        self.logger.info(
            f"Finalizer {self.finalizer} {transition} on ServiceExport "
            f"{export.namespace}/{export.name}",
            resource_name=export.name,
            namespace=export.namespace,
            finalizer=self.finalizer,
        )
