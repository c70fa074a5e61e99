"""
ServiceExport reconciler - publishes a local Service to the cluster-set registry.

A reconciliation pass brings the registry's endpoints for one exported
service, scoped to this cluster, in line with the ready endpoints observed
locally. The ServiceExport finalizer records that a sync has happened and
holds deletion back until this cluster's registry endpoints are gone.

Each pass is safe to repeat: nothing is retried internally and every
failure is raised for the caller to requeue.
"""

from ..constants import (
    DEFAULT_VISIBILITY_ATTEMPTS,
    DEFAULT_VISIBILITY_DELAY,
    KIND_SERVICE_EXPORT,
    SERVICE_EXPORT_FINALIZER,
    SUCCESS_DELETION,
    SUCCESS_RECONCILIATION,
)
from ..models import ClusterIdentity, ResourceRef, ServiceExport
from ..observability.metrics import metrics_collector
from ..utils.kubernetes import ClusterAPI
from ..utils.registry import RegistryClient
from .base_reconciler import BaseReconciler, ReconcileResult
from .cluster_identity import ClusterIdentityResolver
from .endpoint_collector import EndpointCollector
from .endpoint_diff import diff_endpoints
from .finalizer import FinalizerManager
from .registry_sync import RegistrySynchronizer


class ServiceExportReconciler(BaseReconciler):
    """
    Reconciler for ServiceExport resources.

    Handles:
    - Cluster identity resolution
    - Desired endpoint collection from EndpointSlices
    - Registry service creation and endpoint diffing
    - Finalizer-guarded teardown on deletion
    """

    resource_type = "serviceexport"

    def __init__(
        self,
        cluster_api: ClusterAPI,
        registry: RegistryClient,
        identity_resolver: ClusterIdentityResolver | None = None,
        visibility_attempts: int = DEFAULT_VISIBILITY_ATTEMPTS,
        visibility_delay: float = DEFAULT_VISIBILITY_DELAY,
        finalizer: str = SERVICE_EXPORT_FINALIZER,
    ):
        """
        Initialize the ServiceExport reconciler.

        Args:
            cluster_api: Access to cluster objects
            registry: Cluster-set registry client
            identity_resolver: Resolver for this cluster's identity, built
                from cluster_api if not provided
            visibility_attempts: Reads of a newly created registry service
            visibility_delay: Seconds between those reads
            finalizer: Finalizer marker guarding deletion
        """
        super().__init__()
        self.cluster_api = cluster_api
        self.identity_resolver = identity_resolver or ClusterIdentityResolver(
            cluster_api
        )
        self.collector = EndpointCollector(cluster_api)
        self.registry_sync = RegistrySynchronizer(
            registry,
            visibility_attempts=visibility_attempts,
            visibility_delay=visibility_delay,
        )
        self.finalizers = FinalizerManager(cluster_api, finalizer=finalizer)

    async def do_reconcile(self, ref: ResourceRef) -> ReconcileResult:
        identity = await self.identity_resolver.resolve()

        obj = await self.cluster_api.get(KIND_SERVICE_EXPORT, ref.name, ref.namespace)
        if obj is None:
            self.logger.info(f"ServiceExport {ref} not found, nothing to reconcile")
            return ReconcileResult()

        export = ServiceExport.from_k8s(obj)
        if export.is_deleting:
            await self._handle_deletion(export, identity)
        else:
            await self._sync(export, identity)
        return ReconcileResult()

    async def _sync(self, export: ServiceExport, identity: ClusterIdentity) -> None:
        ref = export.ref

        desired = await self.collector.collect(export, identity)
        service = await self.registry_sync.ensure_service(ref)
        reported = service.endpoints_for_cluster(identity.cluster_id)

        diff = diff_endpoints(desired, reported)
        if diff.is_empty:
            self.logger.debug(
                f"Registry endpoints for {ref} already match "
                f"{len(desired)} desired endpoints",
                cluster_id=identity.cluster_id,
            )
        else:
            await self.registry_sync.apply_diff(ref, diff, identity.cluster_id)

        await self.finalizers.ensure_added(export)

        metrics_collector.update_exported_endpoints(
            ref.namespace, ref.name, len(desired)
        )
        self.logger.info(
            f"{SUCCESS_RECONCILIATION}: {ref}",
            resource_name=ref.name,
            namespace=ref.namespace,
            cluster_id=identity.cluster_id,
            endpoint_count=len(desired),
        )

    async def _handle_deletion(
        self, export: ServiceExport, identity: ClusterIdentity
    ) -> None:
        ref = export.ref

        # Runs without the finalizer too: an earlier pass may have registered
        # endpoints before its finalizer write failed.
        deleted = await self.registry_sync.teardown(ref, identity.cluster_id)
        await self.finalizers.ensure_removed(export)

        metrics_collector.clear_exported_endpoints(ref.namespace, ref.name)
        self.logger.info(
            f"{SUCCESS_DELETION}: {ref}",
            resource_name=ref.name,
            namespace=ref.namespace,
            cluster_id=identity.cluster_id,
            endpoint_count=deleted,
        )
