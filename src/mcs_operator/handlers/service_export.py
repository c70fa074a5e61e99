"""
ServiceExport handlers - Publishes exported services to the cluster-set registry.

Every handler here only works out which ServiceExport is affected and hands
its reference to the ServiceExportReconciler, which reads the current state
itself. kopf runs timers apart from the change handlers, so runs for one
ServiceExport take a per-object lock before reconciling. The reconciler owns
the ServiceExport finalizer, so the delete handler is optional and kopf adds
no finalizer of its own.

kopf never retries event handlers. An EndpointSlice event is therefore not
reconciled in place: it stamps the slice's revision into an annotation on the
ServiceExport, and the resulting update goes through the retried handlers.

Triggers:
- ServiceExport create/update/resume and deletion
- A periodic resync timer per ServiceExport
- EndpointSlice events of the exported Service, via the change annotation
"""

import asyncio
import logging
from typing import Any

import kopf

from mcs_operator.constants import (
    KIND_SERVICE_EXPORT,
    SERVICE_EXPORT_GROUP,
    SERVICE_EXPORT_PLURAL,
    SERVICE_EXPORT_VERSION,
    SERVICE_NAME_LABEL,
    SLICE_CHANGE_ANNOTATION,
)
from mcs_operator.errors import OperatorError
from mcs_operator.models import ResourceRef
from mcs_operator.observability.tracing import traced_handler
from mcs_operator.services import ServiceExportReconciler
from mcs_operator.settings import settings as operator_settings

logger = logging.getLogger(__name__)


def get_reconciler(memo: kopf.Memo) -> ServiceExportReconciler:
    """Return the shared reconciler, building it from the startup clients once."""
    reconciler = getattr(memo, "service_export_reconciler", None)
    if reconciler is None:
        reconciler = ServiceExportReconciler(
            cluster_api=memo.cluster_api,
            registry=memo.registry_client,
            visibility_attempts=operator_settings.service_visibility_attempts,
            visibility_delay=operator_settings.service_visibility_delay_seconds,
        )
        memo.service_export_reconciler = reconciler
    return reconciler


def get_reconcile_lock(memo: kopf.Memo, ref: ResourceRef) -> asyncio.Lock:
    """Return the lock that serializes reconciliations of one ServiceExport."""
    locks: dict[tuple[str, str], asyncio.Lock] | None = getattr(
        memo, "reconcile_locks", None
    )
    if locks is None:
        locks = {}
        memo.reconcile_locks = locks
    return locks.setdefault((ref.namespace, ref.name), asyncio.Lock())


async def reconcile_service_export(
    name: str, namespace: str, memo: kopf.Memo
) -> None:
    """
    Run one reconciliation and translate its outcome for kopf.

    Raises:
        kopf.TemporaryError: On retryable failures or a requeue request
        kopf.PermanentError: On failures that need a user fix
    """
    ref = ResourceRef(namespace=namespace, name=name)
    lock = get_reconcile_lock(memo, ref)
    if lock.locked():
        logger.debug(f"Waiting for running reconciliation of ServiceExport {ref}")

    try:
        async with lock:
            result = await get_reconciler(memo).reconcile(ref)
    except OperatorError as e:
        raise e.as_kopf_error() from e

    if result.requeue_after is not None:
        raise kopf.TemporaryError(
            f"Requeue of ServiceExport {ref} requested", delay=result.requeue_after
        )


@kopf.on.create(
    SERVICE_EXPORT_PLURAL, group=SERVICE_EXPORT_GROUP, version=SERVICE_EXPORT_VERSION
)
@kopf.on.update(
    SERVICE_EXPORT_PLURAL, group=SERVICE_EXPORT_GROUP, version=SERVICE_EXPORT_VERSION
)
@kopf.on.resume(
    SERVICE_EXPORT_PLURAL, group=SERVICE_EXPORT_GROUP, version=SERVICE_EXPORT_VERSION
)
@traced_handler("ensure_service_export")
async def ensure_service_export(
    name: str, namespace: str, memo: kopf.Memo, **kwargs: Any
) -> None:
    """
    Sync a ServiceExport's endpoints into the registry.

    Args:
        name: Name of the ServiceExport (and of the exported Service)
        namespace: Namespace of the ServiceExport
        memo: Operator memo holding the shared clients
    """
    logger.info(f"Ensuring ServiceExport {namespace}/{name}")
    await reconcile_service_export(name, namespace, memo)


@kopf.on.delete(
    SERVICE_EXPORT_PLURAL,
    group=SERVICE_EXPORT_GROUP,
    version=SERVICE_EXPORT_VERSION,
    optional=True,
)
@traced_handler("delete_service_export")
async def delete_service_export(
    name: str, namespace: str, memo: kopf.Memo, **kwargs: Any
) -> None:
    """Tear down this cluster's registry endpoints and release the finalizer."""
    logger.info(f"Deleting ServiceExport {namespace}/{name}")
    await reconcile_service_export(name, namespace, memo)


@kopf.timer(
    SERVICE_EXPORT_PLURAL,
    group=SERVICE_EXPORT_GROUP,
    version=SERVICE_EXPORT_VERSION,
    interval=float(operator_settings.resync_interval_seconds),
    initial_delay=float(operator_settings.resync_interval_seconds),
)
@traced_handler("resync_service_export")
async def resync_service_export(
    name: str, namespace: str, memo: kopf.Memo, **kwargs: Any
) -> None:
    """Periodically re-reconcile to repair drift in the registry."""
    logger.debug(f"Periodic resync of ServiceExport {namespace}/{name}")
    await reconcile_service_export(name, namespace, memo)


@kopf.on.event(
    "discovery.k8s.io",
    "v1",
    "endpointslices",
    labels={SERVICE_NAME_LABEL: kopf.PRESENT},
)
@traced_handler("endpoint_slice_changed", resource_type="endpointslice")
async def endpoint_slice_changed(
    event: dict[str, Any],
    name: str,
    namespace: str,
    labels: dict[str, str],
    meta: dict[str, Any],
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """
    Mark the ServiceExport of the Service an EndpointSlice belongs to as changed.

    The marker names the slice and its resourceVersion, so a re-listed slice
    that did not change leaves the ServiceExport untouched. Slices of Services
    that are not exported are ignored.
    """
    service_name = labels.get(SERVICE_NAME_LABEL)
    if not service_name:
        return

    export = await memo.cluster_api.get(KIND_SERVICE_EXPORT, service_name, namespace)
    if export is None:
        return

    marker = f"{name}:{meta.get('resourceVersion', '')}"
    if event.get("type") == "DELETED":
        marker = f"{marker}:deleted"

    current = (export.get("metadata") or {}).get("annotations") or {}
    if current.get(SLICE_CHANGE_ANNOTATION) == marker:
        return

    logger.debug(
        f"EndpointSlice {name} of exported Service {namespace}/{service_name} "
        f"changed ({event.get('type')})"
    )
    await memo.cluster_api.annotate(
        KIND_SERVICE_EXPORT,
        service_name,
        namespace,
        {SLICE_CHANGE_ANNOTATION: marker},
    )
