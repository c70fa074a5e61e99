"""
Test finalizer behavior for ServiceExports.

The finalizer records that a registry sync has happened, so the in-memory
view must only change after a confirmed write.
"""

from unittest.mock import patch

import pytest

from mcs_operator.constants import KIND_SERVICE_EXPORT, SERVICE_EXPORT_FINALIZER
from mcs_operator.errors import KubernetesAPIError, PersistenceError
from mcs_operator.models import ServiceExport
from mcs_operator.services import FinalizerManager
from tests.fixtures.service_export_resources import service_export, synced_export


class TestEnsureAdded:
    @pytest.mark.asyncio
    async def test_adds_and_persists(self, cluster_api):
        cluster_api.add(service_export(finalizers=["other/finalizer"]))
        export = ServiceExport.from_k8s(service_export(finalizers=["other/finalizer"]))

        assert await FinalizerManager(cluster_api).ensure_added(export)

        assert export.finalizers == ["other/finalizer", SERVICE_EXPORT_FINALIZER]
        update = cluster_api.updates[-1]
        assert update["metadata"]["finalizers"] == [
            "other/finalizer",
            SERVICE_EXPORT_FINALIZER,
        ]
        assert update["metadata"]["resourceVersion"] == "1"

    @pytest.mark.asyncio
    async def test_present_finalizer_makes_no_write(self, cluster_api):
        export = ServiceExport.from_k8s(synced_export())

        assert not await FinalizerManager(cluster_api).ensure_added(export)
        assert cluster_api.updates == []

    @pytest.mark.asyncio
    async def test_failed_write_leaves_view_unchanged(self, cluster_api):
        cluster_api.update_error = KubernetesAPIError("conflict", reason="Conflict")
        export = ServiceExport.from_k8s(service_export())

        with pytest.raises(PersistenceError) as exc_info:
            await FinalizerManager(cluster_api).ensure_added(export)

        assert exc_info.value.retryable
        assert isinstance(exc_info.value.cause, KubernetesAPIError)
        assert export.finalizers == []


class TestEnsureRemoved:
    @pytest.mark.asyncio
    async def test_removes_only_our_finalizer(self, cluster_api):
        raw = service_export(
            finalizers=["other/finalizer", SERVICE_EXPORT_FINALIZER], deleting=True
        )
        cluster_api.add(raw)
        export = ServiceExport.from_k8s(raw)

        assert await FinalizerManager(cluster_api).ensure_removed(export)

        assert export.finalizers == ["other/finalizer"]
        stored = cluster_api.stored(KIND_SERVICE_EXPORT, "web", "default")
        assert stored["metadata"]["finalizers"] == ["other/finalizer"]

    @pytest.mark.asyncio
    async def test_absent_finalizer_makes_no_write(self, cluster_api):
        export = ServiceExport.from_k8s(service_export(deleting=True))

        assert not await FinalizerManager(cluster_api).ensure_removed(export)
        assert cluster_api.updates == []

    @pytest.mark.asyncio
    async def test_failed_write_keeps_finalizer(self, cluster_api):
        cluster_api.update_error = KubernetesAPIError("unavailable")
        export = ServiceExport.from_k8s(synced_export(deleting=True))

        with pytest.raises(PersistenceError):
            await FinalizerManager(cluster_api).ensure_removed(export)

        assert export.finalizers == [SERVICE_EXPORT_FINALIZER]


@pytest.mark.asyncio
async def test_transitions_are_counted(cluster_api):
    export = ServiceExport.from_k8s(service_export())
    manager = FinalizerManager(cluster_api)

    with patch("mcs_operator.services.finalizer.metrics_collector") as mock_metrics:
        await manager.ensure_added(export)
        await manager.ensure_removed(export)

    assert [c.args for c in mock_metrics.record_finalizer_transition.call_args_list] == [
        ("default", "added"),
        ("default", "removed"),
    ]
