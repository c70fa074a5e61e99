"""Tests for the operator startup and cleanup handlers."""

from unittest.mock import AsyncMock, MagicMock, patch

import kopf
import pytest

from mcs_operator import operator


@pytest.fixture
def startup_patches():
    metrics_server = MagicMock()
    metrics_server.start = AsyncMock()
    metrics_server.stop = AsyncMock()
    registry_client = MagicMock()
    registry_client.close = AsyncMock()

    with (
        patch.object(operator, "_global_metrics_server", None),
        patch.object(operator, "setup_tracing") as setup_tracing,
        patch.object(operator, "shutdown_tracing") as shutdown_tracing,
        patch.object(operator, "MetricsServer", return_value=metrics_server),
        patch.object(operator, "KubernetesClusterAPI") as cluster_api_cls,
        patch.object(operator, "HttpRegistryClient", return_value=registry_client),
    ):
        yield MagicMock(
            setup_tracing=setup_tracing,
            shutdown_tracing=shutdown_tracing,
            metrics_server=metrics_server,
            cluster_api_cls=cluster_api_cls,
            registry_client=registry_client,
        )


@pytest.mark.asyncio
async def test_startup_fills_memo_with_clients(startup_patches):
    memo = kopf.Memo()

    await operator.startup_handler(memo=memo)

    # Building the cluster API is the only place Kubernetes config is loaded
    startup_patches.cluster_api_cls.assert_called_once_with()
    assert memo.cluster_api is startup_patches.cluster_api_cls.return_value
    assert memo.registry_client is startup_patches.registry_client
    startup_patches.metrics_server.start.assert_awaited_once()
    startup_patches.setup_tracing.assert_called_once()


@pytest.mark.asyncio
async def test_startup_survives_metrics_server_failure(startup_patches):
    startup_patches.metrics_server.start.side_effect = OSError("port in use")
    memo = kopf.Memo()

    await operator.startup_handler(memo=memo)

    assert memo.registry_client is startup_patches.registry_client


@pytest.mark.asyncio
async def test_cleanup_closes_clients(startup_patches):
    memo = kopf.Memo()
    await operator.startup_handler(memo=memo)

    await operator.cleanup_handler(memo=memo)

    startup_patches.metrics_server.stop.assert_awaited_once()
    startup_patches.registry_client.close.assert_awaited_once()
    startup_patches.shutdown_tracing.assert_called_once()
