"""
Unit tests for MetricsCollector and the MetricsServer HTTP endpoints.

The server is driven through ``aiohttp.test_utils`` against its application.
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
from aiohttp.test_utils import TestClient, TestServer

from mcs_operator.observability.metrics import MetricsCollector, MetricsServer


@pytest.fixture
def collector():
    """Create a MetricsCollector with the registry init patched out."""
    with patch(
        "mcs_operator.observability.metrics.get_metrics_registry",
        return_value=MagicMock(),
    ):
        return MetricsCollector()


class TestMetricsCollector:
    @patch("mcs_operator.observability.metrics.REGISTRY_OPERATIONS")
    def test_record_registry_operation_success(self, mock_ops, collector):
        collector.record_registry_operation("register_endpoints", success=True)
        mock_ops.labels.assert_called_with(operation="register_endpoints", result="success")
        mock_ops.labels().inc.assert_called_once()

    @patch("mcs_operator.observability.metrics.REGISTRY_OPERATIONS")
    def test_record_registry_operation_failure(self, mock_ops, collector):
        collector.record_registry_operation("get_service", success=False)
        mock_ops.labels.assert_called_with(operation="get_service", result="failure")

    @patch("mcs_operator.observability.metrics.EXPORTED_ENDPOINTS")
    def test_update_exported_endpoints(self, mock_gauge, collector):
        collector.update_exported_endpoints("default", "web", 3)
        mock_gauge.labels.assert_called_with(namespace="default", name="web")
        mock_gauge.labels().set.assert_called_with(3)

    @patch("mcs_operator.observability.metrics.EXPORTED_ENDPOINTS")
    def test_clear_unknown_series_is_ignored(self, mock_gauge, collector):
        mock_gauge.remove.side_effect = KeyError("default")
        collector.clear_exported_endpoints("default", "web")
        mock_gauge.remove.assert_called_once_with("default", "web")

    @patch("mcs_operator.observability.metrics.FINALIZER_TRANSITIONS")
    def test_record_finalizer_transition(self, mock_counter, collector):
        collector.record_finalizer_transition("default", "added")
        mock_counter.labels.assert_called_with(namespace="default", transition="added")

    @pytest.mark.asyncio
    @patch("mcs_operator.observability.metrics.RECONCILIATION_ERRORS")
    @patch("mcs_operator.observability.metrics.RECONCILIATION_TOTAL")
    async def test_track_reconciliation_records_errors(
        self, mock_total, mock_errors, collector
    ):
        with pytest.raises(RuntimeError):
            async with collector.track_reconciliation("serviceexport", "default", "web"):
                raise RuntimeError("boom")

        mock_errors.labels.assert_called_with(
            resource_type="serviceexport",
            namespace="default",
            error_type="RuntimeError",
            retryable="false",
        )
        mock_total.labels.assert_called_with(
            resource_type="serviceexport", namespace="default", name="web", result="error"
        )

    @pytest.mark.asyncio
    @patch("mcs_operator.observability.metrics.RECONCILIATION_TOTAL")
    async def test_track_reconciliation_success(self, mock_total, collector):
        async with collector.track_reconciliation("serviceexport", "default", "web"):
            pass

        mock_total.labels.assert_called_with(
            resource_type="serviceexport", namespace="default", name="web", result="success"
        )

    @pytest.mark.asyncio
    @patch("mcs_operator.observability.metrics.RECONCILIATION_ERRORS")
    @patch("mcs_operator.observability.metrics.RECONCILIATION_TOTAL")
    async def test_track_reconciliation_cancelled(
        self, mock_total, mock_errors, collector
    ):
        with pytest.raises(asyncio.CancelledError):
            async with collector.track_reconciliation("serviceexport", "default", "web"):
                raise asyncio.CancelledError()

        mock_errors.labels.assert_not_called()
        mock_total.labels.assert_called_with(
            resource_type="serviceexport",
            namespace="default",
            name="web",
            result="cancelled",
        )


@pytest.fixture
async def client():
    server = TestServer(MetricsServer(port=0).app)
    async with TestClient(server) as cli:
        yield cli


class TestMetricsServer:
    @pytest.mark.asyncio
    async def test_metrics_endpoint(self, client):
        resp = await client.get("/metrics")
        assert resp.status == 200
        assert "mcs_operator_exported_endpoints" in await resp.text()

    @pytest.mark.asyncio
    async def test_metrics_error_returns_500(self, client):
        with patch(
            "mcs_operator.observability.metrics.generate_latest",
            side_effect=RuntimeError("boom"),
        ):
            resp = await client.get("/metrics")
        assert resp.status == 500

    @pytest.mark.asyncio
    async def test_healthz(self, client):
        resp = await client.get("/healthz")
        assert resp.status == 200
        assert await resp.text() == "ok"
