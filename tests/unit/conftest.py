"""Shared pytest fixtures: in-memory cluster API and registry fakes."""

from copy import deepcopy
from typing import Any

import pytest

from mcs_operator.errors import RegistryError
from mcs_operator.models import Endpoint, RegistryService
from mcs_operator.services import ServiceExportReconciler
from tests.fixtures.service_export_resources import identity_properties


class FakeClusterAPI:
    """ClusterAPI keeping objects in a dict keyed by (kind, namespace, name)."""

    def __init__(self, objects: list[dict[str, Any]] = ()):
        self.objects: dict[tuple[str, str | None, str], dict[str, Any]] = {}
        self.updates: list[dict[str, Any]] = []
        self.annotations: list[tuple] = []
        self.update_error: Exception | None = None
        for obj in objects:
            self.add(obj)

    @staticmethod
    def _key(obj: dict[str, Any]) -> tuple[str, str | None, str]:
        metadata = obj["metadata"]
        return (obj["kind"], metadata.get("namespace"), metadata["name"])

    def add(self, obj: dict[str, Any]) -> None:
        self.objects[self._key(obj)] = deepcopy(obj)

    def remove(self, kind: str, name: str, namespace: str | None = None) -> None:
        self.objects.pop((kind, namespace, name), None)

    def stored(self, kind: str, name: str, namespace: str | None = None):
        return self.objects.get((kind, namespace, name))

    async def get(self, kind: str, name: str, namespace: str | None = None):
        obj = self.objects.get((kind, namespace, name))
        return deepcopy(obj) if obj is not None else None

    async def list(self, kind: str, namespace: str, label_selector: str | None = None):
        selector = {}
        if label_selector:
            selector = dict(part.split("=", 1) for part in label_selector.split(","))

        result = []
        for (obj_kind, obj_namespace, _), obj in self.objects.items():
            if obj_kind != kind or obj_namespace != namespace:
                continue
            labels = obj["metadata"].get("labels") or {}
            if all(labels.get(k) == v for k, v in selector.items()):
                result.append(deepcopy(obj))
        return result

    async def update(self, obj: dict[str, Any]) -> None:
        if self.update_error is not None:
            raise self.update_error
        self.updates.append(deepcopy(obj))

        key = self._key(obj)
        stored = self.objects.get(key)
        if stored is None:
            return
        finalizers = list(obj["metadata"].get("finalizers") or [])
        stored["metadata"]["finalizers"] = finalizers
        # The API server drops a deleting object once its last finalizer is gone
        if stored["metadata"].get("deletionTimestamp") and not finalizers:
            del self.objects[key]

    async def annotate(
        self, kind: str, name: str, namespace: str, annotations: dict[str, str]
    ) -> bool:
        self.annotations.append((kind, namespace, name, dict(annotations)))
        stored = self.objects.get((kind, namespace, name))
        if stored is None:
            return False
        stored["metadata"].setdefault("annotations", {}).update(annotations)
        return True


class FakeRegistryClient:
    """RegistryClient recording every call against an in-memory registry."""

    def __init__(self):
        self.services: dict[tuple[str, str], list[Endpoint]] = {}
        self.calls: list[tuple] = []
        self.errors: dict[str, Exception] = {}
        # get_service reads that still miss a just-created service
        self.hidden_reads_after_create = 0
        self._hidden: dict[tuple[str, str], int] = {}

    def seed(self, namespace: str, name: str, endpoints: list[Endpoint] = ()) -> None:
        self.services[(namespace, name)] = list(endpoints)

    def endpoints(self, namespace: str, name: str, cluster_id: str | None = None):
        return [
            e
            for e in self.services.get((namespace, name), [])
            if cluster_id is None or e.cluster_id == cluster_id
        ]

    def mutations(self) -> list[tuple]:
        return [c for c in self.calls if c[0] != "get_service"]

    def _check(self, operation: str) -> None:
        if operation in self.errors:
            raise self.errors[operation]

    async def get_service(self, namespace: str, name: str):
        self.calls.append(("get_service", namespace, name))
        self._check("get_service")

        key = (namespace, name)
        if self._hidden.get(key):
            self._hidden[key] -= 1
            return None
        if key not in self.services:
            return None
        return RegistryService(
            namespace=namespace, name=name, endpoints=list(self.services[key])
        )

    async def create_service(self, namespace: str, name: str) -> None:
        self.calls.append(("create_service", namespace, name))
        self._check("create_service")
        self.services.setdefault((namespace, name), [])
        if self.hidden_reads_after_create:
            self._hidden[(namespace, name)] = self.hidden_reads_after_create

    async def register_endpoints(
        self, namespace: str, name: str, endpoints: list[Endpoint]
    ) -> None:
        self.calls.append(
            ("register_endpoints", namespace, name, [e.key for e in endpoints])
        )
        self._check("register_endpoints")
        if (namespace, name) not in self.services:
            raise RegistryError("service not found", operation="register_endpoints")

        current = self.services[(namespace, name)]
        for endpoint in endpoints:
            current[:] = [
                e
                for e in current
                if (e.cluster_id, e.key) != (endpoint.cluster_id, endpoint.key)
            ]
            current.append(endpoint)

    async def delete_endpoints(
        self, namespace: str, name: str, endpoints: list[Endpoint]
    ) -> None:
        self.calls.append(
            ("delete_endpoints", namespace, name, [e.key for e in endpoints])
        )
        self._check("delete_endpoints")

        doomed = {(e.cluster_id, e.key) for e in endpoints}
        current = self.services.get((namespace, name), [])
        current[:] = [e for e in current if (e.cluster_id, e.key) not in doomed]


@pytest.fixture
def cluster_api():
    """Fake cluster API holding this cluster's identity properties."""
    return FakeClusterAPI(identity_properties())


@pytest.fixture
def registry():
    return FakeRegistryClient()


@pytest.fixture
def reconciler(cluster_api, registry):
    return ServiceExportReconciler(cluster_api=cluster_api, registry=registry)
