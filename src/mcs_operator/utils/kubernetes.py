"""
Kubernetes utilities for the MCS operator.

This module provides the cluster API capability consumed by the reconciler
and its implementation on top of the official Kubernetes client.

Key functionality:
- Kubernetes client management and configuration
- Kind-addressed get/list/update/annotate on plain JSON dicts
- Translation of API failures into operator errors
"""

import asyncio
import logging
from typing import Any, Protocol

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from mcs_operator.constants import (
    CLUSTER_PROPERTY_GROUP,
    CLUSTER_PROPERTY_PLURAL,
    CLUSTER_PROPERTY_VERSION,
    KIND_CLUSTER_PROPERTY,
    KIND_ENDPOINT_SLICE,
    KIND_SERVICE,
    KIND_SERVICE_EXPORT,
    SERVICE_EXPORT_GROUP,
    SERVICE_EXPORT_PLURAL,
    SERVICE_EXPORT_VERSION,
)
from mcs_operator.errors import KubernetesAPIError

logger = logging.getLogger(__name__)

# kind -> (group, version, plural) for custom resources
CUSTOM_RESOURCES: dict[str, tuple[str, str, str]] = {
    KIND_SERVICE_EXPORT: (
        SERVICE_EXPORT_GROUP,
        SERVICE_EXPORT_VERSION,
        SERVICE_EXPORT_PLURAL,
    ),
    KIND_CLUSTER_PROPERTY: (
        CLUSTER_PROPERTY_GROUP,
        CLUSTER_PROPERTY_VERSION,
        CLUSTER_PROPERTY_PLURAL,
    ),
}


class ClusterAPI(Protocol):
    """
    Read/write access to local cluster objects.

    Objects are Kubernetes JSON dicts (camelCase keys), as kopf delivers them.
    Implementations raise KubernetesAPIError on failure.
    """

    async def get(
        self, kind: str, name: str, namespace: str | None = None
    ) -> dict[str, Any] | None:
        """Return the object, or None when it does not exist."""
        ...

    async def list(
        self, kind: str, namespace: str, label_selector: str | None = None
    ) -> list[dict[str, Any]]: ...

    async def update(self, obj: dict[str, Any]) -> None:
        """Persist the object's metadata.finalizers."""
        ...

    async def annotate(
        self, kind: str, name: str, namespace: str, annotations: dict[str, str]
    ) -> bool:
        """Merge annotations into the object; False when it no longer exists."""
        ...


def get_kubernetes_client() -> client.ApiClient:
    """
    Get configured Kubernetes API client.

    Handles both in-cluster and local development configurations.

    Returns:
        Configured Kubernetes API client
    """
    try:
        config.load_incluster_config()
        logger.debug("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            config.load_kube_config()
            logger.debug("Loaded kubeconfig from local environment")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    return client.ApiClient()


def api_error(e: ApiException, action: str) -> KubernetesAPIError:
    """Wrap an ApiException; 409, 429 and 5xx responses are retryable."""
    status = getattr(e, "status", None)
    retryable = status is not None and (status in (409, 429) or status >= 500)
    return KubernetesAPIError(
        message=f"{action}: HTTP {status}",
        reason=getattr(e, "reason", None),
        retryable=retryable,
        cause=e,
    )


class KubernetesClusterAPI:
    """ClusterAPI backed by the synchronous Kubernetes client.

    Blocking calls run in a worker thread so the event loop stays free.
    """

    def __init__(self, k8s_client: client.ApiClient | None = None):
        self.k8s_client = k8s_client or get_kubernetes_client()
        self.core_api = client.CoreV1Api(self.k8s_client)
        self.discovery_api = client.DiscoveryV1Api(self.k8s_client)
        self.custom_api = client.CustomObjectsApi(self.k8s_client)

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        return self.k8s_client.sanitize_for_serialization(obj)

    def _sync_get(
        self, kind: str, name: str, namespace: str | None
    ) -> dict[str, Any] | None:
        try:
            if kind in CUSTOM_RESOURCES:
                group, version, plural = CUSTOM_RESOURCES[kind]
                if namespace is None:
                    return self.custom_api.get_cluster_custom_object(
                        group=group, version=version, plural=plural, name=name
                    )
                return self.custom_api.get_namespaced_custom_object(
                    group=group,
                    version=version,
                    namespace=namespace,
                    plural=plural,
                    name=name,
                )
            if kind == KIND_SERVICE:
                return self._to_dict(
                    self.core_api.read_namespaced_service(name=name, namespace=namespace)
                )
            if kind == KIND_ENDPOINT_SLICE:
                return self._to_dict(
                    self.discovery_api.read_namespaced_endpoint_slice(
                        name=name, namespace=namespace
                    )
                )
        except ApiException as e:
            if e.status == 404:
                return None
            raise api_error(e, f"get {kind} {namespace or ''}/{name}") from e

        raise ValueError(f"Unsupported kind: {kind}")

    def _sync_list(
        self, kind: str, namespace: str, label_selector: str | None
    ) -> list[dict[str, Any]]:
        selector = label_selector or ""
        try:
            if kind in CUSTOM_RESOURCES:
                group, version, plural = CUSTOM_RESOURCES[kind]
                result = self.custom_api.list_namespaced_custom_object(
                    group=group,
                    version=version,
                    namespace=namespace,
                    plural=plural,
                    label_selector=selector,
                )
                return list(result.get("items", []))
            if kind == KIND_SERVICE:
                result = self.core_api.list_namespaced_service(
                    namespace=namespace, label_selector=selector
                )
            elif kind == KIND_ENDPOINT_SLICE:
                result = self.discovery_api.list_namespaced_endpoint_slice(
                    namespace=namespace, label_selector=selector
                )
            else:
                raise ValueError(f"Unsupported kind: {kind}")
        except ApiException as e:
            raise api_error(e, f"list {kind} in {namespace}") from e

        return [self._to_dict(item) for item in result.items]

    def _sync_update(self, obj: dict[str, Any]) -> None:
        kind = obj.get("kind", KIND_SERVICE_EXPORT)
        if kind not in CUSTOM_RESOURCES:
            raise ValueError(f"Unsupported kind for update: {kind}")

        group, version, plural = CUSTOM_RESOURCES[kind]
        metadata = obj.get("metadata") or {}
        # resourceVersion turns the merge patch into an optimistic update
        body = {
            "metadata": {
                "finalizers": list(metadata.get("finalizers") or []),
                "resourceVersion": metadata.get("resourceVersion"),
            }
        }
        try:
            self.custom_api.patch_namespaced_custom_object(
                group=group,
                version=version,
                namespace=metadata.get("namespace"),
                plural=plural,
                name=metadata.get("name"),
                body=body,
            )
        except ApiException as e:
            raise api_error(
                e, f"update {kind} {metadata.get('namespace')}/{metadata.get('name')}"
            ) from e

    def _sync_annotate(
        self, kind: str, name: str, namespace: str, annotations: dict[str, str]
    ) -> bool:
        if kind not in CUSTOM_RESOURCES:
            raise ValueError(f"Unsupported kind for annotate: {kind}")

        group, version, plural = CUSTOM_RESOURCES[kind]
        try:
            self.custom_api.patch_namespaced_custom_object(
                group=group,
                version=version,
                namespace=namespace,
                plural=plural,
                name=name,
                body={"metadata": {"annotations": annotations}},
            )
        except ApiException as e:
            if e.status == 404:
                return False
            raise api_error(e, f"annotate {kind} {namespace}/{name}") from e
        return True

    async def get(
        self, kind: str, name: str, namespace: str | None = None
    ) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._sync_get, kind, name, namespace)

    async def list(
        self, kind: str, namespace: str, label_selector: str | None = None
    ) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._sync_list, kind, namespace, label_selector)

    async def update(self, obj: dict[str, Any]) -> None:
        await asyncio.to_thread(self._sync_update, obj)

    async def annotate(
        self, kind: str, name: str, namespace: str, annotations: dict[str, str]
    ) -> bool:
        return await asyncio.to_thread(
            self._sync_annotate, kind, name, namespace, annotations
        )
