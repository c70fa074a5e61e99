"""
Multi-cluster service registry client utilities.

This module defines the registry capability consumed by the reconciler and
an HTTP implementation speaking the registry's JSON REST API:

    GET    /v1/namespaces/{namespace}/services/{name}
    POST   /v1/namespaces/{namespace}/services
    POST   /v1/namespaces/{namespace}/services/{name}/endpoints
    DELETE /v1/namespaces/{namespace}/services/{name}/endpoints

Every mutating call is idempotent by endpoint identity on the registry side.
"""

import logging
from typing import Any, Protocol

import httpx

from mcs_operator.errors import RegistryError
from mcs_operator.models import Endpoint, RegistryService

logger = logging.getLogger(__name__)


class RegistryClient(Protocol):
    """Operations the reconciler needs from the service registry.

    Implementations raise RegistryError on any failure.
    """

    async def get_service(self, namespace: str, name: str) -> RegistryService | None:
        """Return the service, or None when the registry has no such service."""
        ...

    async def create_service(self, namespace: str, name: str) -> None: ...

    async def register_endpoints(
        self, namespace: str, name: str, endpoints: list[Endpoint]
    ) -> None: ...

    async def delete_endpoints(
        self, namespace: str, name: str, endpoints: list[Endpoint]
    ) -> None: ...


class HttpRegistryClient:
    """
    RegistryClient over the registry's REST API.

    One pooled httpx.AsyncClient is shared by all calls; close() releases it
    at operator shutdown.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        verify_ssl: bool = True,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize registry client.

        Args:
            base_url: Base URL of the registry API
            token: Optional bearer token
            verify_ssl: Whether to verify TLS certificates
            timeout: Request timeout in seconds
            transport: Optional custom transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            verify=verify_ssl,
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_connections=50, max_keepalive_connections=10),
            headers=headers,
            follow_redirects=False,
            transport=transport,
        )
        logger.info(f"Initialized registry client for {self.base_url}")

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpRegistryClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        allow_not_found: bool = False,
    ) -> httpx.Response | None:
        """
        Send a request and translate failures into RegistryError.

        Returns:
            The response, or None for a 404 when allow_not_found is set
        """
        try:
            response = await self._client.request(method, path, json=json)
            if allow_not_found and response.status_code == 404:
                return None
            response.raise_for_status()
            return response

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            body = e.response.text or "<no content>"
            body_preview = body[:1024] + "...<truncated>" if len(body) > 1024 else body

            logger.error(
                f"Registry request failed: {method} {path} - {e}",
                extra={"http_status": status_code, "response_body": body_preview},
            )
            raise RegistryError(
                body_preview, operation=operation, status_code=status_code, cause=e
            ) from e

        except httpx.HTTPError as e:
            # Connection errors, timeouts, etc.
            logger.error(f"Registry request failed: {method} {path} - {e}")
            raise RegistryError(str(e), operation=operation, cause=e) from e

    @staticmethod
    def _service_path(namespace: str, name: str) -> str:
        return f"/v1/namespaces/{namespace}/services/{name}"

    async def get_service(self, namespace: str, name: str) -> RegistryService | None:
        response = await self._request(
            "get_service",
            "GET",
            self._service_path(namespace, name),
            allow_not_found=True,
        )
        if response is None:
            return None

        data = response.json()
        data.setdefault("namespace", namespace)
        data.setdefault("name", name)
        try:
            return RegistryService.from_registry(data)
        except ValueError as e:
            raise RegistryError(
                f"malformed service record: {e}", operation="get_service", cause=e
            ) from e

    async def create_service(self, namespace: str, name: str) -> None:
        await self._request(
            "create_service",
            "POST",
            f"/v1/namespaces/{namespace}/services",
            json={"namespace": namespace, "name": name},
        )

    async def register_endpoints(
        self, namespace: str, name: str, endpoints: list[Endpoint]
    ) -> None:
        await self._request(
            "register_endpoints",
            "POST",
            f"{self._service_path(namespace, name)}/endpoints",
            json={"endpoints": [e.to_registry() for e in endpoints]},
        )

    async def delete_endpoints(
        self, namespace: str, name: str, endpoints: list[Endpoint]
    ) -> None:
        await self._request(
            "delete_endpoints",
            "DELETE",
            f"{self._service_path(namespace, name)}/endpoints",
            json={"endpoints": [e.to_registry() for e in endpoints]},
        )
