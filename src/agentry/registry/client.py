"""RegistryClient — async access to the registry API over httpx."""

from __future__ import annotations

import logging
from typing import Any, Literal
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from agentry.errors import RegistryError, RegistryNotFoundError
from agentry.registry.models import (
    AgentDefinition,
    Deployment,
    DeploymentRequest,
    DeploymentStatus,
    ServerDefinition,
    SkillDefinition,
)

logger = logging.getLogger(__name__)


def _segment(value: str) -> str:
    return quote(value, safe="")


class RegistryClient:
    """Talks to the registry's ``/v0`` API.

    Every failure, whether a transport error, a non-success status or an
    unparseable body, surfaces as :class:`RegistryError` (or
    :class:`RegistryNotFoundError` for 404s) with the underlying message.

    Usage::

        async with RegistryClient("http://localhost:12121/v0") as registry:
            server = await registry.get_server("weather", "1.0.0")
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def for_url(self, base_url: str) -> RegistryClient:
        """A client for another registry sharing this one's token, timeout and transport."""
        return RegistryClient(
            base_url, token=self._token, timeout=self._timeout, transport=self._transport
        )

    async def __aenter__(self) -> RegistryClient:
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *_: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "RegistryClient must be used as an async context manager"
            raise RuntimeError(msg)
        return self._client

    # -- resources ---------------------------------------------------------

    async def get_server(self, name: str, version: str) -> ServerDefinition:
        """Fetch an MCP server definition by name and version."""
        data = await self._request(
            "GET", f"/servers/{_segment(name)}/versions/{_segment(version)}",
            operation=f"get server {name}@{version}",
        )
        return self._parse(ServerDefinition, data.get("server", data), f"get server {name}")

    async def get_agent(self, name: str, version: str = "latest") -> AgentDefinition:
        """Fetch an agent (manifest plus version) by name and version."""
        operation = f"get agent {name}@{version}"
        data = await self._request(
            "GET", f"/agents/{_segment(name)}/versions/{_segment(version)}",
            operation=operation,
        )
        payload = data.get("agent", data)
        try:
            return AgentDefinition.from_payload(payload)
        except ValidationError as exc:
            raise RegistryError(operation, f"invalid response: {exc}") from exc

    async def get_skill(self, name: str, version: str = "latest") -> SkillDefinition:
        """Fetch a skill definition by name and version."""
        data = await self._request(
            "GET", f"/skills/{_segment(name)}/versions/{_segment(version)}",
            operation=f"get skill {name}@{version}",
        )
        return self._parse(SkillDefinition, data.get("skill", data), f"get skill {name}")

    # -- deployments -------------------------------------------------------

    async def create_deployment(self, request: DeploymentRequest) -> Deployment:
        """Create (or update) a deployment record; the registry starts it ``deploying``."""
        operation = f"deploy {request.resource_type} {request.resource_name}@{request.version}"
        data = await self._request(
            "POST", "/deployments",
            json=request.model_dump(by_alias=True, mode="json"),
            operation=operation,
        )
        return self._parse(Deployment, data, operation)

    async def update_deployment(
        self,
        deployment_id: str,
        *,
        status: DeploymentStatus,
        error: str = "",
    ) -> Deployment:
        """Move a deployment record to *status*."""
        operation = f"update deployment {deployment_id}"
        body: dict[str, Any] = {"status": status.value}
        if error:
            body["error"] = error
        data = await self._request(
            "PATCH", f"/deployments/{_segment(deployment_id)}", json=body, operation=operation
        )
        return self._parse(Deployment, data, operation)

    async def list_deployments(
        self,
        *,
        resource_type: Literal["agent", "mcp"] | None = None,
        provider_id: str | None = None,
        resource_name: str | None = None,
    ) -> list[Deployment]:
        """List deployment records, optionally filtered."""
        params = {
            key: value
            for key, value in (
                ("resourceType", resource_type),
                ("providerId", provider_id),
                ("resourceName", resource_name),
            )
            if value
        }
        data = await self._request(
            "GET", "/deployments", params=params, operation="list deployments"
        )
        items = data.get("deployments") or []
        return [self._parse(Deployment, item, "list deployments") for item in items]

    async def get_deployment(
        self,
        name: str,
        version: str,
        resource_type: Literal["agent", "mcp"],
    ) -> Deployment | None:
        """Return the deployment of (*name*, *version*) or ``None`` if not deployed."""
        deployments = await self.list_deployments(resource_type=resource_type, resource_name=name)
        for deployment in deployments:
            if deployment.resource_name == name and deployment.version == version:
                return deployment
        return None

    async def delete_deployment(self, deployment_id: str) -> None:
        """Delete a deployment record by id."""
        await self._request(
            "DELETE", f"/deployments/{_segment(deployment_id)}",
            operation=f"delete deployment {deployment_id}",
        )

    # -- plumbing ----------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        **kwargs: Any,
    ) -> dict[str, Any]:
        logger.debug("registry %s %s", method, path)
        try:
            response = await self._http().request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise RegistryError(operation, str(exc)) from exc

        if response.status_code == 404:
            raise RegistryNotFoundError(operation, "not found", status_code=404)
        if response.is_error:
            detail = response.text.strip() or response.reason_phrase
            raise RegistryError(operation, detail, status_code=response.status_code)

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            raise RegistryError(operation, f"invalid JSON response: {exc}") from exc
        if not isinstance(data, dict):
            raise RegistryError(operation, "unexpected response shape")
        return data

    @staticmethod
    def _parse(model: Any, data: Any, operation: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise RegistryError(operation, f"invalid response: {exc}") from exc
