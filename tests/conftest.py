"""Shared fixtures: an in-memory registry served through ``httpx.MockTransport``."""

from __future__ import annotations

import json
from itertools import count
from typing import Any

import httpx
import pytest

from agentry.registry.client import RegistryClient

REGISTRY_URL = "http://registry.test/v0"

WEATHER_SERVER: dict[str, Any] = {
    "name": "weather",
    "version": "1.0.0",
    "description": "Weather forecasts",
    "packages": [
        {
            "registryType": "npm",
            "identifier": "@example/weather-mcp",
            "version": "1.0.0",
            "transport": {"type": "stdio"},
            "environmentVariables": [{"name": "UNITS", "default": "metric"}],
        }
    ],
}

SEARCH_SERVER: dict[str, Any] = {
    "name": "search",
    "version": "2.0.0",
    "remotes": [
        {
            "type": "streamable-http",
            "url": "https://search.example.com/mcp",
            "headers": [{"name": "X-Api-Key", "value": "secret"}],
        }
    ],
}

DICE_AGENT: dict[str, Any] = {
    "agentName": "dice",
    "version": "1.0.0",
    "image": "ghcr.io/acme/dice:1.0.0",
    "modelProvider": "openai",
    "modelName": "gpt-4o",
    "mcpServers": [
        {"type": "registry", "registryServerName": "weather", "registryServerVersion": "1.0.0"},
    ],
}


class FakeRegistry:
    """Just enough of the registry API for the client, resolver and dispatcher."""

    def __init__(self) -> None:
        self.servers: dict[tuple[str, str], dict[str, Any]] = {}
        self.agents: dict[tuple[str, str], dict[str, Any]] = {}
        self.deployments: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self._ids = count(1)

    def client(self) -> RegistryClient:
        return RegistryClient(REGISTRY_URL, transport=httpx.MockTransport(self.handler))

    def calls(self, method: str, prefix: str = "") -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.removeprefix("/v0").startswith(prefix)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.removeprefix("/v0").strip("/").split("/")

        if request.method == "GET" and len(parts) == 4 and parts[2] == "versions":
            kind, name, _, version = parts
            store = {"servers": self.servers, "agents": self.agents}.get(kind, {})
            payload = store.get((name, version))
            if payload is None:
                return httpx.Response(404, json={"detail": "not found"})
            return httpx.Response(200, json={kind[:-1]: payload})

        if parts == ["deployments"]:
            if request.method == "GET":
                return httpx.Response(200, json={"deployments": self._filtered(request)})
            if request.method == "POST":
                record = {
                    "id": f"dep-{next(self._ids)}",
                    **json.loads(request.content),
                    "status": "deploying",
                }
                self.deployments.append(record)
                return httpx.Response(201, json=record)

        if len(parts) == 2 and parts[0] == "deployments":
            record = next((d for d in self.deployments if d["id"] == parts[1]), None)
            if record is None:
                return httpx.Response(404)
            if request.method == "PATCH":
                record.update(json.loads(request.content))
                return httpx.Response(200, json=record)
            if request.method == "DELETE":
                self.deployments.remove(record)
                return httpx.Response(204)

        return httpx.Response(404)

    def _filtered(self, request: httpx.Request) -> list[dict[str, Any]]:
        params = request.url.params
        records = self.deployments
        for param, key in (
            ("resourceType", "resourceType"),
            ("providerId", "providerId"),
            ("resourceName", "serverName"),
        ):
            if param in params:
                records = [d for d in records if d.get(key) == params[param]]
        return records


@pytest.fixture
def fake_registry() -> FakeRegistry:
    registry = FakeRegistry()
    registry.servers[("weather", "1.0.0")] = WEATHER_SERVER
    registry.servers[("search", "2.0.0")] = SEARCH_SERVER
    registry.agents[("dice", "1.0.0")] = DICE_AGENT
    registry.agents[("dice", "latest")] = DICE_AGENT
    return registry
