"""Tests for the compose topology renderer."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import yaml

from agentry.errors import ManifestValidationError
from agentry.manifest.models import CommandServer, Manifest
from agentry.topology.renderer import (
    compose_project_name,
    env_vars_from_manifest,
    render_server_topology,
    render_topology,
)

if TYPE_CHECKING:
    from pathlib import Path


def _manifest(**overrides) -> Manifest:
    data = {
        "agentName": "dice",
        "modelProvider": "openai",
        "modelName": "gpt-4o",
        "mcpServers": [
            {"type": "command", "name": "weather", "build": "registry/weather"},
            {"type": "command", "name": "clock", "image": "ghcr.io/acme/clock:1", "env": ["TZ=UTC"]},
            {"type": "remote", "name": "search", "url": "https://search.example.com/mcp"},
        ],
    }
    data.update(overrides)
    return Manifest.model_validate(data)


def _render(manifest: Manifest, **kwargs) -> dict:
    return yaml.safe_load(render_topology(manifest, **kwargs))


class TestEnvVars:
    def test_provider_key_is_a_reference(self) -> None:
        env = env_vars_from_manifest(_manifest())
        assert env["OPENAI_API_KEY"] == "${OPENAI_API_KEY}"
        assert env["MODEL_PROVIDER"] == "openai"
        assert env["MODEL_NAME"] == "gpt-4o"

    def test_telemetry_endpoint(self) -> None:
        env = env_vars_from_manifest(_manifest(telemetryEndpoint="http://otel:4318/v1/traces"))
        assert env["OTEL_EXPORTER_OTLP_TRACES_ENDPOINT"] == "http://otel:4318/v1/traces"

    def test_provider_without_key(self) -> None:
        env = env_vars_from_manifest(_manifest(modelProvider="ollama"))
        assert not any(k.endswith("_API_KEY") for k in env)


class TestRenderTopology:
    def test_returns_bytes(self) -> None:
        assert isinstance(render_topology(_manifest()), bytes)

    def test_agent_service(self) -> None:
        doc = _render(_manifest())
        agent = doc["services"]["dice"]
        assert doc["name"] == "dice"
        assert agent["image"] == "dice:latest"
        assert agent["ports"] == ["8080:8080"]
        assert agent["depends_on"] == ["clock", "weather"]
        assert "volumes" not in agent

    def test_explicit_image_wins(self) -> None:
        doc = _render(_manifest(image="ghcr.io/acme/dice:1.0.0"), version="1.0.0")
        assert doc["services"]["dice"]["image"] == "ghcr.io/acme/dice:1.0.0"

    def test_peer_services(self) -> None:
        services = _render(_manifest())["services"]
        assert set(services) == {"dice", "weather", "clock"}
        assert services["weather"]["image"] == "dice-weather:latest"
        assert services["clock"] == {"image": "ghcr.io/acme/clock:1", "environment": ["TZ=UTC"]}

    def test_command_and_args(self) -> None:
        manifest = _manifest(mcpServers=[
            {"type": "command", "name": "fs", "image": "fs:1", "command": "serve", "args": ["--root", "/data"]},
        ])
        assert _render(manifest)["services"]["fs"]["command"] == ["serve", "--root", "/data"]

    def test_versioned_project_name(self) -> None:
        doc = _render(_manifest(), version="1.0.0+build/7")
        assert doc["name"] == "dice-1-0-0-build-7"
        assert doc["services"]["dice"]["image"] == "dice:1.0.0-build-7"

    def test_config_mount(self, tmp_path: Path) -> None:
        doc = _render(_manifest(), config_dir=tmp_path)
        assert doc["services"]["dice"]["volumes"] == [f"{tmp_path.resolve()}:/config:ro"]

    def test_extra_env_and_port(self) -> None:
        doc = _render(_manifest(), agent_port=9090, extra_env={"KAGENT_NAMESPACE": "prod"})
        agent = doc["services"]["dice"]
        assert agent["ports"] == ["9090:9090"]
        assert agent["environment"]["KAGENT_NAMESPACE"] == "prod"

    def test_deterministic(self) -> None:
        assert render_topology(_manifest()) == render_topology(_manifest())

    def test_rejects_unresolved_registry_refs(self) -> None:
        manifest = _manifest(mcpServers=[{"type": "registry", "registryServerName": "weather"}])
        with pytest.raises(ManifestValidationError, match="resolve it first"):
            render_topology(manifest)

    def test_command_only_server_rejected(self) -> None:
        manifest = _manifest(mcpServers=[{"type": "command", "name": "local", "command": "serve"}])
        with pytest.raises(ManifestValidationError, match="needs an image or build"):
            render_topology(manifest)


class TestServerTopology:
    def test_single_service(self) -> None:
        server = CommandServer(name="weather", build="registry/weather", env=["UNITS=metric", "KEEP=1"])
        doc = yaml.safe_load(
            render_server_topology(server, owner="weather", version="1.0.0", env={"UNITS": "imperial"})
        )
        assert doc["name"] == "weather-1-0-0"
        service = doc["services"]["weather"]
        assert service["image"] == "weather-weather:latest"
        assert service["ports"] == ["3000"]
        assert service["environment"] == ["KEEP=1", "UNITS=imperial"]


class TestProjectName:
    def test_name_only(self) -> None:
        assert compose_project_name("Acme.Dice") == "acme-dice"

    def test_slashes_and_dots(self) -> None:
        once = compose_project_name("io.example/Weather", "1.0")
        assert once == "io-example-weather-1-0"
