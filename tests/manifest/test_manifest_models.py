"""Tests for the manifest models and their mutation operations."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from agentry.errors import ManifestValidationError
from agentry.manifest.models import (
    CommandServer,
    Manifest,
    RegistryServer,
    RemoteServer,
    SkillRef,
)


def _manifest(**overrides) -> Manifest:
    data = {
        "agentName": "dice",
        "modelProvider": "openai",
        "modelName": "gpt-4o",
        "mcpServers": [
            {"type": "remote", "name": "search", "url": "https://search.example.com/mcp"},
            {"type": "command", "name": "clock", "image": "ghcr.io/acme/clock:1"},
        ],
        "skills": [{"name": "rolling", "image": "ghcr.io/acme/rolling:1"}],
    }
    data.update(overrides)
    return Manifest.model_validate(data)


class TestManifestParsing:
    def test_camel_case_keys(self) -> None:
        m = _manifest()
        assert m.name == "dice"
        assert m.model_provider == "openai"
        assert m.version == "latest"

    def test_name_key_accepted(self) -> None:
        m = Manifest.model_validate({"name": "dice"})
        assert m.name == "dice"

    def test_serializes_agent_name(self) -> None:
        data = _manifest().model_dump(by_alias=True)
        assert data["agentName"] == "dice"
        assert "mcpServers" in data

    def test_discriminated_servers(self) -> None:
        m = _manifest()
        kinds = {s.name: type(s) for s in m.mcp_servers}
        assert kinds == {"clock": CommandServer, "search": RemoteServer}

    def test_servers_sorted_by_name(self) -> None:
        m = _manifest()
        assert [s.name for s in m.mcp_servers] == ["clock", "search"]

    def test_registry_server_defaults_name(self) -> None:
        ref = RegistryServer.model_validate(
            {"type": "registry", "registryServerName": "weather"}
        )
        assert ref.name == "weather"
        assert ref.registry_server_version == "latest"

    @pytest.mark.parametrize("name", ["d", "-dice", "dice-", "di ce", "di_ce"])
    def test_invalid_agent_name(self, name: str) -> None:
        with pytest.raises(ValidationError, match="invalid agent name"):
            Manifest.model_validate({"agentName": name})

    def test_dotted_agent_name(self) -> None:
        assert Manifest.model_validate({"agentName": "acme.dice-2"}).name == "acme.dice-2"

    def test_duplicate_server_names_case_insensitive(self) -> None:
        with pytest.raises(ValidationError, match="duplicate MCP server name"):
            _manifest(mcpServers=[
                {"type": "remote", "name": "Search", "url": "https://a"},
                {"type": "remote", "name": "search", "url": "https://b"},
            ])

    def test_has_registry_servers(self) -> None:
        assert not _manifest().has_registry_servers()
        m = _manifest(mcpServers=[{"type": "registry", "registryServerName": "weather"}])
        assert m.has_registry_servers()


class TestSourceExclusivity:
    def test_command_server_requires_a_source(self) -> None:
        with pytest.raises(ValidationError, match="requires one of image, build or command"):
            CommandServer(name="clock")

    def test_command_server_image_and_build_exclusive(self) -> None:
        with pytest.raises(ValidationError, match="only one of image or build"):
            CommandServer(name="clock", image="a", build="b")

    def test_command_server_from_registry(self) -> None:
        assert CommandServer(name="w", build="registry/w").from_registry
        assert not CommandServer(name="w", build="servers/w").from_registry

    def test_skill_requires_a_source(self) -> None:
        with pytest.raises(ValidationError, match="requires one of image, path or registrySkillName"):
            SkillRef(name="rolling")

    def test_skill_sources_exclusive(self) -> None:
        with pytest.raises(ValidationError, match="only one of image, path or registrySkillName"):
            SkillRef(name="rolling", image="a", path="./skills/rolling")

    def test_skill_requires_name(self) -> None:
        with pytest.raises(ValidationError, match="skill name is required"):
            SkillRef(image="a")

    def test_skill_kind(self) -> None:
        assert SkillRef(name="a", path="./a").kind == "path"
        assert SkillRef.model_validate({"name": "b", "registrySkillName": "b"}).kind == "registry"


class TestMutations:
    def test_add_mcp_server_returns_new_sorted_manifest(self) -> None:
        m = _manifest()
        added = m.add_mcp_server(RemoteServer(name="alpha", url="https://alpha"))
        assert [s.name for s in added.mcp_servers] == ["alpha", "clock", "search"]
        assert [s.name for s in m.mcp_servers] == ["clock", "search"]
        assert added.updated_at is not None

    def test_add_duplicate_server_leaves_manifest_unmodified(self) -> None:
        m = _manifest()
        before = m.model_dump()
        with pytest.raises(ManifestValidationError, match="already exists") as exc_info:
            m.add_mcp_server(RemoteServer(name="SEARCH", url="https://other"))
        assert exc_info.value.field == "mcpServers"
        assert m.model_dump() == before

    def test_add_duplicate_skill_fails(self) -> None:
        m = _manifest()
        with pytest.raises(ManifestValidationError, match="already exists"):
            m.add_skill(SkillRef(name="Rolling", path="./x"))
        assert len(m.skills) == 1

    def test_add_skill(self) -> None:
        m = _manifest().add_skill(SkillRef(name="alpha", path="./alpha"))
        assert [s.name for s in m.skills] == ["alpha", "rolling"]

    def test_remove_mcp_server(self) -> None:
        m = _manifest().remove_mcp_server("Clock")
        assert [s.name for s in m.mcp_servers] == ["search"]

    def test_remove_missing_skill(self) -> None:
        with pytest.raises(ManifestValidationError, match="no skill named"):
            _manifest().remove_skill("nope")

    def test_with_servers_revalidates(self) -> None:
        m = _manifest()
        with pytest.raises(ManifestValidationError, match="duplicate"):
            m.with_servers([
                RemoteServer(name="x", url="https://a"),
                RemoteServer(name="X", url="https://b"),
            ])

    def test_for_publish_strips_telemetry(self) -> None:
        m = _manifest(telemetryEndpoint="http://otel:4318")
        published = m.for_publish()
        assert published.telemetry_endpoint is None
        assert m.telemetry_endpoint == "http://otel:4318"
