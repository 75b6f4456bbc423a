"""Manifest models — the typed form of an agent project's ``agent.yaml``.

A manifest declares the agent image and model selection plus two ordered
reference lists: MCP servers and skills.  MCP server references are a tagged
union on ``type``:

* ``remote`` — reachable at a URL, nothing to build.
* ``command`` — runs as a container, built from ``build`` or taken from ``image``.
* ``registry`` — a pointer into the registry that must be resolved into one of
  the other two before anything is built or run.

Example YAML::

    agentName: dice
    modelProvider: openai
    modelName: gpt-4o
    mcpServers:
      - type: registry
        registryServerName: weather
        registryServerVersion: 1.0.0
    skills:
      - name: rolling
        image: ghcr.io/acme/rolling-skill:latest
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, Field, ValidationError, model_validator

from agentry.errors import ManifestValidationError

REGISTRY_BUILD_PREFIX = "registry/"

_AGENT_NAME_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9.-]*[a-zA-Z0-9]$")


class RemoteServer(BaseModel):
    """An MCP server reachable over HTTP."""

    model_config = {"populate_by_name": True}

    type: Literal["remote"] = "remote"
    name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    headers: dict[str, str] = {}


class CommandServer(BaseModel):
    """An MCP server run as a local container."""

    model_config = {"populate_by_name": True}

    type: Literal["command"] = "command"
    name: str = Field(min_length=1)
    image: str | None = None
    build: str | None = None
    command: str | None = None
    args: list[str] = []
    env: list[str] = []

    @model_validator(mode="after")
    def _check_source(self) -> CommandServer:
        if not (self.image or self.build or self.command):
            msg = f"command server '{self.name}' requires one of image, build or command"
            raise ValueError(msg)
        if self.image and self.build:
            msg = f"command server '{self.name}' may set only one of image or build"
            raise ValueError(msg)
        return self

    @property
    def from_registry(self) -> bool:
        """Whether the build context was materialized by registry resolution."""
        return bool(self.build and self.build.startswith(REGISTRY_BUILD_PREFIX))


class RegistryServer(BaseModel):
    """A pointer into the registry. Never runnable as-is."""

    model_config = {"populate_by_name": True}

    type: Literal["registry"] = "registry"
    name: str = Field(min_length=1)
    registry_url: str = Field(default="", alias="registryURL")
    registry_server_name: str = Field(min_length=1, alias="registryServerName")
    registry_server_version: str = Field(default="latest", alias="registryServerVersion")
    prefer_remote: bool = Field(default=False, alias="registryServerPreferRemote")

    @model_validator(mode="before")
    @classmethod
    def _default_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name"):
            server_name = data.get("registryServerName") or data.get("registry_server_name")
            if server_name:
                data = {**data, "name": server_name}
        return data


McpServerRef = Annotated[
    RemoteServer | CommandServer | RegistryServer,
    Field(discriminator="type"),
]


class SkillRef(BaseModel):
    """A skill with exactly one source: image, local path or registry skill."""

    model_config = {"populate_by_name": True}

    name: str = ""
    image: str | None = None
    path: str | None = None
    registry_url: str | None = Field(default=None, alias="registryURL")
    registry_skill_name: str | None = Field(default=None, alias="registrySkillName")
    registry_skill_version: str | None = Field(default=None, alias="registrySkillVersion")

    @model_validator(mode="after")
    def _check_source(self) -> SkillRef:
        if not self.name.strip():
            msg = "skill name is required"
            raise ValueError(msg)
        sources = [s for s in (self.image, self.path, self.registry_skill_name) if s]
        if not sources:
            msg = f"skill '{self.name}' requires one of image, path or registrySkillName"
            raise ValueError(msg)
        if len(sources) > 1:
            msg = f"skill '{self.name}' may set only one of image, path or registrySkillName"
            raise ValueError(msg)
        return self

    @property
    def kind(self) -> Literal["image", "path", "registry"]:
        if self.image:
            return "image"
        if self.path:
            return "path"
        return "registry"


class Manifest(BaseModel):
    """Validated representation of an agent project's manifest.

    Reference names are unique (case-insensitive) within each list, and both
    lists are kept sorted by name so serialized manifests diff cleanly.
    """

    model_config = {"populate_by_name": True}

    name: str = Field(
        validation_alias=AliasChoices("agentName", "name"),
        serialization_alias="agentName",
    )
    image: str = ""
    language: str = ""
    framework: str = ""
    model_provider: str = Field(default="", alias="modelProvider")
    model_name: str = Field(default="", alias="modelName")
    description: str = ""
    version: str = "latest"
    telemetry_endpoint: str | None = Field(default=None, alias="telemetryEndpoint")
    mcp_servers: list[McpServerRef] = Field(default_factory=list, alias="mcpServers")
    skills: list[SkillRef] = []
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @model_validator(mode="after")
    def _check_invariants(self) -> Manifest:
        if len(self.name) < 2 or not _AGENT_NAME_RE.match(self.name):
            msg = (
                f"invalid agent name {self.name!r}: must be at least 2 characters, start and "
                "end with alphanumeric, and contain only letters, numbers, dots and hyphens"
            )
            raise ValueError(msg)
        _check_unique("MCP server", [s.name for s in self.mcp_servers])
        _check_unique("skill", [s.name for s in self.skills])
        self.mcp_servers = sorted(self.mcp_servers, key=lambda s: s.name.lower())
        self.skills = sorted(self.skills, key=lambda s: s.name.lower())
        return self

    # -- queries -----------------------------------------------------------

    def has_registry_servers(self) -> bool:
        return any(isinstance(s, RegistryServer) for s in self.mcp_servers)

    def command_servers(self) -> list[CommandServer]:
        return [s for s in self.mcp_servers if isinstance(s, CommandServer)]

    # -- mutations (return a new manifest; self is left untouched) ---------

    def add_mcp_server(self, ref: RemoteServer | CommandServer | RegistryServer) -> Manifest:
        if _name_taken(ref.name, [s.name for s in self.mcp_servers]):
            raise ManifestValidationError(
                f"an MCP server named '{ref.name}' already exists", field="mcpServers"
            )
        return self._revalidated(mcp_servers=[*self.mcp_servers, ref])

    def remove_mcp_server(self, name: str) -> Manifest:
        remaining = [s for s in self.mcp_servers if s.name.lower() != name.lower()]
        if len(remaining) == len(self.mcp_servers):
            raise ManifestValidationError(f"no MCP server named '{name}'", field="mcpServers")
        return self._revalidated(mcp_servers=remaining)

    def add_skill(self, ref: SkillRef) -> Manifest:
        if _name_taken(ref.name, [s.name for s in self.skills]):
            raise ManifestValidationError(
                f"a skill named '{ref.name}' already exists", field="skills"
            )
        return self._revalidated(skills=[*self.skills, ref])

    def remove_skill(self, name: str) -> Manifest:
        remaining = [s for s in self.skills if s.name.lower() != name.lower()]
        if len(remaining) == len(self.skills):
            raise ManifestValidationError(f"no skill named '{name}'", field="skills")
        return self._revalidated(skills=remaining)

    def with_servers(self, servers: list[RemoteServer | CommandServer | RegistryServer]) -> Manifest:
        """Return a copy whose MCP server list is replaced by *servers*."""
        return self._revalidated(mcp_servers=servers)

    def for_publish(self) -> Manifest:
        """Return a copy without runtime-only fields (telemetry endpoint)."""
        return self.model_copy(update={"telemetry_endpoint": None})

    def _revalidated(self, **changes: Any) -> Manifest:
        data = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(changes)
        data["updated_at"] = datetime.now(UTC)
        try:
            return Manifest.model_validate(data)
        except ValidationError as exc:
            raise manifest_error_from(exc) from exc


def manifest_error_from(exc: ValidationError) -> ManifestValidationError:
    """Convert the first pydantic error into a :class:`ManifestValidationError`."""
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    detail = first.get("msg", str(exc)).removeprefix("Value error, ")
    return ManifestValidationError(detail, field=field)


def _name_taken(name: str, existing: list[str]) -> bool:
    return name.lower() in {n.lower() for n in existing}


def _check_unique(kind: str, names: list[str]) -> None:
    seen: set[str] = set()
    for name in names:
        key = name.lower()
        if key in seen:
            msg = f"duplicate {kind} name '{name}'"
            raise ValueError(msg)
        seen.add(key)
