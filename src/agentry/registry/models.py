"""Registry API payloads — server definitions, agents, skills and deployments.

Server definitions follow the MCP registry ``server.json`` shape: a server is
runnable either from one of its ``packages`` (npm, pypi, oci) or through one of
its ``remotes``.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field

from agentry.manifest.models import Manifest

# ---------------------------------------------------------------------------
# Server definitions
# ---------------------------------------------------------------------------


class KeyValueInput(BaseModel):
    """A named value (header or environment variable) with optional default."""

    model_config = {"populate_by_name": True}

    name: str
    value: str | None = None
    default: str | None = None
    description: str = ""
    is_required: bool = Field(default=False, alias="isRequired")
    is_secret: bool = Field(default=False, alias="isSecret")


class PackageArgument(BaseModel):
    """A positional or named argument passed to a package at launch."""

    model_config = {"populate_by_name": True}

    type: Literal["positional", "named"] = "positional"
    name: str | None = None
    value: str | None = None
    default: str | None = None


class Transport(BaseModel):
    """How a package or remote speaks MCP."""

    type: str = "stdio"
    url: str | None = None
    headers: list[KeyValueInput] = []


class Package(BaseModel):
    """A runnable distribution of a server."""

    model_config = {"populate_by_name": True}

    registry_type: str = Field(alias="registryType")
    identifier: str
    version: str = ""
    transport: Transport = Field(default_factory=Transport)
    runtime_hint: str | None = Field(default=None, alias="runtimeHint")
    environment_variables: list[KeyValueInput] = Field(
        default_factory=list, alias="environmentVariables"
    )
    package_arguments: list[PackageArgument] = Field(
        default_factory=list, alias="packageArguments"
    )


class Remote(BaseModel):
    """A hosted endpoint of a server."""

    type: str = "streamable-http"
    url: str
    headers: list[KeyValueInput] = []


class ServerDefinition(BaseModel):
    """A server as published in the registry."""

    model_config = {"populate_by_name": True}

    name: str
    version: str = ""
    description: str = ""
    title: str = ""
    packages: list[Package] = []
    remotes: list[Remote] = []


class SkillDefinition(BaseModel):
    """A skill as published in the registry."""

    name: str
    version: str = ""
    description: str = ""
    image: str | None = None


class AgentDefinition(BaseModel):
    """An agent as published in the registry: its manifest plus version."""

    manifest: Manifest
    version: str = "latest"

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> AgentDefinition:
        version = str(data.get("version") or "latest")
        return cls(manifest=Manifest.model_validate(data), version=version)


# ---------------------------------------------------------------------------
# Deployments
# ---------------------------------------------------------------------------


class DeploymentStatus(StrEnum):
    DEPLOYING = "deploying"
    DEPLOYED = "deployed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    DISCOVERED = "discovered"


class DeploymentOrigin(StrEnum):
    MANAGED = "managed"
    DISCOVERED = "discovered"


LOCAL_PROVIDER_ID = "local"


def is_local_provider(provider_id: str | None) -> bool:
    """Empty and ``"local"`` provider ids both mean local execution."""
    return not provider_id or provider_id == LOCAL_PROVIDER_ID


class Deployment(BaseModel):
    """The provider-agnostic deployment record kept by the registry."""

    model_config = {"populate_by_name": True}

    id: str
    resource_name: str = Field(alias="serverName")
    version: str
    resource_type: Literal["agent", "mcp"] = Field(default="mcp", alias="resourceType")
    provider_id: str = Field(default="", alias="providerId")
    status: DeploymentStatus = DeploymentStatus.DEPLOYING
    origin: DeploymentOrigin = DeploymentOrigin.MANAGED
    cloud_metadata: dict[str, Any] = Field(default_factory=dict, alias="cloudMetadata")
    env: dict[str, str] = {}
    provider_config: dict[str, Any] = Field(default_factory=dict, alias="providerConfig")
    prefer_remote: bool = Field(default=False, alias="preferRemote")
    deployed_by: str = Field(default="", alias="deployedBy")
    error: str = ""
    deployed_at: datetime | None = Field(default=None, alias="deployedAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @property
    def is_local(self) -> bool:
        return is_local_provider(self.provider_id)


class DeploymentRequest(BaseModel):
    """Body of ``POST /deployments``."""

    model_config = {"populate_by_name": True}

    resource_name: str = Field(alias="serverName")
    version: str
    resource_type: Literal["agent", "mcp"] = Field(alias="resourceType")
    provider_id: str = Field(default=LOCAL_PROVIDER_ID, alias="providerId")
    env: dict[str, str] = {}
    provider_config: dict[str, Any] = Field(default_factory=dict, alias="providerConfig")
    prefer_remote: bool = Field(default=False, alias="preferRemote")
