"""TopologyRenderer — render a compose document for an agent and its MCP peers.

The rendered bytes are fed to the compose tool on standard input, so the
document must be complete on its own: it names images that are already
built and never refers to other compose files or env files.  The one host
path it mounts is the resolved-server config directory, when there is one.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path  # noqa: TC003
from typing import Any

import yaml

from agentry.build.naming import agent_image_name, mcp_server_image_name
from agentry.credentials import api_key_env_var
from agentry.errors import ManifestValidationError
from agentry.manifest.models import CommandServer, Manifest, RegistryServer
from agentry.resolve.recipes import MCP_PORT
from agentry.utils.naming import kebab_case, sanitize_version, service_name

CONFIG_MOUNT = "/config"
TELEMETRY_ENV_VAR = "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT"


def env_vars_from_manifest(manifest: Manifest) -> dict[str, str]:
    """Environment implied by the manifest.

    The provider API key is passed through by reference (``${KEY}``) so its
    value is interpolated by the compose tool and never written into the
    document.
    """
    env: dict[str, str] = {}
    if manifest.model_provider:
        env["MODEL_PROVIDER"] = manifest.model_provider
    if manifest.model_name:
        env["MODEL_NAME"] = manifest.model_name
    key_var = api_key_env_var(manifest.model_provider)
    if key_var:
        env[key_var] = "${" + key_var + "}"
    if manifest.telemetry_endpoint:
        env[TELEMETRY_ENV_VAR] = manifest.telemetry_endpoint
    return env


def compose_project_name(agent_name: str, version: str = "") -> str:
    """Compose project names allow only lowercase letters, digits, ``-`` and ``_``."""
    base = kebab_case(agent_name)
    if version:
        return f"{base}-{kebab_case(sanitize_version(version))}"
    return base


def primary_image(manifest: Manifest, version: str = "") -> str:
    """The manifest's explicit image, or one derived from the agent name."""
    return manifest.image or agent_image_name(manifest.name, version)


def render_topology(
    manifest: Manifest,
    *,
    version: str = "",
    image: str | None = None,
    agent_port: int = 8080,
    config_dir: Path | None = None,
    extra_env: Mapping[str, str] | None = None,
) -> bytes:
    """Render the compose document for *manifest*.

    Args:
        manifest: A resolved manifest (no registry references left).
        version: Agent version; empty for directory runs.
        image: Image for the agent service; defaults to :func:`primary_image`.
        agent_port: Port published for the agent.
        config_dir: Host directory holding ``mcp-servers.json``, mounted read-only.
        extra_env: Additional environment for the agent service.
    """
    for server in manifest.mcp_servers:
        if isinstance(server, RegistryServer):
            raise ManifestValidationError(
                f"MCP server '{server.name}' is still registry-typed; resolve it first",
                field="mcpServers",
            )

    peers = manifest.command_servers()
    environment = {**env_vars_from_manifest(manifest), **(extra_env or {})}

    agent_service: dict[str, Any] = {
        "image": image or primary_image(manifest, version),
        "ports": [f"{agent_port}:{agent_port}"],
        "environment": dict(sorted(environment.items())),
    }
    if config_dir is not None:
        agent_service["volumes"] = [f"{config_dir.resolve()}:{CONFIG_MOUNT}:ro"]
    if peers:
        agent_service["depends_on"] = [service_name(p.name) for p in peers]

    services: dict[str, Any] = {manifest.name: agent_service}
    for peer in peers:
        name = service_name(peer.name)
        if name in services:
            raise ManifestValidationError(
                f"duplicate service name '{name}'", field="mcpServers"
            )
        services[name] = _peer_service(manifest.name, peer)

    document = {
        "name": compose_project_name(manifest.name, version),
        "services": services,
    }
    return yaml.safe_dump(document, sort_keys=False).encode("utf-8")


def _peer_service(agent_name: str, server: CommandServer) -> dict[str, Any]:
    if server.build:
        image = mcp_server_image_name(agent_name, server.name)
    elif server.image:
        image = server.image
    else:
        raise ManifestValidationError(
            f"command server '{server.name}' needs an image or build to run as a container",
            field="mcpServers",
        )

    service: dict[str, Any] = {"image": image}
    if server.command:
        service["command"] = [server.command, *server.args]
    elif server.args:
        service["command"] = list(server.args)
    if server.env:
        service["environment"] = sorted(server.env)
    return service


def render_server_topology(
    server: CommandServer,
    *,
    owner: str,
    version: str = "",
    port: int = MCP_PORT,
    env: Mapping[str, str] | None = None,
) -> bytes:
    """Render a document running a single MCP server on its own.

    *owner* is the name the server's image was built under (see
    :func:`~agentry.build.naming.mcp_server_image_name`).  The container port
    is published on an ephemeral host port.
    """
    service = _peer_service(owner, server)
    if env:
        overridden = set(env)
        kept = [
            entry for entry in service.get("environment", [])
            if entry.partition("=")[0] not in overridden
        ]
        service["environment"] = sorted(kept + [f"{k}={v}" for k, v in env.items()])
    service["ports"] = [str(port)]
    document = {
        "name": compose_project_name(server.name, version),
        "services": {service_name(server.name): service},
    }
    return yaml.safe_dump(document, sort_keys=False).encode("utf-8")
