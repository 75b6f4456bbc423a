"""AgentRunner — the fixed resolve → build → render → run sequence.

Two entry points mirror the two ways an agent is run locally:

* :meth:`AgentRunner.run_from_directory` works on a project checkout.  Build
  contexts and ``mcp-servers.json`` are written inside the project.
* :meth:`AgentRunner.run_from_registry` fetches the agent from the registry
  and resolves into a temporary workspace that is removed afterwards.

The ``start_*`` methods run the same pipeline but leave the topology up;
the deployment dispatcher uses them for local deployments.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path

from rich.console import Console

from agentry.build.builder import ImageBuilder
from agentry.config import RuntimeConfig
from agentry.credentials import validate_credentials
from agentry.errors import ResolutionError
from agentry.manifest.loader import load_manifest
from agentry.manifest.models import CommandServer, Manifest, RegistryServer
from agentry.registry.client import RegistryClient
from agentry.registry.models import AgentDefinition
from agentry.resolve.recipes import DOCKERFILE
from agentry.resolve.resolver import ReferenceResolver
from agentry.resolve.workspace import resolution_workspace
from agentry.runtime.local import LocalRuntimeManager
from agentry.topology.renderer import primary_image, render_server_topology, render_topology
from agentry.utils.naming import kebab_case
from agentry.utils.telemetry import ATTR_AGENT_NAME, ATTR_VERSION, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class AgentRunner:
    """Run agents (and single MCP servers) on the local container runtime."""

    def __init__(
        self,
        config: RuntimeConfig,
        registry: RegistryClient,
        *,
        builder: ImageBuilder | None = None,
        runtime: LocalRuntimeManager | None = None,
        console: Console | None = None,
    ) -> None:
        self._config = config
        self._registry = registry
        self._builder = builder or ImageBuilder(
            docker_binary=config.docker_binary, verbose=config.verbose
        )
        self._console = console or Console(stderr=True)
        self._runtime = runtime or LocalRuntimeManager(config, console=self._console)

    @property
    def runtime(self) -> LocalRuntimeManager:
        return self._runtime

    async def run_from_directory(
        self,
        project_dir: Path,
        *,
        cancel: asyncio.Event | None = None,
    ) -> None:
        """Run the agent defined in *project_dir* interactively."""
        manifest = load_manifest(project_dir)
        validate_credentials(manifest.model_provider, self._config.environ)

        with _tracer.start_as_current_span("agentry.run_from_directory") as span:
            span.set_attribute(ATTR_AGENT_NAME, manifest.name)
            resolved, document = await self._prepare(
                manifest, workspace=project_dir, config_root=project_dir
            )
            if (project_dir / DOCKERFILE).is_file():
                await self._builder.build_agent_image(
                    resolved.name, primary_image(resolved), project_dir
                )
            await self._runtime.run_interactive(resolved.name, document, cancel=cancel)

    async def run_from_registry(
        self,
        name: str,
        version: str = "latest",
        *,
        cancel: asyncio.Event | None = None,
    ) -> None:
        """Fetch *name* from the registry and run it interactively."""
        definition = await self._registry.get_agent(name, version)
        manifest = definition.manifest
        validate_credentials(manifest.model_provider, self._config.environ)

        with _tracer.start_as_current_span("agentry.run_from_registry") as span:
            span.set_attribute(ATTR_AGENT_NAME, manifest.name)
            span.set_attribute(ATTR_VERSION, definition.version)
            with resolution_workspace() as workspace:
                resolved, document = await self._prepare(
                    manifest,
                    workspace=workspace,
                    config_root=workspace,
                    version=definition.version,
                )
                await self._runtime.run_interactive(resolved.name, document, cancel=cancel)

    async def start_agent(
        self,
        definition: AgentDefinition,
        *,
        extra_env: Mapping[str, str] | None = None,
        cancel: asyncio.Event | None = None,
    ) -> None:
        """Bring a registry agent up detached and wait until it is healthy.

        The resolved-server config lives under ``state_dir`` because the
        running containers keep mounting it after this call returns.
        """
        manifest = definition.manifest
        with resolution_workspace() as workspace:
            resolved, document = await self._prepare(
                manifest,
                workspace=workspace,
                config_root=self._config.state_dir,
                version=definition.version,
                extra_env=extra_env,
            )
            await self._runtime.start_detached(resolved.name, document, cancel=cancel)

    async def start_server(
        self,
        name: str,
        version: str,
        *,
        prefer_remote: bool = False,
        env: Mapping[str, str] | None = None,
    ) -> bool:
        """Run one registry MCP server detached.

        Returns ``False`` when the server resolves to a remote endpoint and so
        there is nothing to run locally.
        """
        owner = kebab_case(name)
        holder = Manifest(
            name=owner,
            mcp_servers=[
                RegistryServer(
                    name=owner,
                    registry_server_name=name,
                    registry_server_version=version,
                    prefer_remote=prefer_remote,
                )
            ],
        )
        with resolution_workspace() as workspace:
            resolver = ReferenceResolver(self._registry, workspace)
            result = await resolver.resolve(holder, version=version)
            server = result.manifest.mcp_servers[0]
            if not isinstance(server, CommandServer):
                logger.info("MCP server %s resolved to a remote endpoint", name)
                return False
            await self._builder.build_resolved_servers(owner, [server], workspace)
            document = render_server_topology(server, owner=owner, version=version, env=env)
            await self._runtime.start_detached(name, document, wait=False)
        return True

    async def _prepare(
        self,
        manifest: Manifest,
        *,
        workspace: Path,
        config_root: Path,
        version: str = "",
        extra_env: Mapping[str, str] | None = None,
    ) -> tuple[Manifest, bytes]:
        resolver = ReferenceResolver(self._registry, workspace, config_root=config_root)
        result = await resolver.resolve(manifest, version=version)
        if result.manifest.has_registry_servers():
            raise ResolutionError(manifest.name, "registry references left after resolution")

        await self._builder.build_resolved_servers(
            result.manifest.name, result.build_targets, workspace
        )
        config_dir = result.config_path.parent if result.config_path else None
        document = render_topology(
            result.manifest,
            version=version,
            agent_port=self._config.agent_port,
            config_dir=config_dir,
            extra_env=extra_env,
        )
        return result.manifest, document
