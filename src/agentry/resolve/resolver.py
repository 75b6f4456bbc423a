"""ReferenceResolver — turn registry-typed MCP server references into runnable ones.

Resolution is all-or-nothing: every registry reference is fetched before
anything is written, and build contexts written by a failed invocation are
removed again.  A manifest without registry references is returned unchanged
and any stale ``mcp-servers.json`` from an earlier run is deleted.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from agentry.errors import RegistryError, ResolutionError
from agentry.manifest.models import (
    REGISTRY_BUILD_PREFIX,
    CommandServer,
    Manifest,
    RegistryServer,
    RemoteServer,
)
from agentry.registry.client import RegistryClient
from agentry.registry.models import Package, Remote, ServerDefinition
from agentry.resolve.recipes import UnsupportedPackageError, write_build_context
from agentry.resolve.server_config import remove_server_config, write_server_config
from agentry.utils.naming import sanitize_segment
from agentry.utils.telemetry import ATTR_AGENT_NAME, ATTR_SERVER_NAME, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


@dataclass
class ResolutionResult:
    """Output of :meth:`ReferenceResolver.resolve`."""

    manifest: Manifest
    build_targets: list[CommandServer] = field(default_factory=list)
    config_path: Path | None = None

    @property
    def resolved(self) -> bool:
        """Whether any registry reference was resolved."""
        return self.config_path is not None


@dataclass
class _Choice:
    reference: RegistryServer
    definition: ServerDefinition
    remote: Remote | None = None
    package: Package | None = None


class ReferenceResolver:
    """Resolve registry references against the registry into a workspace.

    Build contexts are written to ``<workspace>/registry/<server-name>/`` and
    the resolved-server config under *config_root* (defaults to the workspace).
    """

    def __init__(
        self,
        registry: RegistryClient,
        workspace: Path,
        *,
        config_root: Path | None = None,
    ) -> None:
        self._registry = registry
        self._workspace = workspace
        self._config_root = config_root or workspace

    @property
    def workspace(self) -> Path:
        return self._workspace

    async def resolve(self, manifest: Manifest, *, version: str = "") -> ResolutionResult:
        """Resolve every registry reference in *manifest*.

        Args:
            manifest: The manifest to resolve; it is not modified.
            version: The agent version for versioned (registry) runs, or
                ``""`` for directory runs.

        Raises:
            ResolutionError: If any reference cannot be fetched or built.
        """
        with _tracer.start_as_current_span("agentry.resolve") as span:
            span.set_attribute(ATTR_AGENT_NAME, manifest.name)

            if not manifest.has_registry_servers():
                remove_server_config(self._config_root, manifest.name, version=version)
                return ResolutionResult(manifest=manifest)

            choices: dict[str, _Choice] = {}
            for ref in manifest.mcp_servers:
                if isinstance(ref, RegistryServer):
                    choices[ref.name] = await self._choose(ref)

            return self._materialize(manifest, choices, version)

    async def _choose(self, ref: RegistryServer) -> _Choice:
        with _tracer.start_as_current_span("agentry.resolve.fetch") as span:
            span.set_attribute(ATTR_SERVER_NAME, ref.name)
            definition = await self._fetch(ref)

        use_remote = bool(definition.remotes) and (ref.prefer_remote or not definition.packages)
        if use_remote:
            return _Choice(ref, definition, remote=definition.remotes[0])
        if definition.packages:
            return _Choice(ref, definition, package=definition.packages[0])
        raise ResolutionError(ref.name, "registry entry has no packages or remotes")

    async def _fetch(self, ref: RegistryServer) -> ServerDefinition:
        name, version = ref.registry_server_name, ref.registry_server_version
        logger.info("Resolving MCP server %s (%s@%s)", ref.name, name, version)
        try:
            if ref.registry_url and ref.registry_url.rstrip("/") != self._registry.base_url:
                async with self._registry.for_url(ref.registry_url) as other:
                    return await other.get_server(name, version)
            return await self._registry.get_server(name, version)
        except RegistryError as exc:
            raise ResolutionError(ref.name, str(exc)) from exc

    def _materialize(
        self,
        manifest: Manifest,
        choices: dict[str, _Choice],
        version: str,
    ) -> ResolutionResult:
        servers: list[RemoteServer | CommandServer | RegistryServer] = []
        resolved: list[RemoteServer | CommandServer] = []
        targets: list[CommandServer] = []
        written: list[Path] = []

        try:
            for ref in manifest.mcp_servers:
                match ref:
                    case RegistryServer(name=name):
                        server = self._materialize_one(choices[name], written)
                        if isinstance(server, CommandServer):
                            targets.append(server)
                        resolved.append(server)
                        servers.append(server)
                    case RemoteServer() | CommandServer():
                        servers.append(ref)

            result = manifest.with_servers(servers)
            config_path = write_server_config(
                self._config_root, manifest.name, resolved, version=version
            )
        except Exception:
            for directory in written:
                shutil.rmtree(directory, ignore_errors=True)
            raise

        return ResolutionResult(manifest=result, build_targets=targets, config_path=config_path)

    def _materialize_one(
        self,
        choice: _Choice,
        written: list[Path],
    ) -> RemoteServer | CommandServer:
        ref = choice.reference
        if choice.remote is not None:
            headers = {
                h.name: value
                for h in choice.remote.headers
                if (value := h.value or h.default) is not None
            }
            return RemoteServer(name=ref.name, url=choice.remote.url, headers=headers)

        assert choice.package is not None
        build = REGISTRY_BUILD_PREFIX + sanitize_segment(ref.name)
        directory = self._workspace / build
        try:
            write_build_context(directory, choice.definition, choice.package)
        except UnsupportedPackageError as exc:
            raise ResolutionError(ref.name, str(exc)) from exc
        except OSError as exc:
            written.append(directory)
            raise ResolutionError(ref.name, f"cannot write build context: {exc}") from exc
        written.append(directory)
        logger.info("Materialized build context for %s at %s", ref.name, directory)
        return CommandServer(name=ref.name, build=build)
