"""ImageBuildOrchestrator — build images for registry-resolved MCP servers.

Builds run one at a time in manifest order.  The first failure aborts the
remaining builds; images already built are kept, and because image names are
deterministic a retry simply rebuilds under the same tags.
"""

from __future__ import annotations

import logging
from pathlib import Path

from agentry.build.naming import mcp_server_image_name
from agentry.errors import BuildError
from agentry.manifest.models import CommandServer
from agentry.resolve.recipes import DOCKERFILE
from agentry.utils.process import CommandError, run_command
from agentry.utils.telemetry import ATTR_IMAGE, ATTR_SERVER_NAME, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class ImageBuilder:
    """Drives ``docker build`` over resolved build contexts."""

    def __init__(
        self,
        *,
        docker_binary: str = "docker",
        verbose: bool = False,
        skip_existing: bool = False,
    ) -> None:
        self._docker = docker_binary
        self._verbose = verbose
        self._skip_existing = skip_existing

    async def build_image(self, image: str, context_dir: Path) -> None:
        """Build *context_dir* into *image*. Raises :class:`CommandError`."""
        await run_command(
            [self._docker, "build", "-t", image, "."],
            cwd=context_dir,
            stream=self._verbose,
        )

    async def image_exists(self, image: str) -> bool:
        result = await run_command(
            [self._docker, "image", "inspect", image], check=False
        )
        return result.returncode == 0

    async def build_resolved_servers(
        self,
        agent_name: str,
        servers: list[CommandServer],
        workspace: Path,
    ) -> list[str]:
        """Build every server whose build context came from resolution.

        Returns the image names, in build order.

        Raises:
            BuildError: Naming the first server that failed to build.
        """
        images: list[str] = []
        for server in servers:
            if not server.from_registry:
                continue
            assert server.build is not None
            image = mcp_server_image_name(agent_name, server.name)
            with _tracer.start_as_current_span("agentry.build") as span:
                span.set_attribute(ATTR_SERVER_NAME, server.name)
                span.set_attribute(ATTR_IMAGE, image)
                await self._build_one(server, workspace / server.build, image)
            images.append(image)
        return images

    async def _build_one(self, server: CommandServer, context_dir: Path, image: str) -> None:
        if not context_dir.is_dir():
            raise BuildError(server.name, f"build directory not found: {context_dir}")
        if not (context_dir / DOCKERFILE).is_file():
            raise BuildError(server.name, f"{DOCKERFILE} not found in {context_dir}")

        if self._skip_existing and await self.image_exists(image):
            logger.info("Image %s already exists, skipping build of %s", image, server.name)
            return

        logger.info("Building MCP server %s -> %s", server.name, image)
        try:
            await self.build_image(image, context_dir)
        except CommandError as exc:
            raise BuildError(server.name, exc.detail, output=exc.output) from exc

    async def build_agent_image(self, agent_name: str, image: str, project_dir: Path) -> None:
        """Build the agent's own image from its project directory.

        Raises:
            BuildError: Naming the agent if the build fails.
        """
        with _tracer.start_as_current_span("agentry.build") as span:
            span.set_attribute(ATTR_IMAGE, image)
            logger.info("Building agent %s -> %s", agent_name, image)
            try:
                await self.build_image(image, project_dir)
            except CommandError as exc:
                raise BuildError(agent_name, exc.detail, output=exc.output) from exc
