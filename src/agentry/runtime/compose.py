"""Compose runner — up/down/logs with the topology document on stdin.

The rendered document is never written to disk; every call passes it with
``-f -`` so the compose tool reads it from standard input.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from agentry.utils.process import CommandError, run_command

logger = logging.getLogger(__name__)


class ComposeRunner:
    """Invoke a compose-equivalent CLI (``docker compose`` by default)."""

    def __init__(self, command: Sequence[str] = ("docker", "compose"), *, verbose: bool = False) -> None:
        self._command = list(command)
        self._verbose = verbose

    async def up(self, document: bytes) -> None:
        """Start the topology detached. Raises :class:`CommandError`."""
        await run_command(
            [*self._command, "-f", "-", "up", "-d"],
            input=document,
            stream=self._verbose,
        )

    async def down(self, document: bytes) -> None:
        """Stop and remove the topology. Raises :class:`CommandError`."""
        await run_command(
            [*self._command, "-f", "-", "down"],
            input=document,
            stream=self._verbose,
        )

    async def logs(self, document: bytes, *, tail: int = 50) -> str:
        """Return the last *tail* lines of every service's logs.

        Never raises; a failure to fetch logs is itself reported as the log text.
        """
        try:
            result = await run_command(
                [*self._command, "-f", "-", "logs", f"--tail={tail}"],
                input=document,
                check=False,
            )
        except CommandError as exc:
            logger.warning("Could not fetch container logs: %s", exc.detail)
            return f"(failed to fetch logs: {exc.detail})"
        return result.combined

    async def down_project(self, project_name: str) -> None:
        """Stop a project by name, without its document. Raises :class:`CommandError`."""
        await run_command(
            [*self._command, "-p", project_name, "down"],
            stream=self._verbose,
        )
