"""Thin async wrapper around external CLI tools (docker, docker compose).

Uses ``asyncio.create_subprocess_exec`` directly rather than a client
library, so any compose-equivalent binary can be configured.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
from collections.abc import Mapping, Sequence
from pathlib import Path  # noqa: TC003

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """An external command could not be launched or exited non-zero."""

    def __init__(self, cmd: Sequence[str], detail: str, *, returncode: int | None = None, output: str = "") -> None:
        self.cmd = list(cmd)
        self.detail = detail
        self.returncode = returncode
        self.output = output
        super().__init__(f"`{shlex.join(self.cmd)}` failed: {detail}")


class CommandOutput:
    """Captured output of a finished command."""

    __slots__ = ("returncode", "stdout", "stderr")

    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    @property
    def combined(self) -> str:
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


async def run_command(
    cmd: Sequence[str],
    *,
    cwd: Path | None = None,
    input: bytes | None = None,
    env: Mapping[str, str] | None = None,
    stream: bool = False,
    check: bool = True,
) -> CommandOutput:
    """Run *cmd* to completion.

    Args:
        cmd: Program and arguments.
        cwd: Working directory for the process.
        input: Bytes fed to standard input.
        env: Full environment for the process (inherits ours when ``None``).
        stream: Let output go straight to our stdout/stderr instead of capturing.
        check: Raise :class:`CommandError` on a non-zero exit.
    """
    logger.debug("running %s", shlex.join(cmd))
    pipe = None if stream else asyncio.subprocess.PIPE
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=cwd,
            stdin=asyncio.subprocess.PIPE if input is not None else None,
            stdout=pipe,
            stderr=pipe,
            env=dict(env) if env is not None else None,
        )
        stdout_bytes, stderr_bytes = await proc.communicate(input=input)
    except OSError as exc:
        raise CommandError(cmd, str(exc)) from exc

    result = CommandOutput(
        returncode=proc.returncode or 0,
        stdout=stdout_bytes.decode(errors="replace").strip() if stdout_bytes else "",
        stderr=stderr_bytes.decode(errors="replace").strip() if stderr_bytes else "",
    )
    if check and result.returncode != 0:
        raise CommandError(
            cmd,
            f"exit status {result.returncode}" + (f": {result.stderr}" if result.stderr else ""),
            returncode=result.returncode,
            output=result.combined,
        )
    return result
