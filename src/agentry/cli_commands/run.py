"""``agentry run`` — run an agent locally and chat with it."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from agentry.cli_commands._output import console, fail, registry_client
from agentry.config import RuntimeConfig
from agentry.errors import AgentryError
from agentry.runner import AgentRunner


@click.command()
@click.argument("target")
@click.option("--version", "version", default="latest", help="Agent version (registry runs).")
@click.pass_obj
def run(config: RuntimeConfig, target: str, version: str) -> None:
    """Run TARGET: a project directory, or the name of an agent in the registry."""
    path = Path(target)

    async def _run() -> None:
        async with registry_client(config) as registry:
            runner = AgentRunner(config, registry)
            if path.is_dir():
                await runner.run_from_directory(path)
            else:
                await runner.run_from_registry(target, version)

    try:
        asyncio.run(_run())
    except AgentryError as exc:
        fail(exc)
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted.[/yellow]")
        raise SystemExit(130) from None
