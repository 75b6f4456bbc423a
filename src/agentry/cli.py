"""agentry CLI entrypoint."""

from __future__ import annotations

import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler

from agentry import __version__
from agentry.config import RuntimeConfig


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(version=__version__, prog_name="agentry")
@click.option("--verbose", "-v", is_flag=True, help="Show external tool output and info logs.")
@click.option("--registry-url", default=None, help="Registry API base URL.")
@click.option("--telemetry", is_flag=True, help="Export OpenTelemetry spans to the console.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, registry_url: str | None, telemetry: bool) -> None:
    """agentry — run and deploy agents and MCP servers from a registry."""
    config = RuntimeConfig.from_env(
        os.environ, registry_url=registry_url, verbose=verbose or None
    )
    _setup_logging(config.verbose)
    if telemetry:
        from agentry.utils.telemetry import configure_telemetry

        configure_telemetry()
    ctx.obj = config


# Register subcommands
from agentry.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
