"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from agentry.cli_commands.deploy import deploy
    from agentry.cli_commands.deployments import deployments
    from agentry.cli_commands.remove import remove
    from agentry.cli_commands.run import run

    cli.add_command(run)
    cli.add_command(deploy)
    cli.add_command(remove)
    cli.add_command(deployments)
