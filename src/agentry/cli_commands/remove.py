"""``agentry remove`` — remove a deployment."""

from __future__ import annotations

import asyncio

import click

from agentry.cli_commands._output import fail, print_deployment, registry_client
from agentry.config import RuntimeConfig
from agentry.deploy.dispatcher import DeploymentDispatcher
from agentry.errors import AgentryError
from agentry.registry.models import Deployment


@click.command()
@click.argument("name")
@click.option("--version", required=True, help="Deployed version.")
@click.option(
    "--type",
    "resource_type",
    type=click.Choice(["agent", "mcp"]),
    default="mcp",
    show_default=True,
    help="Resource type.",
)
@click.pass_obj
def remove(config: RuntimeConfig, name: str, version: str, resource_type: str) -> None:
    """Remove the deployment of NAME."""

    async def _remove() -> Deployment:
        async with registry_client(config) as registry:
            dispatcher = DeploymentDispatcher(config, registry)
            return await dispatcher.remove(name, version, resource_type)  # type: ignore[arg-type]

    try:
        deployment = asyncio.run(_remove())
    except AgentryError as exc:
        fail(exc)
    print_deployment(deployment, action="Removed")
