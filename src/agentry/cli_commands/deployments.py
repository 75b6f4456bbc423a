"""``agentry deployments`` — inspect deployment records."""

from __future__ import annotations

import asyncio

import click

from agentry.cli_commands._output import console, fail, print_deployments, registry_client
from agentry.config import RuntimeConfig
from agentry.deploy.dispatcher import DeploymentDispatcher
from agentry.errors import AgentryError
from agentry.registry.models import Deployment


@click.group()
def deployments() -> None:
    """Inspect deployments."""


@deployments.command("list")
@click.option("--type", "resource_type", type=click.Choice(["agent", "mcp"]), default=None)
@click.option("--provider-id", default=None, help="Only this provider's deployments.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format.",
)
@click.pass_obj
def list_deployments(
    config: RuntimeConfig, resource_type: str | None, provider_id: str | None, fmt: str
) -> None:
    """List deployment records."""

    async def _list() -> list[Deployment]:
        async with registry_client(config) as registry:
            return await DeploymentDispatcher(config, registry).list_deployments(
                resource_type=resource_type,  # type: ignore[arg-type]
                provider_id=provider_id,
            )

    try:
        records = asyncio.run(_list())
    except AgentryError as exc:
        fail(exc)

    if not records and fmt == "table":
        console.print("[yellow]No deployments found.[/yellow]")
        return
    print_deployments(records, as_json=fmt == "json")
