"""``agentry deploy`` — deploy agents and MCP servers."""

from __future__ import annotations

import asyncio

import click

from agentry.cli_commands._output import fail, print_deployment, registry_client
from agentry.config import RuntimeConfig
from agentry.deploy.dispatcher import DeploymentDispatcher
from agentry.errors import AgentryError
from agentry.registry.models import Deployment


@click.group()
def deploy() -> None:
    """Deploy a registry agent or MCP server."""


_provider_option = click.option(
    "--provider-id",
    default="",
    help="Deployment provider; empty or 'local' runs on this machine.",
)
_namespace_option = click.option("--namespace", default="", help="Target namespace.")


@deploy.command("agent")
@click.argument("name")
@click.option("--version", default="latest", help="Agent version.")
@_provider_option
@_namespace_option
@click.pass_obj
def deploy_agent(config: RuntimeConfig, name: str, version: str, provider_id: str, namespace: str) -> None:
    """Deploy agent NAME."""

    async def _deploy() -> Deployment:
        async with registry_client(config) as registry:
            dispatcher = DeploymentDispatcher(config, registry)
            return await dispatcher.deploy_agent(
                name, version, provider_id=provider_id, namespace=namespace
            )

    try:
        deployment = asyncio.run(_deploy())
    except AgentryError as exc:
        fail(exc)
    print_deployment(deployment)


@deploy.command("mcp")
@click.argument("name")
@click.option("--version", default="latest", help="Server version.")
@click.option("--env", "-e", "env", multiple=True, help="Environment variable (KEY=VALUE).")
@click.option("--arg", "args", multiple=True, help="Package argument (KEY=VALUE).")
@click.option("--header", "headers", multiple=True, help="Remote header (KEY=VALUE).")
@click.option("--prefer-remote", is_flag=True, help="Use a remote endpoint when one exists.")
@_provider_option
@_namespace_option
@click.pass_obj
def deploy_mcp(
    config: RuntimeConfig,
    name: str,
    version: str,
    env: tuple[str, ...],
    args: tuple[str, ...],
    headers: tuple[str, ...],
    prefer_remote: bool,
    provider_id: str,
    namespace: str,
) -> None:
    """Deploy MCP server NAME."""

    async def _deploy() -> Deployment:
        async with registry_client(config) as registry:
            dispatcher = DeploymentDispatcher(config, registry)
            return await dispatcher.deploy_server(
                name,
                version,
                env=env,
                args=args,
                headers=headers,
                prefer_remote=prefer_remote,
                provider_id=provider_id,
                namespace=namespace,
            )

    try:
        deployment = asyncio.run(_deploy())
    except AgentryError as exc:
        fail(exc)
    print_deployment(deployment)
