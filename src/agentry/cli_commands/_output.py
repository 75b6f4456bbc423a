"""Shared CLI output and error helpers."""

from __future__ import annotations

import json
import sys
from typing import NoReturn

from rich.console import Console
from rich.table import Table

from agentry.config import RuntimeConfig  # noqa: TC001
from agentry.errors import AgentryError, BuildError, HealthTimeoutError
from agentry.registry.client import RegistryClient
from agentry.registry.models import Deployment  # noqa: TC001

console = Console()


def registry_client(config: RuntimeConfig) -> RegistryClient:
    return RegistryClient(
        config.registry_url, token=config.api_token, timeout=config.request_timeout
    )


def fail(exc: AgentryError) -> NoReturn:
    """Print *exc* (with build output when there is any) and exit 1."""
    console.print(f"[red]Error:[/red] {exc}", highlight=False)
    if isinstance(exc, BuildError) and exc.output:
        console.print(exc.output, markup=False, highlight=False)
    if isinstance(exc, HealthTimeoutError):
        console.print("[yellow]The containers were left running for inspection.[/yellow]")
    sys.exit(1)


def print_deployment(deployment: Deployment, *, action: str = "Deployed") -> None:
    console.print(
        f"[green]{action}[/green] {deployment.resource_type} "
        f"[bold]{deployment.resource_name}[/bold] version {deployment.version} "
        f"(provider: {deployment.provider_id or 'local'}, status: {deployment.status})",
        highlight=False,
    )
    namespace = deployment.provider_config.get("namespace")
    if namespace:
        console.print(f"  Namespace: {namespace}")


def print_deployments(deployments: list[Deployment], *, as_json: bool = False) -> None:
    """Print deployment records as a table or JSON."""
    if as_json:
        data = [d.model_dump(by_alias=True, mode="json") for d in deployments]
        console.print_json(json.dumps(data))
        return

    table = Table(title="Deployments")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Type")
    table.add_column("Provider")
    table.add_column("Status")
    table.add_column("Origin")

    for d in deployments:
        table.add_row(
            d.resource_name,
            d.version,
            d.resource_type,
            d.provider_id or "local",
            _status_markup(str(d.status)),
            str(d.origin),
        )

    console.print(table)


def _status_markup(status: str) -> str:
    colour = {"deployed": "green", "failed": "red", "deploying": "yellow"}.get(status)
    return f"[{colour}]{status}[/{colour}]" if colour else status
