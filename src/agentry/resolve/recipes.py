"""Build recipes for registry-resolved MCP servers.

Each resolved server gets a build context holding a ``Dockerfile`` and the
registry's ``server.json``.  Every image serves MCP over streamable HTTP on
port 3000 at ``/mcp``; stdio packages are wrapped in a stdio-to-HTTP bridge.
"""

from __future__ import annotations

import json
import shlex
from pathlib import Path  # noqa: TC003

from agentry.registry.models import Package, ServerDefinition

MCP_PORT = 3000

DOCKERFILE = "Dockerfile"
SERVER_JSON = "server.json"

_NODE_BASE = "node:22-alpine"
_UV_BASE = "ghcr.io/astral-sh/uv:python3.12-bookworm-slim"


class UnsupportedPackageError(ValueError):
    """The package's registry type has no build recipe."""


def package_arguments(package: Package) -> list[str]:
    args: list[str] = []
    for arg in package.package_arguments:
        value = arg.value or arg.default
        if arg.type == "named" and arg.name:
            args.append(arg.name)
        if value:
            args.append(value)
    return args


def _env_lines(package: Package) -> list[str]:
    lines = []
    for var in package.environment_variables:
        value = var.value or var.default
        if value is not None:
            lines.append(f"ENV {var.name}={json.dumps(value)}")
    return lines


def _is_stdio(package: Package) -> bool:
    return package.transport.type == "stdio"


def _pinned(package: Package, separator: str) -> str:
    return f"{package.identifier}{separator}{package.version}" if package.version else package.identifier


def _npm_recipe(package: Package) -> list[str]:
    launch = ["npx", "-y", _pinned(package, "@"), *package_arguments(package)]
    if _is_stdio(package):
        cmd = [
            "npx", "-y", "supergateway",
            "--stdio", shlex.join(launch),
            "--outputTransport", "streamableHttp",
            "--port", str(MCP_PORT),
        ]
    else:
        cmd = launch
    return [f"FROM {_NODE_BASE}", *_env_lines(package), f"ENV PORT={MCP_PORT}",
            f"EXPOSE {MCP_PORT}", f"CMD {json.dumps(cmd)}"]


def _pypi_recipe(package: Package) -> list[str]:
    launch = ["uvx", _pinned(package, "=="), *package_arguments(package)]
    if _is_stdio(package):
        cmd = ["uvx", "mcp-proxy", "--host", "0.0.0.0", "--port", str(MCP_PORT), "--", *launch]
    else:
        cmd = launch
    return [f"FROM {_UV_BASE}", *_env_lines(package), f"ENV PORT={MCP_PORT}",
            f"EXPOSE {MCP_PORT}", f"CMD {json.dumps(cmd)}"]


def _oci_recipe(package: Package) -> list[str]:
    image = package.identifier
    if package.version and ":" not in image.rsplit("/", 1)[-1]:
        image = f"{image}:{package.version}"
    return [f"FROM {image}", *_env_lines(package), f"ENV PORT={MCP_PORT}", f"EXPOSE {MCP_PORT}"]


_RECIPES = {
    "npm": _npm_recipe,
    "pypi": _pypi_recipe,
    "oci": _oci_recipe,
}


def render_dockerfile(package: Package) -> str:
    """Render the Dockerfile that runs *package* as an HTTP MCP server."""
    recipe = _RECIPES.get(package.registry_type.lower())
    if recipe is None:
        msg = f"unsupported package registry type '{package.registry_type}'"
        raise UnsupportedPackageError(msg)
    return "\n".join(recipe(package)) + "\n"


def write_build_context(directory: Path, server: ServerDefinition, package: Package) -> None:
    """Write the Dockerfile and ``server.json`` for *server* into *directory*."""
    dockerfile = render_dockerfile(package)
    directory.mkdir(parents=True, exist_ok=True)
    (directory / DOCKERFILE).write_text(dockerfile, encoding="utf-8")
    (directory / SERVER_JSON).write_text(
        server.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
    )
