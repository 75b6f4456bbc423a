"""The resolved-server side-channel file, ``mcp-servers.json``.

A running agent reads registry-resolved peers from
``<root>/<agent>[/<sanitized-version>]/mcp-servers.json``, mounted at
``/config``.  Command servers are reached at ``http://<service>:3000/mcp`` so only
their compose service name and type are listed.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from agentry.manifest.models import CommandServer, RemoteServer
from agentry.utils.naming import sanitize_version, service_name

logger = logging.getLogger(__name__)

SERVER_CONFIG_FILENAME = "mcp-servers.json"


def server_config_dir(root: Path, agent_name: str, version: str = "") -> Path:
    """Versioned runs get their own sub-directory; directory runs do not."""
    if version:
        return root / agent_name / sanitize_version(version)
    return root / agent_name


def server_config_path(root: Path, agent_name: str, version: str = "") -> Path:
    return server_config_dir(root, agent_name, version) / SERVER_CONFIG_FILENAME


def write_server_config(
    root: Path,
    agent_name: str,
    servers: list[RemoteServer | CommandServer],
    *,
    version: str = "",
) -> Path | None:
    """Write *servers* to the config file; returns its path, or ``None`` if empty."""
    if not servers:
        return None

    entries: list[dict[str, Any]] = []
    for server in servers:
        entry: dict[str, Any] = {"name": server.name, "type": server.type}
        if isinstance(server, CommandServer):
            entry["name"] = service_name(server.name)
        else:
            entry["url"] = server.url
            if server.headers:
                entry["headers"] = dict(server.headers)
        entries.append(entry)

    path = server_config_path(root, agent_name, version)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(entries, indent=2), encoding="utf-8")
    logger.info("Wrote MCP server config for %s to %s", agent_name, path)
    return path


def remove_server_config(root: Path, agent_name: str, *, version: str = "") -> bool:
    """Remove a previously written config file. Returns whether one existed."""
    path = server_config_path(root, agent_name, version)
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    logger.info("Removed stale MCP server config %s", path)
    return True
