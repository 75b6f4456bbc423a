"""Deterministic image names.

The same (agent, server) pair always maps to the same tag, so a rebuild
overwrites the previous image instead of accumulating new ones.
"""

from __future__ import annotations

from agentry.utils.naming import kebab_case, sanitize_version


def agent_image_name(agent_name: str, version: str = "") -> str:
    """``"<kebab-agent>:<version>"``, defaulting the version to ``latest``."""
    return f"{kebab_case(agent_name)}:{sanitize_version(version) or 'latest'}"


def mcp_server_image_name(agent_name: str, server_name: str) -> str:
    """``"<kebab-agent>-<kebab-server>:latest"``."""
    return f"{kebab_case(agent_name)}-{kebab_case(server_name)}:latest"
