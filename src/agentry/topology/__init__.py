"""Compose topology rendering."""

from agentry.topology.renderer import (
    compose_project_name,
    env_vars_from_manifest,
    primary_image,
    render_server_topology,
    render_topology,
)

__all__ = [
    "compose_project_name",
    "env_vars_from_manifest",
    "primary_image",
    "render_server_topology",
    "render_topology",
]
