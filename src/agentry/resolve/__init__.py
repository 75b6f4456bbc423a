"""Registry reference resolution."""

from agentry.resolve.resolver import ReferenceResolver, ResolutionResult
from agentry.resolve.server_config import (
    SERVER_CONFIG_FILENAME,
    remove_server_config,
    server_config_dir,
    server_config_path,
    write_server_config,
)
from agentry.resolve.workspace import resolution_workspace

__all__ = [
    "SERVER_CONFIG_FILENAME",
    "ReferenceResolver",
    "ResolutionResult",
    "remove_server_config",
    "resolution_workspace",
    "server_config_dir",
    "server_config_path",
    "write_server_config",
]
