"""Deployment dispatch."""

from agentry.deploy.dispatcher import (
    DeploymentDispatcher,
    build_agent_env,
    parse_key_values,
)

__all__ = ["DeploymentDispatcher", "build_agent_env", "parse_key_values"]
