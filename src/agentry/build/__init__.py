"""Container image builds."""

from agentry.build.builder import ImageBuilder
from agentry.build.naming import agent_image_name, mcp_server_image_name

__all__ = ["ImageBuilder", "agent_image_name", "mcp_server_image_name"]
