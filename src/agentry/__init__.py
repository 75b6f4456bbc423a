"""Agentry — resolve, build, run and deploy agent and MCP server manifests."""

from __future__ import annotations

__version__ = "0.1.0"
