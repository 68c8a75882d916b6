"""Recograph MCP server: exposes product graph operations as tools for AI agents."""

from recograph.mcp.server import mcp, run_server

__all__ = ["mcp", "run_server"]
