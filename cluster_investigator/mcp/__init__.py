"""MCP (Model Context Protocol) server surface for the investigator."""

from cluster_investigator.mcp.server import create_mcp_server, handle_investigate

__all__ = [
    "create_mcp_server",
    "handle_investigate",
]
