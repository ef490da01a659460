"""Flow Masters MCP server — exposes the Flow Masters API to LLM clients over stdio."""

from __future__ import annotations

__version__ = "2.0.0"

SERVER_NAME = "Flow Masters MCP Server"
DIST_NAME = "flow-masters-mcp"
