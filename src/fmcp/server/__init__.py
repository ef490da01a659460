"""Stdio MCP server — JSON-RPC models, transport, dispatcher and tool handlers."""

from fmcp.server.handlers import ToolHandlers
from fmcp.server.models import (
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    parse_message,
)
from fmcp.server.server import MCPStdioServer, ServerState
from fmcp.server.transport import StdioServerTransport

__all__ = [
    "JsonRpcError",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MCPStdioServer",
    "ServerState",
    "StdioServerTransport",
    "ToolHandlers",
    "parse_message",
]
