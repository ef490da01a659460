"""Tool catalog and discovery views."""

from fmcp.tools.definitions import TOOLS, CommonError, ToolDefinition, ToolExample
from fmcp.tools.discovery import DiscoveryResult, ToolRegistry

__all__ = [
    "TOOLS",
    "CommonError",
    "DiscoveryResult",
    "ToolDefinition",
    "ToolExample",
    "ToolRegistry",
]
