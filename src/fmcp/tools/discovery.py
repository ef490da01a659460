"""ToolRegistry — read-only views over the tool catalog.

The registry never mutates its catalog after construction, so any number of
concurrent handlers can read it without locking.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from fmcp import SERVER_NAME, __version__
from fmcp.tools.definitions import TOOLS, ToolDefinition

MCP_PROTOCOL_VERSION = "2024-11-05"


class DiscoveryResult(BaseModel):
    """Envelope returned by every registry view."""

    success: bool
    tools: list[ToolDefinition] | None = None
    tool: ToolDefinition | None = None
    metadata: dict[str, Any] | None = None
    error: str | None = None


class ToolRegistry:
    """Immutable catalog of :class:`ToolDefinition`s.

    Usage::

        registry = ToolRegistry()
        registry.get_tool_by_name("proxy_api_request").tool
        registry.search_tools("endpoints").tools
    """

    def __init__(self, tools: Iterable[ToolDefinition] = TOOLS) -> None:
        self._tools: tuple[ToolDefinition, ...] = tuple(tools)
        self._by_name: dict[str, ToolDefinition] = {}
        for tool in self._tools:
            if tool.name in self._by_name:
                msg = f"Duplicate tool name: {tool.name}"
                raise ValueError(msg)
            self._by_name[tool.name] = tool

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def tools(self) -> tuple[ToolDefinition, ...]:
        return self._tools

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get_all_tools(self) -> DiscoveryResult:
        return DiscoveryResult(
            success=True,
            tools=list(self._tools),
            metadata=self.get_tools_metadata(),
        )

    def get_tool_by_name(self, name: str) -> DiscoveryResult:
        tool = self._by_name.get(name)
        if tool is None:
            return DiscoveryResult(success=False, error=f"Tool '{name}' not found")
        return DiscoveryResult(success=True, tool=tool)

    def search_tools(self, query: str) -> DiscoveryResult:
        """Case-insensitive substring match over name, description, purpose and use cases."""
        needle = query.lower()
        matches = [
            tool
            for tool in self._tools
            if needle in tool.name.lower()
            or needle in tool.description.lower()
            or needle in tool.purpose.lower()
            or any(needle in use_case.lower() for use_case in tool.use_cases)
        ]
        return DiscoveryResult(
            success=True,
            tools=matches,
            metadata={"query": query, "resultsCount": len(matches), "totalTools": len(self._tools)},
        )

    def get_tools_by_category(self, category: str) -> DiscoveryResult:
        """Tools with at least one use case containing *category*."""
        needle = category.lower()
        matches = [
            tool
            for tool in self._tools
            if any(needle in use_case.lower() for use_case in tool.use_cases)
        ]
        return DiscoveryResult(
            success=True,
            tools=matches,
            metadata={
                "category": category,
                "resultsCount": len(matches),
                "totalTools": len(self._tools),
            },
        )

    def get_tools_metadata(self) -> dict[str, Any]:
        categories = list(dict.fromkeys(uc for tool in self._tools for uc in tool.use_cases))
        return {
            "totalTools": len(self._tools),
            "categories": categories,
            "version": __version__,
            "lastUpdated": _now_iso(),
        }

    # ------------------------------------------------------------------
    # Renderings
    # ------------------------------------------------------------------

    def get_mcp_protocol_tools(self) -> dict[str, Any]:
        """Render the catalog as a complete ``tools/list``-style JSON-RPC payload.

        Unlike the lean ``tools/list`` response, every tool carries its output
        schema and usage metadata.
        """
        protocol_tools = [
            {
                "name": tool.name,
                "description": tool.description,
                "inputSchema": tool.input_schema,
                "outputSchema": tool.output_schema,
                "metadata": {
                    "purpose": tool.purpose,
                    "useCases": list(tool.use_cases),
                    "triggerConditions": list(tool.trigger_conditions),
                    "examples": [e.model_dump() for e in tool.examples],
                    "errorHandling": tool.error_handling.model_dump(by_alias=True),
                },
            }
            for tool in self._tools
        ]
        return {
            "jsonrpc": "2.0",
            "result": {
                "tools": protocol_tools,
                "_meta": {
                    "protocol": "mcp",
                    "version": MCP_PROTOCOL_VERSION,
                    "server": SERVER_NAME,
                    "serverVersion": __version__,
                    "capabilities": {
                        "tools": True,
                        "resources": False,
                        "prompts": False,
                        "logging": True,
                    },
                    "toolsCount": len(protocol_tools),
                    "lastUpdated": _now_iso(),
                },
            },
        }

    def generate_llm_guidance(self) -> str:
        """Render a markdown guide on when and how to use every tool."""
        parts = [
            f"# {SERVER_NAME} - Tool Usage Guide for LLMs\n",
            "This guide describes the available tools and when to use them.\n",
            f"## Available Tools ({len(self._tools)} total)\n",
        ]
        for index, tool in enumerate(self._tools, start=1):
            parts.append(_render_tool(index, tool))
        parts.append(_GUIDANCE_FOOTER)
        return "\n".join(parts)


def _render_tool(index: int, tool: ToolDefinition) -> str:
    lines = [
        f"### {index}. {tool.name}",
        "",
        f"**Purpose**: {tool.purpose}",
        "",
        f"**Description**: {tool.description}",
        "",
        "**When to use this tool**:",
        *(f"- {condition}" for condition in tool.trigger_conditions),
        "",
        "**Use cases**:",
        *(f"- {use_case}" for use_case in tool.use_cases),
        "",
        "**Input Parameters**:",
        f"- Required: {', '.join(tool.required_inputs) or 'None'}",
        f"- Optional: {', '.join(tool.optional_inputs) or 'None'}",
        "",
        "**Example Usage**:",
    ]
    for example in tool.examples:
        lines += [
            f"- **{example.description}**",
            f"  Input: `{json.dumps(example.input, ensure_ascii=False)}`",
            f"  Output: `{json.dumps(example.output, ensure_ascii=False)}`",
        ]
    lines += ["", "**Common Errors**:"]
    for error in tool.error_handling.common_errors:
        lines += [f"- **{error.code}**: {error.message}", f"  Resolution: {error.resolution}"]
    lines += ["", "---", ""]
    return "\n".join(lines)


_GUIDANCE_FOOTER = """\
## Best Practices for LLM Integration

1. **Always check API health first** using `get_api_health` before making other calls
2. **Use `get_api_endpoints`** to discover available functionality before making assumptions
3. **Use `get_model_context`** for complex queries that need guidance
4. **Use `proxy_api_request`** for actual API operations with proper error handling
5. **Refresh endpoints** using `refresh_api_endpoints` if you encounter missing functionality

## Error Handling Strategy

- Always check the `success` field in responses
- Use error codes to determine appropriate retry strategies
- Provide clear error messages to users based on error types

## Security Considerations

- All API calls are authenticated by the MCP server
- Never expose API keys or sensitive data in responses
- Use the proxy for all API operations to maintain security boundaries
"""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
