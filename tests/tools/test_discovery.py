"""Tests for the tool catalog and ToolRegistry views."""

from __future__ import annotations

import pytest

from fmcp import __version__
from fmcp.tools.definitions import TOOLS, ToolDefinition
from fmcp.tools.discovery import MCP_PROTOCOL_VERSION, ToolRegistry

EXPECTED_TOOLS = {
    "get_api_health",
    "get_api_endpoints",
    "refresh_api_endpoints",
    "get_model_context",
    "proxy_api_request",
    "get_integrations",
    "check_for_updates",
}


def _tool(name: str, description: str = "Does things") -> ToolDefinition:
    return ToolDefinition(
        name=name,
        description=description,
        purpose="Testing",
        input_schema={"type": "object", "properties": {}},
        use_cases=("Testing tools",),
    )


class TestCatalog:
    def test_names_are_unique(self) -> None:
        names = [t.name for t in TOOLS]
        assert len(names) == len(set(names))
        assert set(names) == EXPECTED_TOOLS

    def test_every_tool_documents_itself(self) -> None:
        for tool in TOOLS:
            assert tool.description
            assert tool.purpose
            assert tool.input_schema["type"] == "object"
            assert tool.use_cases

    def test_proxy_requires_method_and_path(self) -> None:
        proxy = next(t for t in TOOLS if t.name == "proxy_api_request")
        assert set(proxy.required_inputs) == {"method", "path"}
        assert "data" in proxy.optional_inputs


class TestToolRegistry:
    def test_duplicate_names_rejected(self) -> None:
        with pytest.raises(ValueError, match="dup"):
            ToolRegistry([_tool("dup"), _tool("dup")])

    def test_len_and_contains(self) -> None:
        registry = ToolRegistry()
        assert len(registry) == 7
        assert "get_api_health" in registry
        assert "nope" not in registry

    def test_get_all_tools(self) -> None:
        result = ToolRegistry().get_all_tools()
        assert result.success is True
        assert result.tools is not None
        assert len(result.tools) == 7
        assert result.metadata is not None
        assert result.metadata["totalTools"] == 7
        assert result.metadata["version"] == __version__

    def test_get_tool_by_name(self) -> None:
        result = ToolRegistry().get_tool_by_name("get_model_context")
        assert result.success is True
        assert result.tool is not None
        assert result.tool.name == "get_model_context"

    def test_unknown_tool(self) -> None:
        result = ToolRegistry().get_tool_by_name("nope")
        assert result.success is False
        assert result.error == "Tool 'nope' not found"
        assert result.tool is None

    def test_search_is_case_insensitive(self) -> None:
        result = ToolRegistry().search_tools("HEALTH")
        assert result.tools is not None
        assert "get_api_health" in [t.name for t in result.tools]
        assert result.metadata == {
            "query": "HEALTH",
            "resultsCount": len(result.tools),
            "totalTools": 7,
        }

    def test_search_returns_only_matches(self) -> None:
        result = ToolRegistry().search_tools("blocks")
        assert result.success is True
        assert result.tools == []

    def test_search_custom_catalog(self) -> None:
        registry = ToolRegistry([_tool("a", "Manage page blocks"), _tool("b", "Other")])
        result = registry.search_tools("blocks")
        assert result.tools is not None
        assert [t.name for t in result.tools] == ["a"]

    def test_tools_by_category(self) -> None:
        result = ToolRegistry().get_tools_by_category("troubleshooting")
        assert result.tools is not None
        names = {t.name for t in result.tools}
        assert "get_api_health" in names
        assert "get_integrations" in names
        assert "proxy_api_request" not in names

    def test_metadata_categories_are_use_cases(self) -> None:
        metadata = ToolRegistry().get_tools_metadata()
        assert "Monitoring API availability" in metadata["categories"]
        assert len(metadata["categories"]) == len(set(metadata["categories"]))
        assert "lastUpdated" in metadata


class TestRenderings:
    def test_mcp_protocol_tools(self) -> None:
        payload = ToolRegistry().get_mcp_protocol_tools()
        assert payload["jsonrpc"] == "2.0"
        tools = payload["result"]["tools"]
        assert len(tools) == 7
        first = tools[0]
        assert set(first) == {"name", "description", "inputSchema", "outputSchema", "metadata"}
        assert "useCases" in first["metadata"]
        meta = payload["result"]["_meta"]
        assert meta["version"] == MCP_PROTOCOL_VERSION
        assert meta["toolsCount"] == 7

    def test_llm_guidance(self) -> None:
        guide = ToolRegistry().generate_llm_guidance()
        assert guide.startswith("# Flow Masters MCP Server")
        assert "## Available Tools (7 total)" in guide
        for name in EXPECTED_TOOLS:
            assert f". {name}" in guide
        assert "- Required: method, path" in guide
        assert "## Best Practices for LLM Integration" in guide
