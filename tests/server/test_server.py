"""Tests for MCPStdioServer dispatch and lifecycle."""

from __future__ import annotations

import asyncio
import io
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from fmcp import __version__
from fmcp.errors import INTERNAL_ERROR, INVALID_REQUEST, METHOD_NOT_FOUND, PARSE_ERROR, ToolNotFoundError
from fmcp.server.models import JsonRpcRequest
from fmcp.server.server import MCPStdioServer, ServerState
from fmcp.server.transport import StdioServerTransport
from fmcp.tools.discovery import MCP_PROTOCOL_VERSION, ToolRegistry

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _handlers(result: dict[str, Any] | None = None, side_effect: Any = None) -> MagicMock:
    handlers = MagicMock()
    handlers.call = AsyncMock(return_value=result or {"success": True}, side_effect=side_effect)
    return handlers


def _server(
    *lines: str,
    handlers: MagicMock | None = None,
    updater: MagicMock | None = None,
) -> tuple[MCPStdioServer, io.BytesIO]:
    reader = asyncio.StreamReader()
    for line in lines:
        reader.feed_data(line.encode() + b"\n")
    reader.feed_eof()
    out = io.BytesIO()
    server = MCPStdioServer(
        ToolRegistry(),
        handlers or _handlers(),
        StdioServerTransport(reader=reader, writer=out),
        updater=updater,
    )
    return server, out


def _messages(out: io.BytesIO) -> list[dict[str, Any]]:
    return [json.loads(line) for line in out.getvalue().splitlines()]


def _responses(out: io.BytesIO) -> dict[Any, dict[str, Any]]:
    return {m["id"]: m for m in _messages(out) if "id" in m}


def _request(method: str, request_id: int | str = 1, **params: Any) -> str:
    return json.dumps({"jsonrpc": "2.0", "id": request_id, "method": method, "params": params})


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    async def test_announces_and_shuts_down(self) -> None:
        server, out = _server()
        await server.run()

        messages = _messages(out)
        assert messages[0]["method"] == "initialized"
        assert "id" not in messages[0]
        assert messages[0]["params"]["serverInfo"] == {
            "name": "Flow Masters MCP Server",
            "version": __version__,
        }
        assert messages[-1] == {"jsonrpc": "2.0", "method": "shutdown", "params": {}}
        assert server.state is ServerState.SHUTTING_DOWN

    async def test_updater_started_and_cleaned_up(self) -> None:
        updater = MagicMock()
        updater.cleanup = AsyncMock()
        server, _ = _server(updater=updater)
        await server.run()
        updater.start.assert_called_once()
        updater.cleanup.assert_awaited_once()

    async def test_in_flight_requests_drain_on_eof(self) -> None:
        async def slow(name: str, arguments: dict[str, Any]) -> dict[str, Any]:
            await asyncio.sleep(0.05)
            return {"success": True, "name": name}

        server, out = _server(
            _request("tools/call", 5, name="get_api_health"),
            handlers=_handlers(side_effect=slow),
        )
        await server.run()

        messages = _messages(out)
        assert messages[-2]["id"] == 5
        assert messages[-1]["method"] == "shutdown"

    async def test_slow_call_does_not_block_later_requests(self) -> None:
        async def slow(name: str, arguments: dict[str, Any]) -> dict[str, Any]:
            await asyncio.sleep(0.1)
            return {"success": True}

        server, out = _server(
            _request("tools/call", 1, name="get_api_health"),
            _request("ping", 2),
            handlers=_handlers(side_effect=slow),
        )
        await server.run()

        ids = [m["id"] for m in _messages(out) if "id" in m]
        assert ids.index(2) < ids.index(1)

    async def test_request_shutdown_stops_run(self) -> None:
        reader = asyncio.StreamReader()
        out = io.BytesIO()
        server = MCPStdioServer(ToolRegistry(), _handlers(), StdioServerTransport(reader=reader, writer=out))

        task = asyncio.create_task(server.run())
        await asyncio.sleep(0.01)
        server.request_shutdown()
        await asyncio.wait_for(task, timeout=1)

        assert _messages(out)[-1]["method"] == "shutdown"


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class TestMethods:
    async def test_initialize(self) -> None:
        server, out = _server(_request("initialize", 1, protocolVersion="2024-11-05"))
        await server.run()
        result = _responses(out)[1]["result"]
        assert result["protocolVersion"] == MCP_PROTOCOL_VERSION
        assert set(result["capabilities"]) == {"tools", "resources", "prompts", "logging"}

    async def test_tools_list(self) -> None:
        server, out = _server(_request("tools/list", 42))
        await server.run()
        response = _responses(out)[42]
        tools = response["result"]["tools"]
        assert len(tools) == len(ToolRegistry())
        assert set(tools[0]) == {"name", "description", "inputSchema"}

    async def test_ping_resources_prompts(self) -> None:
        server, out = _server(
            _request("ping", 1),
            _request("resources/list", 2),
            _request("prompts/list", 3),
        )
        await server.run()
        responses = _responses(out)
        assert responses[1]["result"] == {}
        assert responses[2]["result"] == {"resources": []}
        assert responses[3]["result"] == {"prompts": []}

    async def test_unknown_method(self) -> None:
        server, out = _server(_request("does/not/exist", 9))
        await server.run()
        error = _responses(out)[9]["error"]
        assert error["code"] == METHOD_NOT_FOUND
        assert error["message"] == "Method not found: does/not/exist"


class TestToolsCall:
    async def test_success(self) -> None:
        handlers = _handlers({"success": True, "version": "2.0.0"})
        server, out = _server(
            _request("tools/call", 1, name="get_api_health", arguments={"x": 1}),
            handlers=handlers,
        )
        await server.run()

        result = _responses(out)[1]["result"]
        assert result["isError"] is False
        assert result["content"][0]["type"] == "text"
        assert json.loads(result["content"][0]["text"]) == {"success": True, "version": "2.0.0"}
        handlers.call.assert_awaited_once_with("get_api_health", {"x": 1})

    async def test_unsuccessful_result_flags_error(self) -> None:
        server, out = _server(
            _request("tools/call", 1, name="get_api_health"),
            handlers=_handlers({"success": False, "error": "down"}),
        )
        await server.run()
        assert _responses(out)[1]["result"]["isError"] is True

    async def test_unknown_tool(self) -> None:
        server, out = _server(
            _request("tools/call", 3, name="nonexistent_tool"),
            handlers=_handlers(side_effect=ToolNotFoundError("nonexistent_tool")),
        )
        await server.run()
        error = _responses(out)[3]["error"]
        assert error["code"] == METHOD_NOT_FOUND
        assert error["message"] == "Tool not found: nonexistent_tool"

    async def test_missing_name(self) -> None:
        server, out = _server(_request("tools/call", 4))
        await server.run()
        assert _responses(out)[4]["error"]["code"] == METHOD_NOT_FOUND

    async def test_handler_exception(self) -> None:
        server, out = _server(
            _request("tools/call", 8, name="proxy_api_request"),
            handlers=_handlers(side_effect=ValueError("Method and path are required")),
        )
        await server.run()
        error = _responses(out)[8]["error"]
        assert error["code"] == INTERNAL_ERROR
        assert "proxy_api_request" in error["message"]
        assert error["data"] == "Method and path are required"

    async def test_arguments_must_be_object(self) -> None:
        server, out = _server(_request("tools/call", 2, name="get_api_health", arguments=[1]))
        await server.run()
        assert _responses(out)[2]["error"]["code"] == INTERNAL_ERROR


class TestMalformedInput:
    async def test_parse_error_then_valid_request(self) -> None:
        server, out = _server("{not json", _request("ping", 2))
        await server.run()
        responses = _responses(out)
        assert responses["unknown"]["error"]["code"] == PARSE_ERROR
        assert responses["unknown"]["error"]["message"] == "Parse error"
        assert responses[2]["result"] == {}

    async def test_invalid_request_keeps_id(self) -> None:
        server, out = _server(json.dumps({"jsonrpc": "2.0", "id": 11}))
        await server.run()
        assert _responses(out)[11]["error"]["code"] == INVALID_REQUEST

    async def test_notification_gets_no_response(self) -> None:
        server, out = _server(json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}))
        await server.run()
        methods = [m.get("method") for m in _messages(out)]
        assert methods == ["initialized", "shutdown"]


class TestDispatch:
    async def test_unexpected_exception_is_internal_error(self) -> None:
        server, _ = _server()
        server._methods["ping"] = AsyncMock(side_effect=KeyError("boom"))
        response = await server.dispatch(JsonRpcRequest(id=1, method="ping"))
        assert response.error is not None
        assert response.error.code == INTERNAL_ERROR
        assert response.error.message == "Internal error"
        assert response.error.data == "'boom'"

    async def test_tools_list_failure(self) -> None:
        server, _ = _server()
        server._registry = MagicMock()
        server._registry.get_all_tools.return_value = MagicMock(success=False, tools=None, error="x")
        response = await server.dispatch(JsonRpcRequest(id=1, method="tools/list"))
        assert response.error is not None
        assert response.error.code == INTERNAL_ERROR
        assert response.error.message == "Failed to get tools list"
