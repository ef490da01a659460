"""MCPStdioServer — JSON-RPC dispatcher over the stdio transport.

Lifecycle: ``UNINITIALIZED -> INITIALIZED -> READY -> SHUTTING_DOWN``.  Each
input line is handled in its own task so a slow backend call never delays
reading the next line; responses may therefore leave out of order, but every
request receives exactly one response carrying its ``id``.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import json
import logging
import signal
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from fmcp import SERVER_NAME, __version__
from fmcp.errors import (
    INTERNAL_ERROR,
    InvalidRequestError,
    MessageParseError,
    MethodNotFoundError,
    ProtocolError,
    ToolExecutionError,
    ToolNotFoundError,
)
from fmcp.server.models import (
    InitializeResult,
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    RequestId,
    ServerInfo,
    parse_message,
)
from fmcp.tools.discovery import MCP_PROTOCOL_VERSION
from fmcp.utils.telemetry import ATTR_RPC_ERROR_CODE, ATTR_RPC_ID, ATTR_RPC_METHOD, get_tracer

if TYPE_CHECKING:
    from fmcp.server.handlers import ToolHandlers
    from fmcp.server.transport import StdioServerTransport
    from fmcp.tools.discovery import ToolRegistry
    from fmcp.updater import Updater

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

UNKNOWN_ID = "unknown"

MethodFn = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


class ServerState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    READY = "ready"
    SHUTTING_DOWN = "shutting_down"


def initialize_result() -> InitializeResult:
    return InitializeResult(
        protocol_version=MCP_PROTOCOL_VERSION,
        capabilities={"tools": {}, "resources": {}, "prompts": {}, "logging": {}},
        server_info=ServerInfo(name=SERVER_NAME, version=__version__),
    )


class MCPStdioServer:
    """Serves MCP methods for one stdio client.

    Usage::

        server = MCPStdioServer(registry, handlers, StdioServerTransport(), updater=updater)
        await server.run()   # returns on EOF or SIGINT/SIGTERM
    """

    def __init__(
        self,
        registry: ToolRegistry,
        handlers: ToolHandlers,
        transport: StdioServerTransport,
        *,
        updater: Updater | None = None,
    ) -> None:
        self._registry = registry
        self._handlers = handlers
        self._transport = transport
        self._updater = updater
        self.state = ServerState.UNINITIALIZED
        self._tasks: set[asyncio.Task[None]] = set()
        self._stop = asyncio.Event()
        self._methods: dict[str, MethodFn] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "resources/list": self._resources_list,
            "prompts/list": self._prompts_list,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Connect the transport and announce the server."""
        await self._transport.connect()
        self.state = ServerState.INITIALIZED
        await self.send_notification("initialized", initialize_result().model_dump(by_alias=True))
        self.state = ServerState.READY
        if self._updater is not None:
            self._updater.start()

    async def run(self) -> None:
        """Serve until end of input or a termination signal."""
        await self.start()
        self._install_signal_handlers()

        reader = asyncio.create_task(self._read_loop(), name="fmcp-reader")
        stopper = asyncio.create_task(self._stop.wait(), name="fmcp-stop")
        try:
            await asyncio.wait({reader, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            drain = not self._stop.is_set()
            for task in (reader, stopper):
                task.cancel()
            await asyncio.gather(reader, stopper, return_exceptions=True)
            self._remove_signal_handlers()
            await self.shutdown(drain=drain)

    def request_shutdown(self) -> None:
        """Ask :meth:`run` to stop; safe to call from a signal handler."""
        logger.info("Shutdown requested")
        self._stop.set()

    async def shutdown(self, *, drain: bool = True) -> None:
        """Finish (or cancel) in-flight requests, notify the client and close."""
        if self.state is ServerState.SHUTTING_DOWN:
            return
        self.state = ServerState.SHUTTING_DOWN

        if self._tasks:
            if not drain:
                for task in self._tasks:
                    task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)

        if self._updater is not None:
            await self._updater.cleanup()
        await self.send_notification("shutdown", {})
        await self._transport.close()
        logger.info("MCP server stopped")

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(sig, self.request_shutdown)

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.remove_signal_handler(sig)

    async def _read_loop(self) -> None:
        while True:
            try:
                line = await self._transport.receive()
            except ValueError as exc:
                logger.warning("Dropping oversized input line: %s", exc)
                await self._send_error(UNKNOWN_ID, MessageParseError())
                continue
            if line is None:
                logger.info("Input closed")
                return
            task = asyncio.create_task(self.handle_line(line))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    # ------------------------------------------------------------------
    # Message handling
    # ------------------------------------------------------------------

    async def handle_line(self, line: str) -> None:
        """Parse one input line and write its response, if it needs one."""
        try:
            message = parse_message(line)
        except MessageParseError as exc:
            logger.warning("Unparseable message: %s", exc.data)
            await self._send_error(UNKNOWN_ID, exc)
            return
        except InvalidRequestError as exc:
            logger.warning("Invalid request: %s", exc.data)
            request_id = exc.request_id if exc.request_id is not None else UNKNOWN_ID
            await self._send_error(request_id, exc)
            return

        if isinstance(message, JsonRpcNotification):
            logger.debug("Notification received: %s", message.method)
            return

        response = await self.dispatch(message)
        await self._transport.send(response.to_wire())

    async def dispatch(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Route *request* to its method; always returns a response."""
        with _tracer.start_as_current_span(f"fmcp.rpc.{request.method}") as span:
            span.set_attribute(ATTR_RPC_METHOD, request.method)
            span.set_attribute(ATTR_RPC_ID, str(request.id))
            try:
                method = self._methods.get(request.method)
                if method is None:
                    raise MethodNotFoundError(request.method)
                result = await method(request.params)
            except ProtocolError as exc:
                span.set_attribute(ATTR_RPC_ERROR_CODE, exc.code)
                return _error_response(request.id, exc)
            except Exception as exc:
                logger.exception("Unhandled error in %s", request.method)
                span.set_attribute(ATTR_RPC_ERROR_CODE, INTERNAL_ERROR)
                return _error_response(request.id, ProtocolError("Internal error", data=str(exc)))
        return JsonRpcResponse(id=request.id, result=result)

    async def send_notification(self, method: str, params: dict[str, Any]) -> None:
        notification = JsonRpcNotification(method=method, params=params)
        await self._transport.send(notification.model_dump())

    async def _send_error(self, request_id: RequestId, exc: ProtocolError) -> None:
        await self._transport.send(_error_response(request_id, exc).to_wire())

    # ------------------------------------------------------------------
    # Methods
    # ------------------------------------------------------------------

    async def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        client = params.get("clientInfo") or {}
        logger.info(
            "Client connected: %s %s (protocol %s)",
            client.get("name", "?"),
            client.get("version", "?"),
            params.get("protocolVersion", "?"),
        )
        return initialize_result().model_dump(by_alias=True)

    async def _ping(self, _: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def _tools_list(self, _: dict[str, Any]) -> dict[str, Any]:
        result = self._registry.get_all_tools()
        if not result.success or result.tools is None:
            raise ProtocolError("Failed to get tools list", data=result.error)
        return {
            "tools": [
                {"name": t.name, "description": t.description, "inputSchema": t.input_schema}
                for t in result.tools
            ],
        }

    async def _tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise ToolNotFoundError(str(name))
        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise ToolExecutionError(name, "arguments must be an object")

        try:
            result = await self._handlers.call(name, arguments)
        except ToolNotFoundError:
            raise
        except Exception as exc:
            logger.exception("Tool %s failed", name)
            raise ToolExecutionError(name, str(exc)) from exc

        return {
            "content": [
                {"type": "text", "text": json.dumps(result, indent=2, ensure_ascii=False, default=str)},
            ],
            "isError": result.get("success") is False,
        }

    async def _resources_list(self, _: dict[str, Any]) -> dict[str, Any]:
        return {"resources": []}

    async def _prompts_list(self, _: dict[str, Any]) -> dict[str, Any]:
        return {"prompts": []}


def _error_response(request_id: RequestId, exc: ProtocolError) -> JsonRpcResponse:
    return JsonRpcResponse(
        id=request_id,
        error=JsonRpcError(code=exc.code, message=exc.message, data=exc.data),
    )
