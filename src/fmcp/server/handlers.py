"""ToolHandlers — the built-in implementations behind ``tools/call``.

Each handler takes the call's ``arguments`` and returns a JSON-ready dict.
Upstream failures are already folded into ``success=False`` by the
:class:`~fmcp.api.client.ApiClient`; anything a handler raises is reported by
the server as an execution error.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from fmcp import __version__
from fmcp.context.models import ModelContextRequest, ModelContextResponse
from fmcp.errors import ToolNotFoundError
from fmcp.updater import is_newer
from fmcp.utils.telemetry import ATTR_TOOL_NAME, get_tracer

if TYPE_CHECKING:
    from fmcp.api.client import ApiClient
    from fmcp.config import ServerConfig
    from fmcp.context.handler import ContextHandler
    from fmcp.context.knowledge_base import EndpointKnowledgeBase

_tracer = get_tracer(__name__)

ToolFn = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]

PROXY_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


class ToolHandlers:
    """Maps tool names to coroutines and dispatches calls."""

    def __init__(
        self,
        config: ServerConfig,
        client: ApiClient,
        knowledge_base: EndpointKnowledgeBase,
        context_handler: ContextHandler,
    ) -> None:
        self._config = config
        self._client = client
        self._kb = knowledge_base
        self._context = context_handler
        self._handlers: dict[str, ToolFn] = {
            "get_api_health": self._api_health,
            "get_api_endpoints": self._api_endpoints,
            "refresh_api_endpoints": self._refresh_endpoints,
            "get_model_context": self._model_context,
            "proxy_api_request": self._proxy_request,
            "get_integrations": self._integrations,
            "check_for_updates": self._check_for_updates,
        }

    def names(self) -> list[str]:
        return list(self._handlers)

    async def call(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Run the handler registered for *name*.

        Raises:
            ToolNotFoundError: No handler is registered under *name*.
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise ToolNotFoundError(name)
        with _tracer.start_as_current_span("fmcp.tool.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            return await handler(arguments)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _api_health(self, _: dict[str, Any]) -> dict[str, Any]:
        connected = await self._client.test_connection()
        return {
            "success": connected,
            "version": __version__,
            "message": "API is healthy" if connected else "API connection failed",
            "endpointsCount": self._kb.count(),
            "apiConfig": {
                "basePath": self._config.base_path,
                "apiVersion": self._config.api_version,
            },
        }

    async def _api_endpoints(self, arguments: dict[str, Any]) -> dict[str, Any]:
        query = str(arguments.get("query") or "").strip()
        if not query:
            return (await self._client.get_api_endpoints()).to_wire()
        return {
            "success": True,
            "endpoints": [e.to_wire() for e in self._kb.search(query)],
            "totalEndpoints": self._kb.count(),
            "query": query,
        }

    async def _refresh_endpoints(self, _: dict[str, Any]) -> dict[str, Any]:
        updated = await self._kb.refresh()
        return {
            "success": updated,
            "message": "Endpoints refreshed" if updated else "Failed to refresh endpoints",
            "endpointsCount": self._kb.count(),
        }

    async def _model_context(self, arguments: dict[str, Any]) -> dict[str, Any]:
        if not arguments.get("query"):
            return ModelContextResponse(success=False, error="Query is required").to_wire()
        try:
            request = ModelContextRequest.model_validate(arguments)
        except ValidationError as exc:
            return ModelContextResponse(success=False, error=_describe(exc)).to_wire()
        return (await self._context.handle(request)).to_wire()

    async def _proxy_request(self, arguments: dict[str, Any]) -> dict[str, Any]:
        method = str(arguments.get("method") or "").upper()
        path = arguments.get("path")
        if not method or not path:
            msg = "Method and path are required"
            raise ValueError(msg)
        if method not in PROXY_METHODS:
            msg = f"HTTP method not supported: {method}"
            raise ValueError(msg)
        result = await self._client.request(
            method,
            str(path),
            body=arguments.get("data"),
            params=arguments.get("params"),
            headers=arguments.get("headers"),
        )
        return result.to_wire()

    async def _integrations(self, arguments: dict[str, Any]) -> dict[str, Any]:
        return (await self._client.get_integrations(arguments.get("type"))).to_wire()

    async def _check_for_updates(self, _: dict[str, Any]) -> dict[str, Any]:
        result = await self._client.check_for_updates(__version__)
        if not result.success:
            return {"success": False, "error": result.error, "currentVersion": __version__}
        info = result.data
        return {
            "success": True,
            "currentVersion": __version__,
            **info.model_dump(by_alias=True, exclude_none=True),
            "hasUpdate": info.has_update and is_newer(info.latest_version, __version__),
        }


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'arguments'}: {error['msg']}"
        for error in exc.errors()
    )
