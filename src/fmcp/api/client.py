"""ApiClient — the single point of contact with the Flow Masters backend.

Every public coroutine resolves to an :class:`ApiResult`; transport errors,
non-2xx responses and GraphQL ``errors`` arrays are all reported as
``success=False`` instead of being raised.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from fmcp.api.models import ApiResult, UpdateInfo
from fmcp.utils.telemetry import ATTR_HTTP_METHOD, ATTR_HTTP_PATH, ATTR_HTTP_STATUS, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

DEFAULT_TIMEOUT = 10.0
CLIENT_HEADER = "Flow-Masters-MCP"

# Errors from httpx, or from building a request out of caller-supplied input.
REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL, TypeError, ValueError)


def build_base_url(api_url: str, base_path: str, api_version: str) -> str:
    """Join the API root, base path and optional version with single slashes.

    ``build_base_url("https://x.io/", "api/", "v1")`` -> ``https://x.io/api/v1``
    """
    root = api_url.rstrip("/")
    base = base_path.strip("/")
    version = api_version.strip().strip("/")
    url = f"{root}/{base}" if base else root
    if version:
        url = f"{url}/{version}"
    return url


class ApiClient:
    """Authenticated async HTTP client for REST and GraphQL calls.

    Usage::

        async with ApiClient(api_url, api_key) as client:
            result = await client.get("/integrations", params={"type": "webhook"})
            if result.success:
                ...
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        *,
        base_path: str = "/api",
        api_version: str = "v1",
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = build_base_url(api_url, base_path, api_version)
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
                "X-Client": CLIENT_HEADER,
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Generic requests
    # ------------------------------------------------------------------

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> ApiResult:
        return await self.request("GET", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        body: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> ApiResult:
        return await self.request("POST", path, body=body, params=params, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> ApiResult:
        """Issue ``method path`` and normalise the outcome into an :class:`ApiResult`."""
        try:
            response = await self._send(method, path, body=body, params=params, headers=headers)
        except REQUEST_ERRORS as exc:
            return self._failure(method, path, exc)
        return self._envelope(response)

    async def graphql_request(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        operation_name: str | None = None,
    ) -> ApiResult:
        """POST to ``/graphql``.

        A body with a top-level ``errors`` array is a failure even though the
        HTTP exchange succeeded; the error messages are joined with ``", "``.
        """
        payload = {"query": query, "variables": variables, "operationName": operation_name}
        try:
            response = await self._send("POST", "/graphql", body=payload)
        except REQUEST_ERRORS as exc:
            return self._failure("POST", "/graphql", exc)

        body = _json_or_none(response)
        if not isinstance(body, dict):
            return ApiResult.fail("GraphQL response is not a JSON object", response.status_code)

        errors = body.get("errors")
        if errors:
            messages = [
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in errors
            ]
            return ApiResult.fail(", ".join(messages), response.status_code)
        return ApiResult.ok(body.get("data"), response.status_code)

    # ------------------------------------------------------------------
    # Backend operations
    # ------------------------------------------------------------------

    async def test_connection(self) -> bool:
        """Health probe. Any failure reads as ``False``."""
        try:
            response = await self._send("GET", "/health")
            body = _json_or_none(response)
        except Exception:
            logger.warning("Connection test failed", exc_info=True)
            return False
        return isinstance(body, dict) and body.get("success") is True

    async def get_version(self) -> ApiResult:
        return await self.get("/version")

    async def get_integrations(self, integration_type: str | None = None) -> ApiResult:
        params = {"type": integration_type} if integration_type else None
        return await self.get("/integrations", params=params)

    async def get_api_endpoints(self) -> ApiResult:
        return await self.get("/endpoints")

    async def get_endpoint_knowledge_base(self) -> ApiResult:
        return await self.get("/endpoints/knowledge-base")

    async def get_available_blocks(self) -> ApiResult:
        """List the page-builder blocks the backend can render."""
        return await self.get("/blocks")

    async def check_for_updates(self, current_version: str) -> ApiResult:
        """Ask the backend whether a newer server release exists.

        On success ``data`` is an :class:`UpdateInfo`.
        """
        result = await self.get("/mcp/updates", params={"version": current_version})
        if not result.success:
            return result
        try:
            info = UpdateInfo.model_validate(result.data or {})
        except ValidationError as exc:
            return ApiResult.fail(f"Malformed update payload: {exc}", result.status_code)
        return ApiResult.ok(info, result.status_code)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        with _tracer.start_as_current_span("fmcp.http.request") as span:
            span.set_attribute(ATTR_HTTP_METHOD, method.upper())
            span.set_attribute(ATTR_HTTP_PATH, path)
            response = await self._client.request(
                method.upper(),
                path,
                json=body,
                params=params,
                headers=headers,
            )
            span.set_attribute(ATTR_HTTP_STATUS, response.status_code)
            response.raise_for_status()
            return response

    @staticmethod
    def _failure(method: str, path: str, exc: Exception) -> ApiResult:
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            detail = _error_detail(exc.response)
            message = f"Request failed with status code {status}"
            if detail:
                message = f"{message}: {detail}"
            logger.warning("API error %s %s: %s", method.upper(), path, message)
            return ApiResult.fail(message, status)

        message = str(exc) or type(exc).__name__
        logger.warning("API transport error %s %s: %s", method.upper(), path, message)
        return ApiResult.fail(message)

    @staticmethod
    def _envelope(response: httpx.Response) -> ApiResult:
        """Adopt the backend's own ``{success, data, error}`` envelope if present."""
        body = _json_or_none(response)
        if isinstance(body, dict) and isinstance(body.get("success"), bool):
            if "data" in body:
                data = body["data"]
            else:
                data = {k: v for k, v in body.items() if k not in ("success", "error")} or None
            if body["success"]:
                return ApiResult.ok(data, response.status_code)
            return ApiResult(
                success=False,
                data=data,
                error=str(body.get("error") or "Request failed"),
                status_code=response.status_code,
            )
        return ApiResult.ok(body, response.status_code)


def _json_or_none(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_detail(response: httpx.Response) -> str:
    body = _json_or_none(response)
    if isinstance(body, dict):
        for key in ("error", "message"):
            if body.get(key):
                return str(body[key])
    return ""
