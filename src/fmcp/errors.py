"""Shared error types for the MCP server."""

from __future__ import annotations

from typing import Any

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603


class FmcpError(Exception):
    """Base error for all server failures."""


class ConfigError(FmcpError):
    """Configuration could not be resolved or failed validation."""


class ProtocolError(FmcpError):
    """A JSON-RPC exchange failed and must be reported to the client.

    Subclasses carry the JSON-RPC ``code`` they map to.
    """

    code: int = INTERNAL_ERROR

    def __init__(self, message: str, data: Any = None) -> None:
        self.message = message
        self.data = data
        super().__init__(message)


class MessageParseError(ProtocolError):
    """An input line is not valid JSON."""

    code = PARSE_ERROR

    def __init__(self, detail: str = "") -> None:
        super().__init__("Parse error", data=detail or None)


class InvalidRequestError(ProtocolError):
    """Valid JSON that is not a JSON-RPC request or notification."""

    code = INVALID_REQUEST

    def __init__(self, detail: str = "", request_id: str | int | None = None) -> None:
        self.request_id = request_id
        super().__init__("Invalid Request", data=detail or None)


class MethodNotFoundError(ProtocolError):
    """The requested JSON-RPC method is not served."""

    code = METHOD_NOT_FOUND

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Method not found: {method}")


class ToolNotFoundError(ProtocolError):
    """Requested tool does not exist in the registry."""

    code = METHOD_NOT_FOUND

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool not found: {name}")


class ToolExecutionError(ProtocolError):
    """A known tool raised while executing."""

    code = INTERNAL_ERROR

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        self.detail = detail
        super().__init__(
            f"Tool execution failed: {name}" + (f": {detail}" if detail else ""),
            data=detail or None,
        )
