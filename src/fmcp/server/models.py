"""JSON-RPC 2.0 messages and MCP payloads.

Incoming lines are validated by :func:`parse_message` into exactly one of
:class:`JsonRpcRequest` or :class:`JsonRpcNotification`; anything else is
rejected at this boundary.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fmcp.errors import InvalidRequestError, MessageParseError

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------

RequestId = int | str


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message."""

    jsonrpc: Literal["2.0"] = "2.0"
    method: str
    id: RequestId
    params: dict[str, Any] = {}


class JsonRpcNotification(BaseModel):
    """A JSON-RPC 2.0 notification; never answered."""

    jsonrpc: Literal["2.0"] = "2.0"
    method: str
    params: dict[str, Any] = {}


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            data["error"] = self.error.model_dump(exclude_none=True)
        else:
            data["result"] = self.result if self.result is not None else {}
        return data


IncomingMessage = JsonRpcRequest | JsonRpcNotification


def parse_message(line: str | bytes) -> IncomingMessage:
    """Decode one input line.

    Raises:
        MessageParseError: The line is not JSON.
        InvalidRequestError: The JSON is not a request or notification.
    """
    try:
        raw: Any = json.loads(line)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MessageParseError(str(exc)) from exc

    if not isinstance(raw, dict):
        raise InvalidRequestError("Message must be a JSON object")

    request_id = raw.get("id")
    if request_id is not None and not isinstance(request_id, (int, str)):
        request_id = None

    try:
        if "id" in raw and raw["id"] is not None:
            return JsonRpcRequest.model_validate(raw)
        return JsonRpcNotification.model_validate(raw)
    except ValidationError as exc:
        raise InvalidRequestError(str(exc), request_id=request_id) from exc


# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class ServerInfo(BaseModel):
    name: str
    version: str


class InitializeResult(BaseModel):
    """Body of the ``initialize`` response and the ``initialized`` notification."""

    model_config = ConfigDict(populate_by_name=True)

    protocol_version: str = Field(alias="protocolVersion")
    capabilities: dict[str, dict[str, Any]]
    server_info: ServerInfo = Field(alias="serverInfo")
