"""API models — the result envelope and the backend payloads the server reads."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Result envelope
# ---------------------------------------------------------------------------


class ApiResult(BaseModel):
    """Uniform outcome of every outbound call.

    ``success`` is always set; on failure ``error`` carries a human-readable
    message and ``data`` is usually ``None``.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    data: Any = None
    error: str | None = None
    status_code: int | None = Field(default=None, alias="statusCode")

    @classmethod
    def ok(cls, data: Any = None, status_code: int | None = None) -> ApiResult:
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(cls, error: str, status_code: int | None = None) -> ApiResult:
        return cls(success=False, error=error, status_code=status_code)

    def to_wire(self) -> dict[str, Any]:
        """Render with camelCase keys, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class UpdateInfo(BaseModel):
    """Payload of ``GET /mcp/updates``."""

    model_config = ConfigDict(populate_by_name=True)

    has_update: bool = Field(default=False, alias="hasUpdate")
    latest_version: str = Field(default="", alias="latestVersion")
    download_url: str | None = Field(default=None, alias="downloadUrl")
    release_notes: str | None = Field(default=None, alias="releaseNotes")


# ---------------------------------------------------------------------------
# Endpoint knowledge base
# ---------------------------------------------------------------------------


class EndpointParameter(BaseModel):
    """A single parameter accepted by an :class:`ApiEndpoint`."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    location: Literal["query", "path", "body", "header"] = Field(default="query", alias="in")
    required: bool = False
    type: str | None = None
    description: str | None = None


class ApiEndpoint(BaseModel):
    """One documented backend endpoint."""

    method: str
    path: str
    description: str = ""
    parameters: list[EndpointParameter] = []
    security: bool = False
    tags: list[str] = []

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
