"""Model-context request and response payloads."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from fmcp.api.models import ApiEndpoint


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class SearchOptions(BaseModel):
    query: str | None = None
    filters: dict[str, Any] = {}


class ContextOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    max_tokens: int | None = Field(default=None, gt=0, alias="maxTokens")
    temperature: float | None = None
    search: SearchOptions | None = None


class ModelContextRequest(BaseModel):
    """A free-text question to ground in the endpoint knowledge base."""

    query: str = Field(min_length=1)
    model: str = "default"
    options: ContextOptions = Field(default_factory=ContextOptions)


class ModelContextResponse(BaseModel):
    """The rendered context document, or the reason it could not be built."""

    model_config = ConfigDict(frozen=True)

    success: bool
    context: str | None = None
    endpoints: tuple[ApiEndpoint, ...] = ()
    model: str | None = None
    tokens: int | None = None
    error: str | None = None
    timestamp: str = Field(default_factory=utc_timestamp)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
