"""Backend API access — proxy client and payload models."""

from fmcp.api.client import ApiClient, build_base_url
from fmcp.api.models import ApiEndpoint, ApiResult, EndpointParameter, UpdateInfo

__all__ = [
    "ApiClient",
    "ApiEndpoint",
    "ApiResult",
    "EndpointParameter",
    "UpdateInfo",
    "build_base_url",
]
