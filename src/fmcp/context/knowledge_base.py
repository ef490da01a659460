"""EndpointKnowledgeBase — the documented backend endpoints the server can cite.

The endpoint list is fetched from the backend and replaced wholesale on every
refresh; readers always see one complete snapshot.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from fmcp.api.models import ApiEndpoint

if TYPE_CHECKING:
    from fmcp.api.client import ApiClient

logger = logging.getLogger(__name__)

_WORD = re.compile(r"\w+", re.UNICODE)
_MIN_TERM_LEN = 3


class EndpointKnowledgeBase:
    """Searchable snapshot of :class:`ApiEndpoint` records and page-builder blocks."""

    def __init__(self, client: ApiClient, endpoints: list[ApiEndpoint] | None = None) -> None:
        self._client = client
        self._endpoints: tuple[ApiEndpoint, ...] = tuple(endpoints or ())
        self._blocks: tuple[str, ...] = ()

    @property
    def blocks(self) -> tuple[str, ...]:
        return self._blocks

    def all(self) -> list[ApiEndpoint]:
        return list(self._endpoints)

    def count(self) -> int:
        return len(self._endpoints)

    async def refresh(self) -> bool:
        """Reload endpoints (and blocks) from the backend.

        Tries ``/endpoints/knowledge-base`` first and falls back to the plain
        ``/endpoints`` listing.  On failure the previous snapshot is kept.
        """
        result = await self._client.get_endpoint_knowledge_base()
        if not result.success:
            logger.info("Knowledge base unavailable (%s), falling back to /endpoints", result.error)
            result = await self._client.get_api_endpoints()
        if not result.success:
            logger.warning("Failed to refresh endpoints: %s", result.error)
            return False

        self._endpoints = tuple(_parse_endpoints(result.data))
        logger.info("Loaded %d API endpoints", len(self._endpoints))

        blocks = await self._client.get_available_blocks()
        if blocks.success:
            self._blocks = tuple(_parse_blocks(blocks.data))
        return True

    def search(self, query: str) -> list[ApiEndpoint]:
        """Rank endpoints by how many query terms they mention.

        Matching is case-insensitive over method, path, description and tags.
        Ties keep knowledge-base order; endpoints matching no term are dropped.
        """
        snapshot = self._endpoints
        needle = query.strip().lower()
        if not needle:
            return list(snapshot)

        terms = [t for t in _WORD.findall(needle) if len(t) >= _MIN_TERM_LEN]
        scored: list[tuple[int, ApiEndpoint]] = []
        for endpoint in snapshot:
            haystack = _haystack(endpoint)
            score = sum(1 for term in terms if term in haystack)
            if needle in haystack:
                score += len(terms) + 1
            if score:
                scored.append((score, endpoint))
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [endpoint for _, endpoint in scored]


def _haystack(endpoint: ApiEndpoint) -> str:
    return " ".join(
        [endpoint.method, endpoint.path, endpoint.description, *endpoint.tags]
    ).lower()


def _parse_endpoints(data: Any) -> list[ApiEndpoint]:
    raw = data.get("endpoints", []) if isinstance(data, dict) else data
    if not isinstance(raw, list):
        return []
    endpoints: list[ApiEndpoint] = []
    for item in raw:
        try:
            endpoints.append(ApiEndpoint.model_validate(item))
        except ValidationError:
            logger.warning("Skipping malformed endpoint record: %r", item)
    return endpoints


def _parse_blocks(data: Any) -> list[str]:
    raw = data.get("blocks", []) if isinstance(data, dict) else data
    if not isinstance(raw, list):
        return []
    names: list[str] = []
    for item in raw:
        if isinstance(item, str):
            names.append(item)
        elif isinstance(item, dict):
            name = item.get("slug") or item.get("name")
            if name:
                names.append(str(name))
    return names
