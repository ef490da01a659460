"""ContextHandler — turns a free-text query into a grounded context document.

Steps for each request:

1. reject if model-context mode is off or the model is not allow-listed,
2. serve ``"{model}:{query}"`` from the cache when present,
3. otherwise search the knowledge base (``options.search.query`` wins over
   the raw query) and keep the first ``MAX_ENDPOINTS`` matches,
4. render the document, trimming trailing endpoints to fit the token budget,
5. cache and return.

Failures while searching or rendering come back as ``success=False``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from fmcp.context.cache import ContextCache, cache_key
from fmcp.context.counter import EstimatingCounter, TokenCounter, counter_for_model
from fmcp.context.models import ModelContextRequest, ModelContextResponse
from fmcp.utils.telemetry import ATTR_CONTEXT_CACHE_HIT, ATTR_CONTEXT_MODEL, get_tracer

if TYPE_CHECKING:
    from fmcp.api.models import ApiEndpoint
    from fmcp.config import LLMSettings
    from fmcp.context.knowledge_base import EndpointKnowledgeBase

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

MAX_ENDPOINTS = 10

# Page-builder vocabulary, English and Russian stems.
PAGE_KEYWORDS = ("block", "блок", "landing", "лендинг", "page", "страниц")

DISABLED_ERROR = "Model context mode is disabled"


class ContextHandler:
    """Builds and memoises context documents for LLM clients."""

    def __init__(
        self,
        settings: LLMSettings,
        knowledge_base: EndpointKnowledgeBase,
        *,
        cache: ContextCache | None = None,
        counter_factory: Callable[[str], TokenCounter] = counter_for_model,
    ) -> None:
        self._settings = settings
        self._kb = knowledge_base
        self._cache = cache or ContextCache(
            ttl=settings.caching.ttl,
            max_entries=settings.caching.max_entries,
        )
        self._counter_factory = counter_factory
        self._counters: dict[str, TokenCounter] = {}

    def clear_cache(self) -> None:
        self._cache.clear()

    async def handle(self, request: ModelContextRequest) -> ModelContextResponse:
        if not self._settings.model_context_enabled:
            return ModelContextResponse(success=False, error=DISABLED_ERROR)
        if not self._settings.is_model_allowed(request.model):
            return ModelContextResponse(
                success=False,
                model=request.model,
                error=f"Model '{request.model}' is not allowed",
            )

        key = cache_key(request.model, request.query)
        with _tracer.start_as_current_span("fmcp.context.generate") as span:
            span.set_attribute(ATTR_CONTEXT_MODEL, request.model)
            if self._settings.caching.enabled:
                cached = self._cache.get(key)
                span.set_attribute(ATTR_CONTEXT_CACHE_HIT, cached is not None)
                if cached is not None:
                    return cached

            counter = await self._counter(request.model)
            try:
                response = self._generate(request, counter)
            except Exception as exc:
                logger.exception("Context generation failed for %r", request.query)
                return ModelContextResponse(success=False, model=request.model, error=str(exc))

        if self._settings.caching.enabled:
            self._cache.set(key, response)
        return response

    async def _counter(self, model: str) -> TokenCounter:
        """Return the counter for *model*, building it off the event loop.

        Encodings may be downloaded on first use; if that fails the
        character estimator is used for this request.
        """
        counter = self._counters.get(model)
        if counter is not None:
            return counter
        try:
            counter = await asyncio.to_thread(self._counter_factory, model)
        except Exception:
            logger.warning("Token counter for %r unavailable, estimating", model, exc_info=True)
            return EstimatingCounter()
        self._counters[model] = counter
        return counter

    def _generate(self, request: ModelContextRequest, counter: TokenCounter) -> ModelContextResponse:
        search = request.options.search
        search_query = search.query if search is not None and search.query else request.query
        endpoints = self._kb.search(search_query)[:MAX_ENDPOINTS]

        budget = request.options.max_tokens or self._settings.max_tokens
        context = self._render(request.query, endpoints)
        tokens = counter.count(context)
        while tokens > budget and endpoints:
            endpoints = endpoints[:-1]
            context = self._render(request.query, endpoints)
            tokens = counter.count(context)

        return ModelContextResponse(
            success=True,
            context=context,
            endpoints=tuple(endpoints),
            model=request.model,
            tokens=tokens,
        )

    def _render(self, query: str, endpoints: Sequence[ApiEndpoint]) -> str:
        lines = [f"Query: {query}", ""]

        if any(keyword in query.lower() for keyword in PAGE_KEYWORDS):
            lines.append(
                "Note: this request concerns pages built from blocks. Pages are assembled "
                "from an ordered list of blocks; create or update them through the pages "
                "endpoints and reference blocks by their slug."
            )
            if self._kb.blocks:
                lines.append(f"Available blocks: {', '.join(self._kb.blocks)}")
            lines.append("")

        if endpoints:
            lines.append(f"Relevant API endpoints ({len(endpoints)}):")
            lines.append("")
            for index, endpoint in enumerate(endpoints, start=1):
                lines.extend(_render_endpoint(index, endpoint))
        else:
            lines.append("No matching API endpoints were found.")
            lines.append("")

        lines += [
            f"Total endpoints in knowledge base: {self._kb.count()}",
            "",
            "Usage:",
            "- Paths are relative to the configured API base URL.",
            "- Call endpoints with the proxy_api_request tool; authentication is added automatically.",
            "- Check the `success` field of every response before using its data.",
        ]
        return "\n".join(lines)


def _render_endpoint(index: int, endpoint: ApiEndpoint) -> list[str]:
    lines = [f"{index}. {endpoint.method.upper()} {endpoint.path}"]
    if endpoint.description:
        lines.append(f"   Description: {endpoint.description}")
    if endpoint.parameters:
        params = ", ".join(
            f"{p.name} ({p.location}, {'required' if p.required else 'optional'})"
            for p in endpoint.parameters
        )
        lines.append(f"   Parameters: {params}")
    lines.append(f"   Authentication: {'required' if endpoint.security else 'not required'}")
    lines.append("")
    return lines
