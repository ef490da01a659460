"""Context generation — endpoint knowledge base, token counting and caching."""

from fmcp.context.cache import ContextCache, cache_key
from fmcp.context.counter import EstimatingCounter, TiktokenCounter, TokenCounter, counter_for_model
from fmcp.context.handler import ContextHandler
from fmcp.context.knowledge_base import EndpointKnowledgeBase
from fmcp.context.models import ContextOptions, ModelContextRequest, ModelContextResponse, SearchOptions

__all__ = [
    "ContextCache",
    "ContextHandler",
    "ContextOptions",
    "EndpointKnowledgeBase",
    "EstimatingCounter",
    "ModelContextRequest",
    "ModelContextResponse",
    "SearchOptions",
    "TiktokenCounter",
    "TokenCounter",
    "cache_key",
    "counter_for_model",
]
