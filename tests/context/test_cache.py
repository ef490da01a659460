"""Tests for the TTL context cache."""

from __future__ import annotations

from fmcp.context.cache import ContextCache, cache_key
from fmcp.context.models import ModelContextResponse


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _response(text: str = "ctx") -> ModelContextResponse:
    return ModelContextResponse(success=True, context=text)


class TestContextCache:
    def test_key_format(self) -> None:
        assert cache_key("gpt-4o", "list users") == "gpt-4o:list users"

    def test_hit_within_ttl(self) -> None:
        clock = FakeClock()
        cache = ContextCache(ttl=60, clock=clock)
        value = _response()
        cache.set("k", value)
        clock.now += 59
        assert cache.get("k") is value

    def test_expires_at_ttl(self) -> None:
        clock = FakeClock()
        cache = ContextCache(ttl=60, clock=clock)
        cache.set("k", _response())
        clock.now += 60
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_hit_does_not_extend_lifetime(self) -> None:
        clock = FakeClock()
        cache = ContextCache(ttl=60, clock=clock)
        cache.set("k", _response())
        clock.now += 50
        assert cache.get("k") is not None
        clock.now += 20
        assert cache.get("k") is None

    def test_overwrite_restarts_ttl(self) -> None:
        clock = FakeClock()
        cache = ContextCache(ttl=60, clock=clock)
        cache.set("k", _response("old"))
        clock.now += 50
        newer = _response("new")
        cache.set("k", newer)
        clock.now += 50
        assert cache.get("k") is newer

    def test_capacity_evicts_oldest(self) -> None:
        cache = ContextCache(ttl=60, max_entries=2, clock=FakeClock())
        cache.set("a", _response("a"))
        cache.set("b", _response("b"))
        cache.set("c", _response("c"))
        assert len(cache) == 2
        assert cache.get("a") is None
        assert cache.get("b") is not None
        assert cache.get("c") is not None

    def test_clear(self) -> None:
        cache = ContextCache(ttl=60)
        cache.set("a", _response())
        cache.clear()
        assert len(cache) == 0
        assert cache.get("a") is None
