"""ContextCache — TTL map for rendered context documents.

Entries expire lazily: an expired entry is dropped the next time its key is
read.  A hit never extends the entry's lifetime.  When ``max_entries`` is
reached the oldest-inserted entry is evicted first.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from fmcp.context.models import ModelContextResponse


class _Entry(NamedTuple):
    value: ModelContextResponse
    expires_at: float


def cache_key(model: str, query: str) -> str:
    return f"{model}:{query}"


class ContextCache:
    """Thread-safe TTL cache keyed by ``"{model}:{query}"``.

    Concurrent ``set`` calls on the same key are last-write-wins.
    """

    def __init__(
        self,
        ttl: float,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> ModelContextResponse | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: ModelContextResponse) -> None:
        with self._lock:
            self._entries.pop(key, None)
            while len(self._entries) >= self._max_entries:
                self._entries.popitem(last=False)
            self._entries[key] = _Entry(value, self._clock() + self._ttl)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
