"""Token counting for context documents.

Uses tiktoken for OpenAI-family models and a character-based estimator for
everything else.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import tiktoken


@runtime_checkable
class TokenCounter(Protocol):
    """Protocol for counting tokens in a text."""

    def count(self, text: str) -> int: ...


class TiktokenCounter:
    """Token counter using tiktoken encodings.

    Falls back to ``cl100k_base`` when the model's encoding is unknown.
    """

    def __init__(self, model: str) -> None:
        try:
            self._enc = tiktoken.encoding_for_model(model)
        except KeyError:
            self._enc = tiktoken.get_encoding("cl100k_base")

    def count(self, text: str) -> int:
        return len(self._enc.encode(text))


_CHARS_PER_TOKEN = 4


class EstimatingCounter:
    """Fallback token counter that estimates ~4 characters per token."""

    def count(self, text: str) -> int:
        return -(-len(text) // _CHARS_PER_TOKEN)


_OPENAI_PREFIXES = ("gpt-", "o1", "o3", "o4", "text-davinci", "openai/")


def counter_for_model(model: str) -> TokenCounter:
    """Pick the most accurate counter available for *model*.

    Building a :class:`TiktokenCounter` may download its encoding, so callers
    on an event loop should run this in a thread.
    """
    name = model.lower()
    if name.startswith(_OPENAI_PREFIXES):
        return TiktokenCounter(name.removeprefix("openai/"))
    return EstimatingCounter()
