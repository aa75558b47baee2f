"""LLM provider abstraction for the advisory security narrative.

Provides a unified interface for Anthropic, OpenAI, and any
OpenAI-compatible endpoint through a common set of data structures and a
routing layer.
"""

from safe_sentinel.llm.base import BaseLLMProvider, LLMMessage, LLMResponse
from safe_sentinel.llm.router import LLMRouter

__all__ = [
    "BaseLLMProvider",
    "LLMMessage",
    "LLMResponse",
    "LLMRouter",
]
