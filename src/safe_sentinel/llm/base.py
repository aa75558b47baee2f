"""Common data structures and the abstract provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class LLMMessage:
    role: str  # 'system', 'user', 'assistant'
    content: str


@dataclass
class LLMResponse:
    content: str
    usage: Optional[dict] = None  # {"input_tokens": ..., "output_tokens": ...}
    stop_reason: Optional[str] = None


class BaseLLMProvider(ABC):
    """Interface every LLM backend implements."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 500,
        temperature: float | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.temperature = temperature

    @abstractmethod
    async def complete(self, messages: list[LLMMessage]) -> LLMResponse:
        """Send *messages* and return the model's reply."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} model={self.model}>"
