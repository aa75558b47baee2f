"""OpenAI LLM provider using the ``openai`` SDK."""

from __future__ import annotations

import logging

from safe_sentinel.llm.base import BaseLLMProvider, LLMMessage, LLMResponse

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseLLMProvider):
    """LLM provider backed by the OpenAI Chat Completions API.

    Uses :class:`openai.AsyncOpenAI` for all network calls.  The ``base_url``
    parameter is forwarded to the client so this provider can target any
    OpenAI-compatible endpoint (e.g. local vLLM, Ollama, LiteLLM, etc.).
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 500,
        temperature: float | None = None,
    ):
        super().__init__(
            api_key=api_key,
            model=model,
            base_url=base_url,
            max_tokens=max_tokens,
            temperature=temperature,
        )

        import openai

        client_kwargs: dict = {"api_key": self.api_key}
        if self.base_url:
            client_kwargs["base_url"] = self.base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)

    @staticmethod
    def _parse_response(response) -> LLMResponse:
        """Parse an OpenAI ``ChatCompletion`` into our unified format."""
        choice = response.choices[0]

        usage = None
        if response.usage:
            usage = {
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            }

        return LLMResponse(
            content=choice.message.content or "",
            usage=usage,
            stop_reason=choice.finish_reason,
        )

    async def complete(self, messages: list[LLMMessage]) -> LLMResponse:
        """Send a completion request to the OpenAI Chat Completions API."""
        kwargs: dict = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except Exception as exc:
            logger.error("OpenAI API call failed: %s", exc)
            raise

        return self._parse_response(response)
