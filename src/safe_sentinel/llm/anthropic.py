"""Anthropic LLM provider using the ``anthropic`` SDK."""

from __future__ import annotations

import logging

from safe_sentinel.llm.base import BaseLLMProvider, LLMMessage, LLMResponse

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseLLMProvider):
    """LLM provider backed by the Anthropic Messages API.

    Uses :class:`anthropic.AsyncAnthropic` for all network calls so that the
    provider can be used inside ``asyncio`` event loops without blocking.
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

        import anthropic

        client_kwargs: dict = {"api_key": self.api_key}
        if self.base_url:
            client_kwargs["base_url"] = self.base_url

        self._client = anthropic.AsyncAnthropic(**client_kwargs)

    @staticmethod
    def _extract_system(messages: list[LLMMessage]) -> tuple[str | None, list[dict]]:
        """Separate the system prompt from the rest of the messages.

        Anthropic expects the system prompt as a top-level parameter, not
        embedded in the messages list.  If multiple system messages are
        present they are concatenated with newlines.
        """
        system_parts: list[str] = []
        converted: list[dict] = []
        for msg in messages:
            if msg.role == "system":
                system_parts.append(msg.content)
            else:
                converted.append({"role": msg.role, "content": msg.content})
        system_text = "\n".join(system_parts) if system_parts else None
        return system_text, converted

    @staticmethod
    def _parse_response(response) -> LLMResponse:
        """Parse an Anthropic ``Message`` object into our unified format."""
        text_parts = [block.text for block in response.content if block.type == "text"]

        usage = None
        if response.usage:
            usage = {
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            }

        return LLMResponse(
            content="\n".join(text_parts),
            usage=usage,
            stop_reason=response.stop_reason,
        )

    async def complete(self, messages: list[LLMMessage]) -> LLMResponse:
        """Send a completion request to the Anthropic Messages API."""
        system_text, anthropic_messages = self._extract_system(messages)

        kwargs: dict = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": anthropic_messages,
        }
        if system_text:
            kwargs["system"] = system_text
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature

        try:
            response = await self._client.messages.create(**kwargs)
        except Exception as exc:
            logger.error("Anthropic API call failed: %s", exc)
            raise

        return self._parse_response(response)
