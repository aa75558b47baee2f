"""Builds the configured LLM provider for the security narrative."""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

from safe_sentinel.config import LLMConfig, is_unresolved
from safe_sentinel.llm.base import BaseLLMProvider

if TYPE_CHECKING:
    from safe_sentinel.config import LLMProviderConfig

logger = logging.getLogger(__name__)

# Registry of supported provider names -> their implementation classes.
# Imports are deferred to avoid pulling in optional SDK dependencies at
# module load time.
_PROVIDER_FACTORIES: dict[str, str] = {
    "anthropic": "safe_sentinel.llm.anthropic.AnthropicProvider",
    "openai": "safe_sentinel.llm.openai.OpenAIProvider",
}

_DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-5-20250929",
    "openai": "gpt-4o-mini",
}


def _import_provider_class(dotted_path: str) -> type[BaseLLMProvider]:
    """Dynamically import a provider class from its fully-qualified path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    if not (isinstance(cls, type) and issubclass(cls, BaseLLMProvider)):
        raise TypeError(
            f"Expected a BaseLLMProvider subclass at '{dotted_path}', "
            f"got {cls!r}"
        )
    return cls


class LLMRouter:
    """Creates provider instances from ``LLMConfig`` and caches them.

    Parameters
    ----------
    llm_config:
        The ``llm`` section of the configuration.
    """

    def __init__(self, llm_config: LLMConfig):
        self._config = llm_config
        self._providers: dict[str, BaseLLMProvider] = {}

    def _get_provider_config(self, provider_name: str) -> "LLMProviderConfig":
        """Retrieve the provider-specific config block or raise."""
        config_block = getattr(self._config, provider_name, None)
        if config_block is None:
            available = [
                attr
                for attr in ("anthropic", "openai")
                if getattr(self._config, attr, None) is not None
            ]
            raise ValueError(
                f"Provider '{provider_name}' is not configured. "
                f"Available configured providers: {available or 'none'}. "
                f"Add a '{provider_name}' section to your LLM configuration."
            )
        return config_block

    def get_provider(self, provider_name: str | None = None) -> BaseLLMProvider:
        """Get or create a provider instance.

        Raises
        ------
        ValueError
            If the requested provider is unknown, not configured, or has no
            API key.
        """
        name = provider_name or self._config.default_provider
        if name in self._providers:
            return self._providers[name]

        if name not in _PROVIDER_FACTORIES:
            raise ValueError(
                f"Unknown provider '{name}'. "
                f"Supported providers: {sorted(_PROVIDER_FACTORIES.keys())}"
            )

        provider_config = self._get_provider_config(name)
        if is_unresolved(provider_config.api_key):
            raise ValueError(
                f"API key for provider '{name}' is empty. "
                f"Set it in your configuration file or via environment "
                f"variables (e.g. ${{OPENAI_API_KEY}})."
            )

        provider_cls = _import_provider_class(_PROVIDER_FACTORIES[name])
        provider = provider_cls(
            api_key=provider_config.api_key,
            model=provider_config.model or _DEFAULT_MODELS[name],
            base_url=provider_config.base_url,
            max_tokens=provider_config.max_tokens,
            temperature=self._config.temperature,
        )

        self._providers[name] = provider
        logger.info(
            "Created %s provider (model=%s, base_url=%s)",
            name,
            provider.model,
            provider_config.base_url or "default",
        )
        return provider

    def try_get_provider(self) -> BaseLLMProvider | None:
        """Return the default provider, or ``None`` when narratives are disabled
        or the provider cannot be built."""
        if not self._config.enabled:
            return None
        try:
            return self.get_provider()
        except (ValueError, ImportError) as exc:
            logger.warning("AI analysis unavailable: %s", exc)
            return None
