"""Configuration system for Safe Sentinel.

Loads settings from `.safe-sentinel/config.yaml`, supports environment
variable expansion, and exposes typed sections for every collaborator the
signing agent talks to.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, model_validator

from safe_sentinel.errors import ConfigError


# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    If the variable is not set the placeholder is left as-is so that
    validation can catch it later.
    """

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object) -> object:
    """Walk an arbitrary nested structure and expand env vars in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item) for item in obj]
    return obj


def is_unresolved(value: str | None) -> bool:
    """True when *value* is empty or still holds a ``${VAR}`` placeholder."""
    return not value or bool(_ENV_VAR_RE.search(value))


# ---------------------------------------------------------------------------
# Pydantic v2 models
# ---------------------------------------------------------------------------


class LLMProviderConfig(BaseModel):
    """Configuration for a single LLM provider (Anthropic, OpenAI, etc.)."""

    api_key: str = ""
    model: str = ""
    base_url: Optional[str] = None  # For OpenAI-compatible endpoints
    max_tokens: int = 500


class LLMConfig(BaseModel):
    """LLM settings for the advisory security narrative."""

    enabled: bool = True
    default_provider: str = "openai"
    timeout_seconds: float = 30.0
    temperature: float = 0.7
    anthropic: Optional[LLMProviderConfig] = None
    openai: Optional[LLMProviderConfig] = None


class ReputationConfig(BaseModel):
    """Where the deny/allow lists come from and how often they refresh."""

    denylist_url: str = (
        "https://raw.githubusercontent.com/MyEtherWallet/ethereum-lists/"
        "master/src/addresses/addresses-darklist.json"
    )
    allowlist_url: str = (
        "https://raw.githubusercontent.com/MyEtherWallet/ethereum-lists/"
        "master/src/addresses/addresses-lightlist.json"
    )
    refresh_interval_seconds: float = 3600.0
    timeout_seconds: float = 15.0
    # Known-bad addresses shipped with the deployment, merged on every refresh
    extra_denylist: list[str] = Field(default_factory=list)


class ValueThresholds(BaseModel):
    """Native-currency thresholds (whole units, e.g. ETH) for valueTransfer."""

    low: float = 1
    medium: float = 10
    high: float = 50

    @model_validator(mode="after")
    def _ordered(self) -> "ValueThresholds":
        if not (0 <= self.low <= self.medium <= self.high):
            raise ValueError(
                f"Value thresholds must satisfy 0 <= low <= medium <= high, "
                f"got low={self.low}, medium={self.medium}, high={self.high}"
            )
        return self


class ChecksConfig(BaseModel):
    """Which risk checks run and the policy knobs they read."""

    value_thresholds: ValueThresholds = Field(default_factory=ValueThresholds)
    verified_contracts: list[str] = Field(
        default_factory=lambda: [
            "0x00000000006c3852cbEf3e08E8dF289169EdE581",  # OpenSea Seaport
            "0x7Be8076f4EA4A4AD08075C2508e481d6C946D12b",  # OpenSea Wyvern
        ]
    )
    enable_proxy_risks: bool = False
    enable_contract_age: bool = False
    enable_address_similarity: bool = False
    min_contract_transactions: int = 100
    check_timeout_seconds: float = 10.0


class ChainConfig(BaseModel):
    """On-chain data provider settings."""

    name: str = "sepolia"
    rpc_url: Optional[str] = None  # Overrides the chain's public RPC
    timeout_seconds: float = 10.0


class SafeServiceConfig(BaseModel):
    """Safe transaction service (multisig coordination) settings."""

    service_url: Optional[str] = None  # Defaults to the chain's hosted service
    api_key: str = ""
    default_safe_address: str = ""
    timeout_seconds: float = 20.0


class SignerConfig(BaseModel):
    """The co-signing owner key.

    Either ``private_key`` or ``keystore_path`` + ``password`` must resolve.
    """

    private_key: str = ""          # ${SIGNER_PRIVATE_KEY}
    keystore_path: Optional[str] = None
    password: str = ""             # ${SIGNER_KEYSTORE_PASSWORD}


class ServerConfig(BaseModel):
    """HTTP server settings."""

    port: int = 3000
    host: str = "127.0.0.1"


class SentinelConfig(BaseModel):
    """Root configuration object."""

    name: str = "safe-sentinel"
    llm: LLMConfig = Field(default_factory=LLMConfig)
    reputation: ReputationConfig = Field(default_factory=ReputationConfig)
    checks: ChecksConfig = Field(default_factory=ChecksConfig)
    chain: ChainConfig = Field(default_factory=ChainConfig)
    safe: SafeServiceConfig = Field(default_factory=SafeServiceConfig)
    signer: SignerConfig = Field(default_factory=SignerConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def get_root_dir(base: Path | None = None) -> Path:
    """Return the ``.safe-sentinel/`` root directory (no auto-create).

    Parameters
    ----------
    base:
        Parent directory that contains (or will contain) the root folder.
        Defaults to the current working directory.
    """
    if base is None:
        base = Path.cwd()
    return base / ".safe-sentinel"


def default_config_path(base: Path | None = None) -> Path:
    """Return the default ``config.yaml`` location, honouring ``SAFE_SENTINEL_CONFIG``."""
    env_path = os.environ.get("SAFE_SENTINEL_CONFIG")
    if env_path:
        return Path(env_path)
    return get_root_dir(base) / "config.yaml"


def load_config(path: Path) -> SentinelConfig:
    """Load and validate a configuration from a YAML file.

    Environment variable placeholders (``${VAR}``) are expanded before
    validation.

    Raises
    ------
    ConfigError
        If the file is missing, is not valid YAML, or fails validation.
    """
    if not path.exists():
        raise ConfigError(
            f"No configuration found at {path}. Run 'safe-sentinel init' first."
        )
    try:
        raw_data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    expanded = _expand_env_recursive(raw_data)
    try:
        return SentinelConfig.model_validate(expanded)
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc


def save_config(config: SentinelConfig, path: Path) -> None:
    """Serialize a :class:`SentinelConfig` to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="python", exclude_none=True)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, sort_keys=False)
