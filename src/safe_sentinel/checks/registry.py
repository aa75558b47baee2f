"""Check registry - the ordered set of risk checks run for every transaction."""

from __future__ import annotations

from typing import TYPE_CHECKING

from safe_sentinel.checks.address import AddressPoisoningCheck, AddressSimilarityCheck
from safe_sentinel.checks.base import RiskCheck
from safe_sentinel.checks.calldata import (
    ApprovalRisksCheck,
    ContractInteractionCheck,
    KnownScamsCheck,
    ProxyRisksCheck,
)
from safe_sentinel.checks.onchain import ChainDataProvider, ContractAgeCheck
from safe_sentinel.checks.value import ValueTransferCheck

if TYPE_CHECKING:
    from safe_sentinel.config import ChecksConfig
    from safe_sentinel.reputation.cache import AddressReputationCache


class CheckRegistry:
    """Holds risk checks by their reporting key, in registration order."""

    def __init__(self, checks: list[RiskCheck] | None = None):
        self._checks: dict[str, RiskCheck] = {}
        for check in checks or []:
            self.register(check)

    def register(self, check: RiskCheck) -> None:
        if not check.name:
            raise ValueError(f"Check {check!r} has no name")
        if check.name in self._checks:
            raise ValueError(f"A check named '{check.name}' is already registered")
        self._checks[check.name] = check

    def get_check(self, name: str) -> RiskCheck | None:
        return self._checks.get(name)

    def get_checks(self, names: list[str] | None = None) -> list[RiskCheck]:
        if names is None:
            return list(self._checks.values())
        return [self._checks[n] for n in names if n in self._checks]

    def list_names(self) -> list[str]:
        return list(self._checks.keys())

    def __len__(self) -> int:
        return len(self._checks)


def build_default_registry(
    config: ChecksConfig,
    cache: AddressReputationCache,
    chain_provider: ChainDataProvider | None = None,
    native_symbol: str = "ETH",
) -> CheckRegistry:
    """Register the five core checks plus the optional ones enabled in *config*."""
    registry = CheckRegistry(
        [
            AddressPoisoningCheck(cache),
            ValueTransferCheck(config.value_thresholds, symbol=native_symbol),
            ContractInteractionCheck(config.verified_contracts),
            KnownScamsCheck(),
            ApprovalRisksCheck(),
        ]
    )
    if config.enable_proxy_risks:
        registry.register(ProxyRisksCheck())
    if config.enable_contract_age:
        if chain_provider is None:
            raise ValueError("contractAge check is enabled but no chain provider was given")
        registry.register(
            ContractAgeCheck(
                chain_provider,
                min_transactions=config.min_contract_transactions,
                # Two sequential RPC calls must fit inside the engine's per-check budget
                timeout=config.check_timeout_seconds * 0.4,
            )
        )
    if config.enable_address_similarity:
        registry.register(AddressSimilarityCheck())
    return registry
