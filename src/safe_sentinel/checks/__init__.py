"""Independent risk checks evaluated for every pending transaction."""

from safe_sentinel.checks.address import AddressPoisoningCheck, AddressSimilarityCheck
from safe_sentinel.checks.base import PatternRule, RiskCheck
from safe_sentinel.checks.calldata import (
    ApprovalRisksCheck,
    ContractInteractionCheck,
    KnownScamsCheck,
    ProxyRisksCheck,
)
from safe_sentinel.checks.onchain import ContractAgeCheck
from safe_sentinel.checks.registry import CheckRegistry, build_default_registry
from safe_sentinel.checks.value import ValueTransferCheck

__all__ = [
    "AddressPoisoningCheck",
    "AddressSimilarityCheck",
    "ApprovalRisksCheck",
    "CheckRegistry",
    "ContractAgeCheck",
    "ContractInteractionCheck",
    "KnownScamsCheck",
    "PatternRule",
    "ProxyRisksCheck",
    "RiskCheck",
    "ValueTransferCheck",
    "build_default_registry",
]
