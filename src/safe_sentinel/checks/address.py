"""Destination-address checks: reputation lists and look-alike addresses."""

from __future__ import annotations

from typing import TYPE_CHECKING

from safe_sentinel.checks.base import RiskCheck, flagged, passed
from safe_sentinel.models import RiskLevel, SecurityCheck
from safe_sentinel.reputation.cache import normalize

if TYPE_CHECKING:
    from safe_sentinel.reputation.cache import AddressReputationCache
    from safe_sentinel.safe.models import PendingTransaction


class AddressPoisoningCheck(RiskCheck):
    """Denylisted destination -> critical. Allowlisted or unknown -> none."""

    name = "addressPoisoning"

    def __init__(self, cache: AddressReputationCache):
        self._cache = cache

    def evaluate(self, tx: PendingTransaction) -> SecurityCheck:
        if self._cache.is_denylisted(tx.to):
            return flagged(
                RiskLevel.CRITICAL,
                "Destination address is known to be malicious (MyEtherWallet darklist)",
            )
        if self._cache.is_allowlisted(tx.to):
            return passed("Destination address is verified (MyEtherWallet lightlist)")
        return passed("No address poisoning risks detected")

    def fallback(self, exc: BaseException) -> SecurityCheck:
        return flagged(RiskLevel.HIGH, "Error checking address safety")


# Well-known contracts that poisoning campaigns imitate with vanity addresses
COMMON_CONTRACTS: dict[str, str] = {
    "0x7a250d5630b4cf539739df2c5dacb4c659f2488d": "Uniswap V2 Router",
    "0x68b3465833fb72a70ecdf485e0e4c7bd8665fc45": "Uniswap V3 Router",
    "0x00000000006c3852cbef3e08e8df289169ede581": "OpenSea Seaport",
}


def address_similarity(a: str, b: str) -> float:
    """Fraction of positions at which the two addresses share a character."""
    length = min(len(a), len(b))
    if length == 0:
        return 0.0
    matches = sum(1 for i in range(length) if a[i] == b[i])
    return matches / length


class AddressSimilarityCheck(RiskCheck):
    """Flags destinations that look like, but are not, a well-known contract."""

    name = "addressSimilarity"
    optional = True

    def __init__(
        self,
        known_contracts: dict[str, str] | None = None,
        threshold: float = 0.9,
    ):
        contracts = known_contracts if known_contracts is not None else COMMON_CONTRACTS
        self._known = {normalize(addr): label for addr, label in contracts.items()}
        self._threshold = threshold

    def evaluate(self, tx: PendingTransaction) -> SecurityCheck:
        target = normalize(tx.to)
        if target in self._known:
            return passed(f"Destination is the genuine {self._known[target]}")
        for known, label in self._known.items():
            if address_similarity(target, known) > self._threshold:
                return flagged(
                    RiskLevel.HIGH,
                    f"Destination closely resembles {label} ({known}) - possible address poisoning",
                )
        return passed("Destination does not imitate a well-known contract")
