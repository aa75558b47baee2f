"""Call-data heuristics: suspicious selectors, scam keywords, approvals, proxies.

Each check reads its policy from an ordered table of :class:`PatternRule`;
the first matching row decides the result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from safe_sentinel.checks.base import PatternRule, RiskCheck, first_match, flagged, passed
from safe_sentinel.models import RiskLevel, SecurityCheck
from safe_sentinel.reputation.cache import normalize

if TYPE_CHECKING:
    from safe_sentinel.safe.models import PendingTransaction


MAX_UINT256 = 2**256 - 1

_UNLIMITED_WORD = r"f{64}"


def _selector_rule(selector: str, label: str) -> PatternRule:
    return PatternRule.of(
        rf"^{selector}",
        RiskLevel.HIGH,
        f"Suspicious contract interaction detected ({label})",
    )


CONTRACT_INTERACTION_RULES: tuple[PatternRule, ...] = (
    _selector_rule("0xa9059cbb", "transfer"),
    _selector_rule("0x095ea7b3", "approve"),
    _selector_rule("0x40c10f19", "mint"),
    _selector_rule("0x8129fc1c", "initialize"),
    PatternRule.of(_UNLIMITED_WORD, RiskLevel.HIGH, "Unlimited token approval detected"),
)

KNOWN_SCAM_RULES: tuple[PatternRule, ...] = (
    PatternRule.of(
        r"claim|airdrop|free|reward|prize|giveaway",
        RiskLevel.CRITICAL,
        "Transaction matches known scam patterns",
    ),
    PatternRule.of(r"mint|claim|reward", RiskLevel.HIGH, "Suspicious token minting or claiming"),
    PatternRule.of(r"upgrade|migrate", RiskLevel.HIGH, "Suspicious upgrade or migration"),
    PatternRule.of(r"emergency|urgent", RiskLevel.HIGH, "Suspicious emergency action"),
)

PROXY_RULES: tuple[PatternRule, ...] = (
    PatternRule.of(
        r"upgrade|implementation|proxy",
        RiskLevel.HIGH,
        "Proxy upgrade detected - verify new implementation",
    ),
    PatternRule.of(
        r"^0x3659cfe6|^0x4f1ef286",  # upgradeTo / upgradeToAndCall
        RiskLevel.HIGH,
        "Proxy upgrade detected - verify new implementation",
    ),
    PatternRule.of(
        r"^0x8129fc1c",  # initialize()
        RiskLevel.HIGH,
        "Contract initialization detected - potential proxy manipulation",
    ),
)


def _scan_text(tx: PendingTransaction) -> str:
    """Raw call data plus the decoded method name, when the service decoded one."""
    parts = [tx.data or ""]
    if tx.data_decoded is not None:
        parts.append(tx.data_decoded.method)
    return "\n".join(p for p in parts if p)


def _match_any_line(rules: Iterable[PatternRule], text: str) -> PatternRule | None:
    # Anchored selector rules must see each part from its first character
    for rule in rules:
        if any(rule.matches(line) for line in text.splitlines()):
            return rule
    return None


class ContractInteractionCheck(RiskCheck):
    name = "contractInteraction"

    def __init__(self, verified_contracts: Iterable[str] = ()):
        self._verified = frozenset(normalize(a) for a in verified_contracts)

    def evaluate(self, tx: PendingTransaction) -> SecurityCheck:
        if not tx.has_calldata:
            return passed("Simple ETH transfer - no contract interaction")
        if normalize(tx.to) in self._verified:
            return passed("Interaction with verified contract")
        rule = first_match(CONTRACT_INTERACTION_RULES, tx.data)
        if rule is not None:
            return rule.to_check()
        return passed("Contract interaction appears normal", risk=RiskLevel.LOW)


class KnownScamsCheck(RiskCheck):
    name = "knownScams"

    def evaluate(self, tx: PendingTransaction) -> SecurityCheck:
        text = _scan_text(tx)
        if not text:
            return passed("No known scam patterns detected")
        rule = first_match(KNOWN_SCAM_RULES, text)
        if rule is not None:
            return rule.to_check()
        return passed("No known scam patterns detected")


class ApprovalRisksCheck(RiskCheck):
    """Flags decoded ``approve(spender, amount)`` calls granting ``2**256 - 1``."""

    name = "approvalRisks"

    def evaluate(self, tx: PendingTransaction) -> SecurityCheck:
        decoded = tx.data_decoded
        if decoded is None or decoded.method != "approve" or len(decoded.parameters) < 2:
            return passed("No approval risks detected")

        spender = decoded.parameters[0].value
        amount = int(str(decoded.parameters[1].value))
        if amount == MAX_UINT256:
            return flagged(
                RiskLevel.HIGH,
                f"Infinite approval risk detected for spender {spender} on token {tx.to}",
            )
        return passed("No approval risks detected")


class ProxyRisksCheck(RiskCheck):
    name = "proxyRisks"
    optional = True

    def evaluate(self, tx: PendingTransaction) -> SecurityCheck:
        text = _scan_text(tx)
        if not text:
            return passed("No proxy risks detected")
        rule = _match_any_line(PROXY_RULES, text)
        if rule is not None:
            return rule.to_check()
        return passed("No proxy risks detected")
