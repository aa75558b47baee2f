"""Native-currency value transfer check."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from web3 import Web3

from safe_sentinel.checks.base import RiskCheck, flagged, passed
from safe_sentinel.models import RiskLevel, SecurityCheck

if TYPE_CHECKING:
    from safe_sentinel.config import ValueThresholds
    from safe_sentinel.safe.models import PendingTransaction


def _fmt(amount: Decimal) -> str:
    return format(amount.normalize(), "f")


class ValueTransferCheck(RiskCheck):
    """Escalates with the amount of native currency moved.

    Comparisons are strict: a value exactly at a threshold stays in the
    lower band.
    """

    name = "valueTransfer"

    def __init__(self, thresholds: ValueThresholds, symbol: str = "ETH"):
        self._symbol = symbol
        self._low = Decimal(str(thresholds.low))
        self._medium = Decimal(str(thresholds.medium))
        self._high = Decimal(str(thresholds.high))
        self._low_wei = Web3.to_wei(self._low, "ether")
        self._medium_wei = Web3.to_wei(self._medium, "ether")
        self._high_wei = Web3.to_wei(self._high, "ether")

    def evaluate(self, tx: PendingTransaction) -> SecurityCheck:
        value = tx.value_wei
        if value > self._high_wei:
            return flagged(
                RiskLevel.HIGH,
                f"Very high value transfer detected (>{_fmt(self._high)} {self._symbol})",
            )
        if value > self._medium_wei:
            return flagged(
                RiskLevel.MEDIUM,
                f"High value transfer detected (>{_fmt(self._medium)} {self._symbol})",
            )
        if value > self._low_wei:
            return passed(
                f"Moderate value transfer detected (>{_fmt(self._low)} {self._symbol})",
                risk=RiskLevel.LOW,
            )
        return passed("Value transfer within safe limits")
