"""Checks that query the chain itself."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

from safe_sentinel.checks.base import RiskCheck, flagged, passed
from safe_sentinel.models import RiskLevel, SecurityCheck

if TYPE_CHECKING:
    from safe_sentinel.safe.models import PendingTransaction


class ChainDataProvider(Protocol):
    def get_code(self, address: str) -> bytes: ...

    def get_transaction_count(self, address: str) -> int: ...


class ContractAgeCheck(RiskCheck):
    """Young contracts (few transactions) are treated as high risk."""

    name = "contractAge"
    optional = True

    def __init__(
        self,
        provider: ChainDataProvider,
        min_transactions: int = 100,
        timeout: float = 10.0,
    ):
        self._provider = provider
        self._min_transactions = min_transactions
        self._timeout = timeout

    async def _call(self, func, *args):
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self._timeout)

    async def evaluate(self, tx: PendingTransaction) -> SecurityCheck:
        code = await self._call(self._provider.get_code, tx.to)
        if not code:
            return passed("Not a contract address")

        tx_count = await self._call(self._provider.get_transaction_count, tx.to)
        if tx_count < self._min_transactions:
            return flagged(
                RiskLevel.HIGH,
                "Contract has very low transaction count - potential risk",
            )
        return passed("Contract has sufficient transaction history")

    def fallback(self, exc: BaseException) -> SecurityCheck:
        return flagged(RiskLevel.MEDIUM, "Unable to verify contract age")
