"""Sequential signing of a wallet's pending queue, halting on the first unsafe transaction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Sequence

from safe_sentinel.errors import SafeServiceError, SignerError
from safe_sentinel.safe.models import (
    BatchResult,
    BatchStatus,
    PendingTransaction,
    TransactionResult,
    TransactionState,
)

if TYPE_CHECKING:
    from safe_sentinel.core.events import EventBus
    from safe_sentinel.engine.decision import DecisionEngine
    from safe_sentinel.models import Verdict
    from safe_sentinel.safe.client import SafeServiceClient
    from safe_sentinel.safe.signer import SafeSigner

logger = logging.getLogger("safe_sentinel.safe.orchestrator")

Evaluate = Callable[[PendingTransaction], Awaitable["Verdict"]]
Confirm = Callable[[PendingTransaction], Awaitable[None]]
OnResult = Callable[[TransactionResult], Awaitable[None]]


async def _process_one(
    tx: PendingTransaction, evaluate: Evaluate, confirm: Confirm
) -> TransactionResult:
    verdict = await evaluate(tx)
    if not verdict.safe:
        return TransactionResult(
            safe_tx_hash=tx.safe_tx_hash, state=TransactionState.UNSAFE, verdict=verdict
        )
    try:
        await confirm(tx)
    except (SafeServiceError, SignerError) as exc:
        logger.error("Failed to sign transaction %s: %s", tx.safe_tx_hash, exc)
        return TransactionResult(
            safe_tx_hash=tx.safe_tx_hash,
            state=TransactionState.SIGN_FAILED,
            verdict=verdict,
            error=str(exc),
        )
    return TransactionResult(
        safe_tx_hash=tx.safe_tx_hash, state=TransactionState.SIGNED, verdict=verdict
    )


async def sign_in_order(
    transactions: Sequence[PendingTransaction],
    evaluate: Evaluate,
    confirm: Confirm,
    on_result: Optional[OnResult] = None,
) -> BatchResult:
    """Fold over *transactions* in the given order, stopping at the first unsafe one.

    Nothing after the unsafe transaction is evaluated or signed. A failed
    confirmation is recorded and the fold continues.
    """
    results: list[TransactionResult] = []
    for tx in transactions:
        outcome = await _process_one(tx, evaluate, confirm)
        results.append(outcome)
        if on_result is not None:
            await on_result(outcome)
        if outcome.state is TransactionState.UNSAFE:
            return BatchResult(
                status=BatchStatus.HALTED_UNSAFE,
                transactions_results=results,
                last_transaction=tx,
                halted_verdict=outcome.verdict,
            )
    return BatchResult(
        status=BatchStatus.COMPLETED_ALL_SAFE,
        transactions_results=results,
        last_transaction=transactions[-1] if transactions else None,
    )


class SigningOrchestrator:
    """Walks a wallet's pending queue through the decision engine and co-signs it."""

    def __init__(
        self,
        engine: DecisionEngine,
        client: SafeServiceClient,
        signer: SafeSigner,
        events: EventBus | None = None,
    ):
        self.engine = engine
        self.client = client
        self.signer = signer
        self._events = events

    async def _confirm(self, tx: PendingTransaction) -> None:
        signature = self.signer.sign_hash(tx.safe_tx_hash)
        await self.client.confirm(tx.safe_tx_hash, signature)

    async def _on_result(self, result: TransactionResult) -> None:
        if self._events is None:
            return
        name = {
            TransactionState.SIGNED: "batch.signed",
            TransactionState.SIGN_FAILED: "batch.sign_failed",
            TransactionState.UNSAFE: "batch.halted",
        }[result.state]
        await self._events.emit(name, safe_tx_hash=result.safe_tx_hash, error=result.error)

    async def process_pending_transactions(self, wallet_address: str) -> BatchResult:
        pending = await self.client.list_pending(wallet_address)
        queue = [tx for tx in pending if not tx.is_executed]
        logger.info(
            "Processing %d unexecuted transaction(s) for %s", len(queue), wallet_address
        )

        result = await sign_in_order(queue, self.engine.evaluate, self._confirm, self._on_result)

        if result.safe:
            logger.info(
                "Batch for %s completed: %d signed, %d failed to sign",
                wallet_address,
                len(result.signed),
                len(result.transactions_results) - len(result.signed),
            )
            if self._events is not None:
                await self._events.emit(
                    "batch.completed", wallet=wallet_address, signed=result.signed
                )
        else:
            logger.warning(
                "Batch for %s halted at unsafe transaction %s; human review required",
                wallet_address,
                result.transactions_results[-1].safe_tx_hash,
            )
        return result
