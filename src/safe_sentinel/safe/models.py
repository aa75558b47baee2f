"""Pydantic models for the Safe transaction service and batch results."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from safe_sentinel.models import SecurityChecks, Verdict


_SERVICE_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel, populate_by_name=True, extra="ignore"
)


# ---------------------------------------------------------------------------
# Coordination service shapes (read-only)
# ---------------------------------------------------------------------------


class DecodedParameter(BaseModel):
    model_config = _SERVICE_MODEL_CONFIG

    name: str = ""
    type: str = ""
    value: Any = None


class DecodedCall(BaseModel):
    """``dataDecoded`` as returned by the transaction service."""

    model_config = _SERVICE_MODEL_CONFIG

    method: str
    parameters: list[DecodedParameter] = Field(default_factory=list)


class PendingTransaction(BaseModel):
    """A multisig transaction awaiting confirmations."""

    model_config = _SERVICE_MODEL_CONFIG

    safe_tx_hash: str
    to: str
    value: str = "0"  # wei, decimal string
    data: Optional[str] = None
    data_decoded: Optional[DecodedCall] = None
    nonce: Optional[int] = None
    safe: Optional[str] = None
    execution_date: Optional[str] = None
    transaction_hash: Optional[str] = None

    @property
    def is_executed(self) -> bool:
        return self.execution_date is not None

    @property
    def value_wei(self) -> int:
        return int(self.value or "0")

    @property
    def has_calldata(self) -> bool:
        return bool(self.data) and self.data not in ("0x", "0X")


class WalletInfo(BaseModel):
    """Subset of the Safe info endpoint used by the agent."""

    model_config = _SERVICE_MODEL_CONFIG

    address: str
    nonce: int = 0
    threshold: int = 1
    owners: list[str] = Field(default_factory=list)
    version: Optional[str] = None


# ---------------------------------------------------------------------------
# Batch processing results
# ---------------------------------------------------------------------------


class TransactionState(str, Enum):
    SIGNED = "signed"
    SIGN_FAILED = "sign_failed"
    UNSAFE = "unsafe"


class BatchStatus(str, Enum):
    COMPLETED_ALL_SAFE = "completed_all_safe"
    HALTED_UNSAFE = "halted_unsafe"


class TransactionResult(BaseModel):
    """Terminal state of one transaction within a batch."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    safe_tx_hash: str
    state: TransactionState
    verdict: Verdict
    error: Optional[str] = None


class BatchResult(BaseModel):
    """Outcome of one pass over a wallet's pending queue.

    A halted batch is a terminal outcome: it needs human review before the
    queue is processed again.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: BatchStatus
    transactions_results: list[TransactionResult] = Field(default_factory=list)
    last_transaction: Optional[PendingTransaction] = None
    halted_verdict: Optional[Verdict] = None

    @property
    def safe(self) -> bool:
        return self.status is BatchStatus.COMPLETED_ALL_SAFE

    @property
    def security_checks(self) -> SecurityChecks:
        return self.halted_verdict.security_checks if self.halted_verdict else {}

    @property
    def summary(self) -> str:
        return self.halted_verdict.summary if self.halted_verdict else ""

    @property
    def ai_analysis(self) -> str:
        return self.halted_verdict.ai_analysis if self.halted_verdict else ""

    @property
    def signed(self) -> list[str]:
        return [
            r.safe_tx_hash
            for r in self.transactions_results
            if r.state is TransactionState.SIGNED
        ]

    def to_dict(self) -> dict:
        """JSON shape returned to callers.

        A halted batch carries the unsafe verdict's detail at the top level
        next to the results already processed.
        """
        body: dict[str, Any] = {
            "safe": self.safe,
            "status": self.status.value,
            "transactionsResults": [
                r.model_dump(mode="json", by_alias=True)
                for r in self.transactions_results
            ],
        }
        if self.halted_verdict is not None:
            body.update(self.halted_verdict.to_dict())
            body["safe"] = False
        else:
            body["lastTransaction"] = (
                self.last_transaction.model_dump(mode="json", by_alias=True)
                if self.last_transaction
                else None
            )
        return body
