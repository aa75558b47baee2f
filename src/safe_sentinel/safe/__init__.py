"""Safe multisig integration: transaction service client, signer, and batch orchestrator."""

from safe_sentinel.safe.client import SafeServiceClient
from safe_sentinel.safe.models import (
    BatchResult,
    BatchStatus,
    PendingTransaction,
    TransactionResult,
    TransactionState,
    WalletInfo,
)
from safe_sentinel.safe.orchestrator import SigningOrchestrator, sign_in_order
from safe_sentinel.safe.signer import SafeSigner

__all__ = [
    "BatchResult",
    "BatchStatus",
    "PendingTransaction",
    "SafeServiceClient",
    "SafeSigner",
    "SigningOrchestrator",
    "TransactionResult",
    "TransactionState",
    "WalletInfo",
    "sign_in_order",
]
