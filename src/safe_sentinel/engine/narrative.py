"""Advisory LLM security narrative.

The narrative is produced after the verdict is final and is never read
back for decisions. Any failure degrades to a fixed fallback string.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING

from web3 import Web3

from safe_sentinel.errors import NarrativeGenerationError
from safe_sentinel.llm.base import LLMMessage

if TYPE_CHECKING:
    from safe_sentinel.llm.base import BaseLLMProvider
    from safe_sentinel.models import SecurityChecks
    from safe_sentinel.safe.models import PendingTransaction

logger = logging.getLogger("safe_sentinel.engine.narrative")

FALLBACK_ANALYSIS = "Error generating security analysis."
EMPTY_ANALYSIS = "No security analysis generated"
DISABLED_ANALYSIS = "AI analysis disabled."

SYSTEM_PROMPT = (
    "You are a blockchain security expert analyzing a Safe transaction. "
    "Provide a concise but comprehensive security assessment based on the "
    "following checks. Focus on potential risks and recommended actions."
)


def _display_value(tx: PendingTransaction) -> str:
    try:
        return str(Web3.from_wei(tx.value_wei, "ether"))
    except ValueError:
        # Unparseable amounts are shown as received
        return tx.value


def build_prompt(tx: PendingTransaction, security_checks: SecurityChecks) -> list[LLMMessage]:
    details = {
        "to": tx.to,
        "value": _display_value(tx),
        "data": "Contract interaction" if tx.has_calldata else "Simple transfer",
    }
    if tx.data_decoded is not None:
        details["method"] = tx.data_decoded.method

    context = "\n".join(
        f"{name}: {check.message} (Risk: {check.risk.value})"
        for name, check in security_checks.items()
    )
    user = (
        f"Transaction Details:\n{json.dumps(details, indent=2)}\n\n"
        f"Security Checks Results:\n{context}\n\n"
        "Please provide:\n"
        "1. Overall risk assessment\n"
        "2. Key security concerns (if any)\n"
        "3. Recommended actions\n"
        "4. Additional considerations"
    )
    return [
        LLMMessage(role="system", content=SYSTEM_PROMPT),
        LLMMessage(role="user", content=user),
    ]


class NarrativeReporter:
    """Requests the advisory report from an LLM provider (if any)."""

    def __init__(self, provider: BaseLLMProvider | None, timeout: float = 30.0):
        self.provider = provider
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return self.provider is not None

    async def _request(
        self, tx: PendingTransaction, security_checks: SecurityChecks
    ) -> str:
        try:
            messages = build_prompt(tx, security_checks)
            response = await asyncio.wait_for(
                self.provider.complete(messages), timeout=self._timeout
            )
        except asyncio.TimeoutError as exc:
            raise NarrativeGenerationError(
                f"LLM call timed out after {self._timeout}s"
            ) from exc
        except Exception as exc:
            raise NarrativeGenerationError(str(exc)) from exc
        return response.content.strip()

    async def generate(
        self, tx: PendingTransaction, security_checks: SecurityChecks
    ) -> str:
        if self.provider is None:
            return DISABLED_ANALYSIS
        try:
            content = await self._request(tx, security_checks)
        except NarrativeGenerationError as exc:
            logger.error(
                "Failed to generate security report for %s: %s", tx.safe_tx_hash, exc
            )
            return FALLBACK_ANALYSIS
        return content or EMPTY_ANALYSIS
