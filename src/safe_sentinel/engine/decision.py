"""Aggregation and decision engine.

Runs every registered check concurrently for one transaction, merges the
results into a :class:`Verdict`, and attaches the advisory narrative.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from safe_sentinel.engine.summary import generate_security_summary
from safe_sentinel.errors import CheckEvaluationError
from safe_sentinel.models import RiskLevel, SecurityCheck, SecurityChecks, Verdict

if TYPE_CHECKING:
    from safe_sentinel.checks.base import RiskCheck
    from safe_sentinel.checks.registry import CheckRegistry
    from safe_sentinel.core.events import EventBus
    from safe_sentinel.engine.narrative import NarrativeReporter
    from safe_sentinel.safe.models import PendingTransaction

logger = logging.getLogger("safe_sentinel.engine")


def is_safe(security_checks: SecurityChecks) -> bool:
    """Safe iff no check reports ``high`` or ``critical`` risk."""
    return not any(check.risk.blocks_signing for check in security_checks.values())


class DecisionEngine:
    """Fan-out/fan-in evaluation of one transaction.

    Parameters
    ----------
    registry:
        The checks to run. Every registered check yields exactly one entry
        in the resulting ``security_checks``.
    narrator:
        Optional advisory reporter; skipped when ``None``.
    check_timeout:
        Upper bound for any single check. A check that exceeds it, or lets
        an error escape, is recorded with its own fallback result
        (``high`` unless the check chooses otherwise).
    """

    def __init__(
        self,
        registry: CheckRegistry,
        narrator: NarrativeReporter | None = None,
        events: EventBus | None = None,
        check_timeout: float = 10.0,
    ):
        self.registry = registry
        self.narrator = narrator
        self._events = events
        self._check_timeout = check_timeout

    async def _run_check(self, check: RiskCheck, tx: PendingTransaction) -> SecurityCheck:
        try:
            return await asyncio.wait_for(check.run(tx), timeout=self._check_timeout)
        except asyncio.TimeoutError:
            error = CheckEvaluationError(check.name, f"timed out after {self._check_timeout}s")
        except Exception as exc:
            error = CheckEvaluationError(check.name, str(exc))
        logger.error("Check evaluation failed for %s: %s", tx.safe_tx_hash, error)
        return check.fallback(error)

    async def run_checks(self, tx: PendingTransaction) -> SecurityChecks:
        checks = self.registry.get_checks()
        results = await asyncio.gather(*(self._run_check(c, tx) for c in checks))
        return {check.name: result for check, result in zip(checks, results)}

    async def evaluate(
        self, tx: PendingTransaction, with_narrative: bool = True
    ) -> Verdict:
        security_checks = await self.run_checks(tx)
        safe = is_safe(security_checks)
        summary = generate_security_summary(security_checks)

        ai_analysis = ""
        if with_narrative and self.narrator is not None:
            ai_analysis = await self.narrator.generate(tx, security_checks)

        verdict = Verdict(
            safe=safe,
            security_checks=security_checks,
            summary=summary,
            ai_analysis=ai_analysis,
        )

        logger.info(
            "Transaction analysis complete for %s: safe=%s critical=%d high=%d medium=%d",
            tx.safe_tx_hash,
            safe,
            len(verdict.issues(RiskLevel.CRITICAL)),
            len(verdict.issues(RiskLevel.HIGH)),
            len(verdict.issues(RiskLevel.MEDIUM)),
        )
        if self._events is not None:
            await self._events.emit(
                "verdict.ready",
                safe_tx_hash=tx.safe_tx_hash,
                safe=safe,
                highest_risk=verdict.highest_risk.value,
            )
        return verdict
