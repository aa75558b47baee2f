"""Building blocks shared by every risk check."""

from __future__ import annotations

import inspect
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Iterable, Union

from safe_sentinel.models import RiskLevel, SecurityCheck

if TYPE_CHECKING:
    from safe_sentinel.safe.models import PendingTransaction

logger = logging.getLogger("safe_sentinel.checks")


def passed(message: str, risk: RiskLevel = RiskLevel.NONE) -> SecurityCheck:
    return SecurityCheck(safe=True, risk=risk, message=message)


def flagged(risk: RiskLevel, message: str) -> SecurityCheck:
    return SecurityCheck(safe=False, risk=risk, message=message)


@dataclass(frozen=True)
class PatternRule:
    """One row of a declarative policy table: regex -> (risk, message)."""

    pattern: re.Pattern
    risk: RiskLevel
    message: str

    @classmethod
    def of(cls, regex: str, risk: RiskLevel, message: str) -> PatternRule:
        return cls(re.compile(regex, re.IGNORECASE), risk, message)

    def matches(self, text: str) -> bool:
        return bool(self.pattern.search(text))

    def to_check(self) -> SecurityCheck:
        return SecurityCheck(
            safe=self.risk <= RiskLevel.LOW,
            risk=self.risk,
            message=self.message,
        )


def first_match(rules: Iterable[PatternRule], text: str) -> PatternRule | None:
    """Return the first rule matching *text*, in table order."""
    for rule in rules:
        if rule.matches(text):
            return rule
    return None


class RiskCheck:
    """A single, independent evaluator mapping one transaction to one result.

    Subclasses implement :meth:`evaluate` (sync or async) and may override
    :meth:`fallback` to choose the conservative result used when evaluation
    raises. :meth:`run` never raises.
    """

    name: str = ""
    optional: bool = False

    def evaluate(
        self, tx: PendingTransaction
    ) -> Union[SecurityCheck, Awaitable[SecurityCheck]]:
        raise NotImplementedError

    def fallback(self, exc: BaseException) -> SecurityCheck:
        return flagged(RiskLevel.HIGH, f"Unable to verify {self.name}")

    async def run(self, tx: PendingTransaction) -> SecurityCheck:
        try:
            result = self.evaluate(tx)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as exc:
            logger.error(
                "Check %s failed for %s: %s", self.name, tx.safe_tx_hash, exc
            )
            return self.fallback(exc)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"
