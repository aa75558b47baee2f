"""Risk levels, per-check results and verdicts."""

from __future__ import annotations

from enum import Enum
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RiskLevel(str, Enum):
    """Ordered severity: ``none < low < medium < high < critical``."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @property
    def blocks_signing(self) -> bool:
        """High and critical findings make a transaction unsafe."""
        return self.severity >= _SEVERITY[RiskLevel.HIGH]

    # str already defines the rich comparisons, so all four are overridden
    # to compare by severity instead of alphabetically.
    def __lt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.severity < other.severity

    def __le__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.severity <= other.severity

    def __gt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.severity > other.severity

    def __ge__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.severity >= other.severity

    def __hash__(self):
        return hash(self.value)


_SEVERITY: dict[RiskLevel, int] = {
    RiskLevel.NONE: 0,
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.HIGH: 3,
    RiskLevel.CRITICAL: 4,
}


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------


class SecurityCheck(BaseModel):
    """The output of one risk check.

    ``safe`` and ``risk`` are stored separately so a check can report an
    elevated but tolerable risk (e.g. ``medium``) while flagging it as not
    safe. A ``high`` or ``critical`` risk is never safe.
    """

    model_config = ConfigDict(frozen=True)

    safe: bool
    risk: RiskLevel
    message: str

    @model_validator(mode="after")
    def _consistent(self) -> "SecurityCheck":
        if self.safe and self.risk.blocks_signing:
            raise ValueError(
                f"A check with risk '{self.risk.value}' cannot be marked safe"
            )
        return self


SecurityChecks = Dict[str, SecurityCheck]


class Verdict(BaseModel):
    """Aggregated decision for one transaction. Immutable once built."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    safe: bool
    security_checks: SecurityChecks = Field(default_factory=dict)
    summary: str = ""
    ai_analysis: str = ""

    @property
    def highest_risk(self) -> RiskLevel:
        return max(
            (c.risk for c in self.security_checks.values()),
            default=RiskLevel.NONE,
        )

    def issues(self, level: RiskLevel) -> list[str]:
        """Names of the checks that reported exactly *level*."""
        return [
            name for name, check in self.security_checks.items() if check.risk == level
        ]

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
