"""Deterministic, human-readable rendering of check results."""

from __future__ import annotations

from safe_sentinel.models import RiskLevel, SecurityChecks

RISK_INDICATORS: dict[RiskLevel, str] = {
    RiskLevel.NONE: "✅",
    RiskLevel.LOW: "\U0001f49a",
    RiskLevel.MEDIUM: "\U0001f49b",
    RiskLevel.HIGH: "\U0001f534",
    RiskLevel.CRITICAL: "⛔",
}


def generate_security_summary(security_checks: SecurityChecks) -> str:
    """One line per check: ``<indicator> <name>: <message>``."""
    return "\n".join(
        f"{RISK_INDICATORS[check.risk]} {name}: {check.message}"
        for name, check in security_checks.items()
    )
