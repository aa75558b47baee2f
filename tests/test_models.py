"""Tests for risk levels, SecurityCheck consistency and Verdict serialization."""

from __future__ import annotations

import itertools

import pytest
from pydantic import ValidationError

from safe_sentinel.models import RiskLevel, SecurityCheck, Verdict

ORDER = [RiskLevel.NONE, RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL]


class TestRiskLevel:
    def test_total_order(self):
        for lower, higher in itertools.combinations(ORDER, 2):
            assert lower < higher
            assert higher > lower
            assert lower <= higher
            assert not higher <= lower

    def test_not_alphabetical(self):
        # "critical" < "none" alphabetically; severity must win
        assert RiskLevel.CRITICAL > RiskLevel.NONE
        assert RiskLevel.MEDIUM > RiskLevel.LOW

    def test_max_and_sorted(self):
        assert max([RiskLevel.LOW, RiskLevel.CRITICAL, RiskLevel.MEDIUM]) is RiskLevel.CRITICAL
        assert sorted(reversed(ORDER)) == ORDER

    def test_blocks_signing(self):
        assert [r.blocks_signing for r in ORDER] == [False, False, False, True, True]

    def test_string_value(self):
        assert RiskLevel("high") is RiskLevel.HIGH
        assert RiskLevel.HIGH == "high"


class TestSecurityCheck:
    def test_high_risk_cannot_be_safe(self):
        with pytest.raises(ValidationError):
            SecurityCheck(safe=True, risk=RiskLevel.HIGH, message="x")
        with pytest.raises(ValidationError):
            SecurityCheck(safe=True, risk=RiskLevel.CRITICAL, message="x")

    def test_elevated_but_tolerable(self):
        check = SecurityCheck(safe=False, risk=RiskLevel.MEDIUM, message="big transfer")
        assert check.safe is False
        assert not check.risk.blocks_signing

    def test_frozen(self):
        check = SecurityCheck(safe=True, risk=RiskLevel.NONE, message="ok")
        with pytest.raises(ValidationError):
            check.risk = RiskLevel.HIGH


class TestVerdict:
    def _verdict(self) -> Verdict:
        return Verdict(
            safe=False,
            security_checks={
                "addressPoisoning": SecurityCheck(safe=False, risk=RiskLevel.CRITICAL, message="bad"),
                "valueTransfer": SecurityCheck(safe=True, risk=RiskLevel.LOW, message="ok"),
            },
            summary="summary",
            ai_analysis="analysis",
        )

    def test_to_dict_uses_camel_case(self):
        body = self._verdict().to_dict()
        assert set(body) == {"safe", "securityChecks", "summary", "aiAnalysis"}
        assert body["securityChecks"]["addressPoisoning"] == {
            "safe": False,
            "risk": "critical",
            "message": "bad",
        }

    def test_highest_risk_and_issues(self):
        verdict = self._verdict()
        assert verdict.highest_risk is RiskLevel.CRITICAL
        assert verdict.issues(RiskLevel.CRITICAL) == ["addressPoisoning"]
        assert verdict.issues(RiskLevel.HIGH) == []

    def test_empty_verdict_highest_risk(self):
        assert Verdict(safe=True).highest_risk is RiskLevel.NONE
