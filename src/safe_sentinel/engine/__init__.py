"""Aggregation and decision engine: concurrent checks -> verdict."""

from safe_sentinel.engine.decision import DecisionEngine, is_safe
from safe_sentinel.engine.narrative import NarrativeReporter
from safe_sentinel.engine.summary import generate_security_summary

__all__ = [
    "DecisionEngine",
    "NarrativeReporter",
    "generate_security_summary",
    "is_safe",
]
