"""Exception hierarchy for Safe Sentinel."""

from __future__ import annotations


class SentinelError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(SentinelError):
    """The configuration file is missing or invalid."""


class CacheLoadError(SentinelError):
    """The reputation lists could not be fetched or parsed.

    Fatal on the very first load; later refresh failures are logged and the
    previous snapshot is kept.
    """


class CheckEvaluationError(SentinelError):
    """A risk check failed internally.

    Never propagates past the decision engine; it is turned into a
    conservative ``SecurityCheck`` instead.
    """

    def __init__(self, check_name: str, message: str):
        super().__init__(f"{check_name}: {message}")
        self.check_name = check_name


class NarrativeGenerationError(SentinelError):
    """The LLM provider did not return a usable security narrative."""


class SafeServiceError(SentinelError):
    """The Safe transaction service rejected or failed a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ConfirmationSubmissionError(SafeServiceError):
    """A signed confirmation could not be delivered for one transaction."""


class SignerError(SentinelError):
    """The co-signing key is missing, undecryptable, or cannot sign."""
