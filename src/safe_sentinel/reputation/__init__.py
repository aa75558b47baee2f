"""Address reputation cache (deny/allow lists)."""

from safe_sentinel.reputation.cache import (
    AddressEntry,
    AddressReputationCache,
    ReputationSnapshot,
)

__all__ = ["AddressEntry", "AddressReputationCache", "ReputationSnapshot"]
