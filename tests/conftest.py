"""Shared fixtures for the Safe Sentinel test suite."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest
import pytest_asyncio

from safe_sentinel.config import ReputationConfig
from safe_sentinel.reputation.cache import AddressReputationCache
from safe_sentinel.safe.models import DecodedCall, DecodedParameter, PendingTransaction


# ── Addresses ────────────────────────────────────────────────────────────────

DENYLISTED = "0xDeaDbeefdEAdbeefdEadbEEFdeadbeEFdEaDbeeF"
ALLOWLISTED = "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D"
BUNDLED_BAD = "0x000000000000000000000000000000000000bad1"
UNKNOWN = "0x1234567890123456789012345678901234567890"

DENYLIST_URL = "https://lists.test/addresses-darklist.json"
ALLOWLIST_URL = "https://lists.test/addresses-lightlist.json"

SIGNER_KEY = "0x" + "4c" * 32


# ── Reputation lists ─────────────────────────────────────────────────────────


def lists_transport(
    denylist: list[dict[str, Any]] | None = None,
    allowlist: list[dict[str, Any]] | None = None,
    fail: bool = False,
) -> httpx.MockTransport:
    """MockTransport serving the two reputation lists (or 503 when *fail*)."""
    deny = denylist if denylist is not None else [
        {"address": DENYLISTED, "comment": "Fake Uniswap", "date": "2024-01-01"}
    ]
    allow = allowlist if allowlist is not None else [
        {"address": ALLOWLISTED, "comment": "Uniswap V2 Router"}
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        if fail:
            return httpx.Response(503, text="unavailable")
        if str(request.url) == DENYLIST_URL:
            return httpx.Response(200, json=deny)
        if str(request.url) == ALLOWLIST_URL:
            return httpx.Response(200, json=allow)
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.fixture
def reputation_config() -> ReputationConfig:
    return ReputationConfig(
        denylist_url=DENYLIST_URL,
        allowlist_url=ALLOWLIST_URL,
        timeout_seconds=5,
        extra_denylist=[BUNDLED_BAD],
    )


@pytest_asyncio.fixture
async def loaded_cache(reputation_config):
    client = httpx.AsyncClient(transport=lists_transport())
    cache = AddressReputationCache(reputation_config, client=client)
    await cache.refresh()
    yield cache
    await client.aclose()


@pytest.fixture
def sync_loaded_cache(reputation_config):
    """A loaded cache for synchronous tests (e.g. FastAPI TestClient)."""
    client = httpx.AsyncClient(transport=lists_transport())
    cache = AddressReputationCache(reputation_config, client=client)

    async def _load():
        await cache.refresh()
        await client.aclose()

    asyncio.run(_load())
    return cache


# ── Transactions ─────────────────────────────────────────────────────────────


def make_tx(n: int = 1, **overrides: Any) -> PendingTransaction:
    fields: dict[str, Any] = {
        "safe_tx_hash": "0x" + f"{n:064x}",
        "to": UNKNOWN,
        "value": "0",
        "data": None,
        "nonce": n,
    }
    fields.update(overrides)
    return PendingTransaction(**fields)


def approve_tx(amount: int, n: int = 1) -> PendingTransaction:
    spender = "0x9999999999999999999999999999999999999999"
    return make_tx(
        n,
        to="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        data="0x095ea7b3" + "0" * 24 + spender[2:] + f"{amount:064x}",
        data_decoded=DecodedCall(
            method="approve",
            parameters=[
                DecodedParameter(name="spender", type="address", value=spender),
                DecodedParameter(name="value", type="uint256", value=str(amount)),
            ],
        ),
    )
