"""Async client for the Safe transaction service (multisig coordination)."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError
from web3 import Web3

from safe_sentinel.errors import ConfirmationSubmissionError, SafeServiceError
from safe_sentinel.safe.models import PendingTransaction, WalletInfo

logger = logging.getLogger("safe_sentinel.safe.client")


class SafeServiceClient:
    """Lists pending multisig transactions and submits owner confirmations.

    Parameters
    ----------
    service_url:
        Base URL of the transaction service, e.g.
        ``https://safe-transaction-sepolia.safe.global``.
    client:
        Optional pre-built ``httpx.AsyncClient`` (tests inject one backed
        by ``httpx.MockTransport``). When omitted the client owns its own
        connection pool; close it with :meth:`aclose`.
    """

    def __init__(
        self,
        service_url: str,
        api_key: str = "",
        timeout: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.service_url = service_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=headers)

    async def __aenter__(self) -> SafeServiceClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _url(self, path: str) -> str:
        return f"{self.service_url}/api/v1/{path.lstrip('/')}"

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        try:
            resp = await self._client.get(url, params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            raise SafeServiceError(
                f"GET {url} returned {exc.response.status_code}: {exc.response.text[:200]}",
                status_code=exc.response.status_code,
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise SafeServiceError(f"GET {url} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_wallet_info(self, address: str) -> WalletInfo:
        checksum = Web3.to_checksum_address(address)
        data = await self._get_json(self._url(f"safes/{checksum}/"))
        try:
            return WalletInfo.model_validate(data)
        except ValidationError as exc:
            raise SafeServiceError(f"Unexpected Safe info payload: {exc}") from exc

    async def list_pending(self, wallet_address: str) -> list[PendingTransaction]:
        """Unexecuted transactions from the current nonce onwards, in nonce order."""
        info = await self.get_wallet_info(wallet_address)
        url: str | None = self._url(f"safes/{info.address}/multisig-transactions/")
        params: dict[str, Any] | None = {
            "executed": "false",
            "nonce__gte": info.nonce,
            "ordering": "nonce",
        }

        transactions: list[PendingTransaction] = []
        while url:
            page = await self._get_json(url, params=params)
            try:
                transactions.extend(
                    PendingTransaction.model_validate(item)
                    for item in page.get("results", [])
                )
            except ValidationError as exc:
                raise SafeServiceError(f"Unexpected transaction payload: {exc}") from exc
            # ``next`` already carries the query string
            url, params = page.get("next"), None

        logger.info(
            "Fetched %d pending transaction(s) for %s (nonce >= %d)",
            len(transactions),
            info.address,
            info.nonce,
        )
        return transactions

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def confirm(self, safe_tx_hash: str, signature: str) -> None:
        """Submit an owner signature for *safe_tx_hash*."""
        url = self._url(f"multisig-transactions/{safe_tx_hash}/confirmations/")
        try:
            resp = await self._client.post(url, json={"signature": signature})
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ConfirmationSubmissionError(
                f"Confirmation for {safe_tx_hash} rejected with "
                f"{exc.response.status_code}: {exc.response.text[:200]}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ConfirmationSubmissionError(
                f"Confirmation for {safe_tx_hash} failed: {exc}"
            ) from exc
        logger.info("Confirmation submitted for %s", safe_tx_hash)
