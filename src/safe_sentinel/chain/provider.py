"""Web3 read-only provider used by the on-chain risk checks."""

from __future__ import annotations

import logging

from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from safe_sentinel.chain.chains import Chain, get_chain

logger = logging.getLogger("safe_sentinel.chain.provider")


class Web3Provider:
    """Lazily connects to one EVM chain and answers code/nonce queries.

    Calls are blocking; async callers run them in a worker thread.
    """

    def __init__(
        self,
        chain_name: str,
        rpc_url: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.chain: Chain = get_chain(chain_name)
        self._rpc_url = rpc_url or self.chain.rpc_url
        self._timeout = timeout
        self._w3: Web3 | None = None

    @property
    def web3(self) -> Web3:
        """Return the (cached) Web3 instance.

        Injects POA middleware for chains other than Ethereum mainnet and
        its testnet.
        """
        if self._w3 is not None:
            return self._w3

        w3 = Web3(
            Web3.HTTPProvider(self._rpc_url, request_kwargs={"timeout": self._timeout})
        )
        if self.chain.chain_id not in (1, 11155111):
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

        self._w3 = w3
        logger.info("Connected Web3 provider for %s (%s)", self.chain.name, self._rpc_url)
        return w3

    def get_code(self, address: str) -> bytes:
        """Deployed bytecode at *address* (empty for externally owned accounts)."""
        checksum = Web3.to_checksum_address(address)
        return bytes(self.web3.eth.get_code(checksum))

    def get_transaction_count(self, address: str) -> int:
        checksum = Web3.to_checksum_address(address)
        return int(self.web3.eth.get_transaction_count(checksum))
