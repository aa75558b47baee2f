"""On-chain data access for EVM networks (bytecode and transaction counts)."""

from safe_sentinel.chain.chains import CHAINS, Chain, get_chain, list_chain_names
from safe_sentinel.chain.provider import Web3Provider

__all__ = ["CHAINS", "Chain", "Web3Provider", "get_chain", "list_chain_names"]
