"""Chain RPC access."""

from vaultswap.chain.base import ChainReader, FeeQuote, PoolState
from vaultswap.chain.web3_reader import Web3ChainReader

__all__ = [
    "ChainReader",
    "FeeQuote",
    "PoolState",
    "Web3ChainReader",
]
