"""Chain RPC interface: fee data, pool reads and receipts."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FeeQuote:
    """Current network fee data in wei.

    Attributes:
        base_fee_per_gas: Base fee of the latest block, None before EIP-1559
        gas_price: Node's suggested legacy gas price
    """
    base_fee_per_gas: Optional[int]
    gas_price: Optional[int] = None


@dataclass(frozen=True)
class PoolState:
    """Snapshot of a Uniswap V3 pool."""
    address: str
    token0: str
    token1: str
    fee: int
    liquidity: int
    sqrt_price_x96: int
    tick: int


class ChainReader(ABC):
    """Abstract base class for chain RPC access."""

    @abstractmethod
    async def get_fee_quote(self) -> FeeQuote:
        """Read the latest base fee and suggested gas price."""
        pass

    @abstractmethod
    async def get_pool_address(self, token_a: str, token_b: str, fee: int) -> Optional[str]:
        """Look up the pool for a pair and fee tier.

        Returns:
            Pool address, or None if no pool exists
        """
        pass

    @abstractmethod
    async def read_pool_state(self, pool_address: str) -> PoolState:
        """Read tokens, fee tier, liquidity and slot0 of a pool."""
        pass

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: str, timeout: float = 180) -> dict:
        """Wait until a transaction is mined.

        Returns:
            Receipt dict (including 'status')

        Raises:
            TimeoutError: If not mined within timeout
        """
        pass
