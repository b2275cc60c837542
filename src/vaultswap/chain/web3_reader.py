"""Chain reader backed by web3.py's async client."""

import asyncio
import logging
from typing import Optional

from web3 import AsyncWeb3
from web3.exceptions import TimeExhausted

from vaultswap.abi import V3_FACTORY_ABI, V3_POOL_ABI
from vaultswap.chain.base import ChainReader, FeeQuote, PoolState
from vaultswap.tokens import V3_FACTORY_ADDRESS, ZERO_ADDRESS

logger = logging.getLogger(__name__)


class Web3ChainReader(ChainReader):
    """Reads fee data and pool state over JSON-RPC."""

    def __init__(
        self,
        rpc_url: str,
        factory_address: str = V3_FACTORY_ADDRESS,
        web3: Optional[AsyncWeb3] = None,
    ):
        self.rpc_url = rpc_url
        self.factory_address = factory_address
        self._web3 = web3

    @property
    def web3(self) -> AsyncWeb3:
        """Lazy load web3 instance."""
        if self._web3 is None:
            self._web3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(self.rpc_url))
        return self._web3

    async def get_fee_quote(self) -> FeeQuote:
        block = await self.web3.eth.get_block("latest")
        base_fee = block.get("baseFeePerGas")
        gas_price = await self.web3.eth.gas_price

        quote = FeeQuote(
            base_fee_per_gas=int(base_fee) if base_fee is not None else None,
            gas_price=int(gas_price) if gas_price is not None else None,
        )
        logger.debug(
            f"Fee data at block {block.get('number')}: base fee {quote.base_fee_per_gas} wei, "
            f"gas price {quote.gas_price} wei"
        )
        return quote

    async def get_pool_address(self, token_a: str, token_b: str, fee: int) -> Optional[str]:
        factory = self.web3.eth.contract(
            address=AsyncWeb3.to_checksum_address(self.factory_address),
            abi=V3_FACTORY_ABI,
        )
        pool = await factory.functions.getPool(
            AsyncWeb3.to_checksum_address(token_a),
            AsyncWeb3.to_checksum_address(token_b),
            fee,
        ).call()

        if not pool or pool.lower() == ZERO_ADDRESS:
            return None
        return pool

    async def read_pool_state(self, pool_address: str) -> PoolState:
        pool = self.web3.eth.contract(
            address=AsyncWeb3.to_checksum_address(pool_address),
            abi=V3_POOL_ABI,
        )

        # Independent reads, no ordering between them
        token0, token1, fee, liquidity, slot0 = await asyncio.gather(
            pool.functions.token0().call(),
            pool.functions.token1().call(),
            pool.functions.fee().call(),
            pool.functions.liquidity().call(),
            pool.functions.slot0().call(),
        )

        return PoolState(
            address=pool_address,
            token0=token0,
            token1=token1,
            fee=int(fee),
            liquidity=int(liquidity),
            sqrt_price_x96=int(slot0[0]),
            tick=int(slot0[1]),
        )

    async def wait_for_receipt(self, tx_hash: str, timeout: float = 180) -> dict:
        try:
            receipt = await self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
        except TimeExhausted as e:
            raise TimeoutError(f"Transaction {tx_hash} not confirmed after {timeout}s") from e
        return dict(receipt)
