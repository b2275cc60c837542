"""Single-pool route provider.

Reconstructs the configured fee-tier pool from chain state and encodes a
SwapRouter02 single-hop swap against it. The output estimate is taken from
the pool's spot price (sqrtPriceX96) net of the pool fee; price impact is
not modelled, so slippage tolerance is what bounds the on-chain result.
"""

import logging
from fractions import Fraction
from typing import Optional

from eth_abi import encode
from web3 import Web3

from vaultswap.abi import (
    EXACT_INPUT_SINGLE_SIGNATURE,
    EXACT_OUTPUT_SINGLE_SIGNATURE,
    MULTICALL_SIGNATURE,
    SINGLE_SWAP_PARAMS_TYPE,
)
from vaultswap.chain.base import ChainReader, PoolState
from vaultswap.errors import RoutingUnavailable
from vaultswap.routing.base import Route, RouteOptions, RouteProvider, SwapType, TradeType
from vaultswap.tokens import Token

logger = logging.getLogger(__name__)

FEE_DENOMINATOR = 1_000_000
Q192 = 2 ** 192


def _selector(signature: str) -> bytes:
    return bytes(Web3.keccak(text=signature)[:4])


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


def quote_exact_input(pool: PoolState, zero_for_one: bool, amount_in: int) -> int:
    """Spot-price output for a fixed input, after the pool fee."""
    net_in = amount_in * (FEE_DENOMINATOR - pool.fee) // FEE_DENOMINATOR
    price_x192 = pool.sqrt_price_x96 * pool.sqrt_price_x96
    if zero_for_one:
        return net_in * price_x192 // Q192
    return net_in * Q192 // price_x192


def quote_exact_output(pool: PoolState, zero_for_one: bool, amount_out: int) -> int:
    """Spot-price input needed for a fixed output, including the pool fee."""
    price_x192 = pool.sqrt_price_x96 * pool.sqrt_price_x96
    if zero_for_one:
        net_in = _ceil_div(amount_out * Q192, price_x192)
    else:
        net_in = _ceil_div(amount_out * price_x192, Q192)
    return _ceil_div(net_in * FEE_DENOMINATOR, FEE_DENOMINATOR - pool.fee)


class SinglePoolProvider(RouteProvider):
    """Routes through exactly one Uniswap V3 pool at a fixed fee tier."""

    def __init__(self, chain_reader: ChainReader, fee: int):
        self.chain_reader = chain_reader
        self.fee = fee

    @property
    def name(self) -> str:
        return f"Uniswap V3 pool ({self.fee / 10_000}%)"

    async def find_route(
        self,
        token_in: Token,
        token_out: Token,
        raw_amount: int,
        trade_type: TradeType,
        options: RouteOptions,
    ) -> Optional[Route]:
        if options.swap_type != SwapType.SWAP_ROUTER_02:
            raise RoutingUnavailable(f"{self.name} only encodes SwapRouter02 calls")

        pool_address = await self.chain_reader.get_pool_address(token_in.address, token_out.address, self.fee)
        if pool_address is None:
            logger.debug(f"No {self.fee} pool for {token_in.symbol}/{token_out.symbol}")
            return None

        pool = await self.chain_reader.read_pool_state(pool_address)
        expected = {token_in.address.lower(), token_out.address.lower()}
        if {pool.token0.lower(), pool.token1.lower()} != expected:
            raise RoutingUnavailable(f"Pool {pool_address} does not hold {token_in.symbol}/{token_out.symbol}")
        if pool.liquidity == 0 or pool.sqrt_price_x96 == 0:
            logger.debug(f"Pool {pool_address} has no liquidity")
            return None

        zero_for_one = pool.token0.lower() == token_in.address.lower()
        slippage = Fraction(options.slippage_tolerance)
        recipient = Web3.to_checksum_address(options.recipient)
        address_in = Web3.to_checksum_address(token_in.address)
        address_out = Web3.to_checksum_address(token_out.address)

        if trade_type == TradeType.EXACT_INPUT:
            amount_in = raw_amount
            amount_out = quote_exact_input(pool, zero_for_one, amount_in)
            limit = amount_out * (1 - slippage)
            min_out = limit.numerator // limit.denominator
            if min_out == 0:
                logger.debug(f"Input {amount_in} too small to produce output in pool {pool_address}")
                return None
            selector = _selector(EXACT_INPUT_SINGLE_SIGNATURE)
            params = (address_in, address_out, self.fee, recipient, amount_in, min_out, 0)
        else:
            amount_out = raw_amount
            amount_in = quote_exact_output(pool, zero_for_one, amount_out)
            limit = amount_in * (1 + slippage)
            max_in = _ceil_div(limit.numerator, limit.denominator)
            selector = _selector(EXACT_OUTPUT_SINGLE_SIGNATURE)
            params = (address_in, address_out, self.fee, recipient, amount_out, max_in, 0)

        swap_call = selector + encode([SINGLE_SWAP_PARAMS_TYPE], [params])
        calldata = _selector(MULTICALL_SIGNATURE) + encode(
            ["uint256", "bytes[]"], [options.deadline, [swap_call]]
        )

        return Route(
            calldata="0x" + calldata.hex(),
            value=0,
            amount_in=amount_in,
            amount_out=amount_out,
            provider=self.name,
            path=f"{token_in.symbol} -[{self.fee}]-> {token_out.symbol} via {pool_address}",
        )
