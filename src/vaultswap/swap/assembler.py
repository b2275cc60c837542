"""Transaction assembly: route + fee data -> TransactionRequest."""

import logging
from dataclasses import dataclass

from vaultswap.chain.base import FeeQuote
from vaultswap.errors import MissingRouteParameters
from vaultswap.routing.base import Route
from vaultswap.signing.base import TransactionRequest

logger = logging.getLogger(__name__)

GWEI = 10 ** 9


@dataclass(frozen=True)
class FeePolicy:
    """Deterministic fee-bump policy.

    max_fee_per_gas is base_fee_multiplier times the latest base fee, or
    fallback_max_fee_per_gas when the chain reports no base fee. The
    suggested gas price is not used for pricing.
    """
    max_priority_fee_per_gas: int = GWEI // 10
    fallback_max_fee_per_gas: int = GWEI
    gas_limit: int = 400_000
    base_fee_multiplier: int = 2

    def max_fee_per_gas(self, fee_quote: FeeQuote) -> int:
        # A zero base fee is treated like a missing one
        if fee_quote.base_fee_per_gas:
            return self.base_fee_multiplier * fee_quote.base_fee_per_gas
        return self.fallback_max_fee_per_gas


class TransactionAssembler:
    """Builds the swap transaction sent to the router."""

    def __init__(self, router_address: str, chain_id: int, fee_policy: FeePolicy = FeePolicy()):
        self.router_address = router_address
        self.chain_id = chain_id
        self.fee_policy = fee_policy

    def assemble(self, route: Route, fee_quote: FeeQuote, sender: str) -> TransactionRequest:
        """Combine route and fee data into a transaction.

        Raises:
            MissingRouteParameters: If the route carries no call data or its
                native value is not a non-negative int
        """
        if not route.calldata or route.calldata in ("0x", "0X"):
            raise MissingRouteParameters(f"Route from {route.provider} has no call data")

        value = route.value
        if value is None:
            value = 0
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise MissingRouteParameters(
                f"Route from {route.provider} has an invalid native value: {route.value!r}"
            )

        if route.to and route.to.lower() != self.router_address.lower():
            logger.warning(
                f"Route from {route.provider} targets {route.to}, sending to configured router "
                f"{self.router_address}"
            )

        max_fee = self.fee_policy.max_fee_per_gas(fee_quote)
        if fee_quote.gas_price is not None and fee_quote.gas_price > max_fee:
            # Needs review if this shows up during fee spikes
            logger.warning(
                f"Max fee {max_fee} wei is below the suggested gas price {fee_quote.gas_price} wei"
            )

        tx = TransactionRequest(
            chain_id=self.chain_id,
            to=self.router_address,
            data=route.calldata,
            value=value,
            sender=sender,
            max_fee_per_gas=max_fee,
            max_priority_fee_per_gas=self.fee_policy.max_priority_fee_per_gas,
            gas_limit=self.fee_policy.gas_limit,
        )

        logger.info(
            f"Assembled swap tx: to={tx.to} value={tx.value} from={tx.sender} "
            f"maxFeePerGas={tx.max_fee_per_gas} ({tx.max_fee_per_gas / GWEI} gwei) "
            f"maxPriorityFeePerGas={tx.max_priority_fee_per_gas} gas={tx.gas_limit}"
        )
        logger.debug(f"Swap call data: {tx.data}")
        return tx
