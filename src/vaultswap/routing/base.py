"""Abstract routing interface for swap route providers."""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

from vaultswap.errors import NoRouteFound, RoutingUnavailable
from vaultswap.tokens import Token

logger = logging.getLogger(__name__)


class TradeType(str, Enum):
    """Which side of the trade is fixed."""
    EXACT_INPUT = "exact_input"
    EXACT_OUTPUT = "exact_output"


class SwapType(str, Enum):
    """Router contract the call data targets."""
    SWAP_ROUTER_02 = "swap_router_02"
    UNIVERSAL_ROUTER = "universal_router"


@dataclass(frozen=True)
class RouteOptions:
    """Execution options passed to the routing collaborator.

    Attributes:
        recipient: Address receiving the output token
        slippage_tolerance: Maximum slippage as a ratio (0.01 = 1%)
        deadline: Absolute unix timestamp after which the swap reverts
        swap_type: Router variant to encode call data for
    """
    recipient: str
    slippage_tolerance: Decimal
    deadline: int
    swap_type: SwapType = SwapType.SWAP_ROUTER_02


@dataclass(frozen=True)
class Route:
    """An executable route returned by a provider.

    Attributes:
        calldata: Hex-encoded call data for the swap router
        value: Native currency to send with the call, in wei
        amount_in: Estimated raw input amount
        amount_out: Estimated raw output amount
        provider: Name of the provider that produced the route
        gas_estimate: Provider's gas estimate, informational only
        path: Human-readable description of the pools used
        to: Router address the provider encoded the call for, if reported
    """
    calldata: Optional[str]
    value: int
    amount_in: int
    amount_out: int
    provider: str
    gas_estimate: Optional[int] = None
    path: str = ""
    to: Optional[str] = None


class RouteProvider(ABC):
    """Abstract base class for routing collaborators."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        pass

    @abstractmethod
    async def find_route(
        self,
        token_in: Token,
        token_out: Token,
        raw_amount: int,
        trade_type: TradeType,
        options: RouteOptions,
    ) -> Optional[Route]:
        """
        Find the best route for a swap.

        Args:
            token_in: Token being sold
            token_out: Token being bought
            raw_amount: Fixed side of the trade in smallest units
            trade_type: Whether raw_amount is the input or the output
            options: Recipient, slippage, deadline and router variant

        Returns:
            Route if a path exists, None otherwise
        """
        pass


class RouteResolver:
    """Builds route options relative to call time and enforces the provider contract."""

    def __init__(
        self,
        provider: RouteProvider,
        slippage_tolerance: Decimal = Decimal("0.01"),
        deadline_seconds: int = 1800,
        swap_type: SwapType = SwapType.SWAP_ROUTER_02,
        clock: Callable[[], float] = time.time,
    ):
        self.provider = provider
        self.slippage_tolerance = slippage_tolerance
        self.deadline_seconds = deadline_seconds
        self.swap_type = swap_type
        self._clock = clock

    def build_options(self, recipient: str) -> RouteOptions:
        """Options with a deadline counted from now."""
        return RouteOptions(
            recipient=recipient,
            slippage_tolerance=self.slippage_tolerance,
            deadline=int(self._clock() + self.deadline_seconds),
            swap_type=self.swap_type,
        )

    async def resolve(
        self,
        token_in: Token,
        token_out: Token,
        raw_amount: int,
        recipient: str,
        trade_type: TradeType = TradeType.EXACT_INPUT,
    ) -> Route:
        """Ask the provider for a route.

        Raises:
            NoRouteFound: If the provider has no path
            RoutingUnavailable: If the provider call itself failed
        """
        if not isinstance(raw_amount, int) or isinstance(raw_amount, bool):
            raise TypeError(f"raw_amount must be an int in smallest units, got {type(raw_amount).__name__}")

        options = self.build_options(recipient)
        logger.info(
            f"Finding route via {self.provider.name}: {raw_amount} raw {token_in.symbol} -> "
            f"{token_out.symbol} ({trade_type.value}, slippage {options.slippage_tolerance * 100}%, "
            f"deadline {options.deadline})"
        )

        try:
            route = await self.provider.find_route(token_in, token_out, raw_amount, trade_type, options)
        except RoutingUnavailable:
            raise
        except Exception as e:
            logger.error(f"{self.provider.name} route request failed: {type(e).__name__}: {e}")
            raise RoutingUnavailable(f"{self.provider.name} route request failed: {e}") from e

        if route is None:
            logger.warning(f"No route found by {self.provider.name} for {token_in.symbol} -> {token_out.symbol}")
            raise NoRouteFound(
                f"No route found by {self.provider.name} for {token_in.symbol} -> {token_out.symbol}"
            )

        logger.info(
            f"Route from {route.provider}: in={route.amount_in} out={route.amount_out} "
            f"value={route.value} path={route.path or '(n/a)'}"
        )
        return route
