"""Swap routing.

Provides:
- RouteProvider: Interface for routing collaborators
- RouteResolver: Deadline/slippage handling and no-route enforcement
- RoutingApiProvider: Uniswap routing-api client
- SinglePoolProvider: Direct single-pool routing from chain state
"""

from vaultswap.routing.base import (
    Route,
    RouteOptions,
    RouteProvider,
    RouteResolver,
    SwapType,
    TradeType,
)
from vaultswap.routing.routing_api import RoutingApiProvider
from vaultswap.routing.single_pool import SinglePoolProvider

__all__ = [
    "Route",
    "RouteOptions",
    "RouteProvider",
    "RouteResolver",
    "SwapType",
    "TradeType",
    "RoutingApiProvider",
    "SinglePoolProvider",
]
