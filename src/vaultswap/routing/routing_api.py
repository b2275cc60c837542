"""Uniswap routing-api integration.

The routing-api wraps the smart order router behind a REST endpoint and
returns ready-to-send call data. Path search across pools and fee tiers
happens entirely on the service side.
API source: https://github.com/Uniswap/routing-api
"""

import logging
import time
from typing import Callable, Optional

import httpx

from vaultswap.errors import RoutingUnavailable
from vaultswap.routing.base import Route, RouteOptions, RouteProvider, SwapType, TradeType
from vaultswap.tokens import Token

logger = logging.getLogger(__name__)

DEFAULT_ROUTING_API_URL = "https://api.uniswap.org/v1"

TRADE_TYPES = {
    TradeType.EXACT_INPUT: "exactIn",
    TradeType.EXACT_OUTPUT: "exactOut",
}


def _parse_int(value, default: int = 0) -> int:
    """Parse decimal or 0x-prefixed integers as returned by the API."""
    if value is None or value == "":
        return default
    if isinstance(value, int):
        return value
    text = str(value)
    return int(text, 16) if text.lower().startswith("0x") else int(text)


class RoutingApiProvider(RouteProvider):
    """Route provider backed by a Uniswap routing-api deployment."""

    def __init__(
        self,
        base_url: str = DEFAULT_ROUTING_API_URL,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize routing-api provider.

        Args:
            base_url: routing-api base URL (without /quote)
            api_key: Optional key sent as x-api-key
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (used by tests)
            clock: Time source for converting the absolute deadline
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._clock = clock

    @property
    def name(self) -> str:
        return "Uniswap routing-api"

    def _get_headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    def build_params(
        self,
        token_in: Token,
        token_out: Token,
        raw_amount: int,
        trade_type: TradeType,
        options: RouteOptions,
    ) -> dict:
        """Query parameters for GET /quote."""
        # routing-api takes the deadline as a window from its own clock
        window = max(int(options.deadline - self._clock()), 1)
        return {
            "tokenInAddress": token_in.address,
            "tokenInChainId": str(token_in.chain_id),
            "tokenOutAddress": token_out.address,
            "tokenOutChainId": str(token_out.chain_id),
            "amount": str(raw_amount),
            "type": TRADE_TYPES[trade_type],
            "recipient": options.recipient,
            "slippageTolerance": str(options.slippage_tolerance * 100),
            "deadline": str(window),
            "enableUniversalRouter": "true" if options.swap_type == SwapType.UNIVERSAL_ROUTER else "false",
        }

    async def find_route(
        self,
        token_in: Token,
        token_out: Token,
        raw_amount: int,
        trade_type: TradeType,
        options: RouteOptions,
    ) -> Optional[Route]:
        params = self.build_params(token_in, token_out, raw_amount, trade_type, options)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(
                    f"{self.base_url}/quote",
                    headers=self._get_headers(),
                    params=params,
                )
        except httpx.HTTPError as e:
            raise RoutingUnavailable(f"routing-api request failed: {type(e).__name__}: {e}") from e

        if response.status_code == 404:
            logger.debug(f"routing-api returned no route: {response.text}")
            return None

        if response.status_code != 200:
            logger.warning(f"routing-api error: {response.status_code} - {response.text}")
            error_code = ""
            try:
                error_code = response.json().get("errorCode", "")
            except ValueError:
                pass
            if error_code == "NO_ROUTE":
                return None
            raise RoutingUnavailable(f"routing-api error: HTTP {response.status_code} {error_code}".rstrip())

        data = response.json()
        method_parameters = data.get("methodParameters") or {}

        fixed_amount = _parse_int(data.get("amount"), raw_amount)
        quoted_amount = _parse_int(data.get("quote"))
        if trade_type == TradeType.EXACT_INPUT:
            amount_in, amount_out = fixed_amount, quoted_amount
        else:
            amount_in, amount_out = quoted_amount, fixed_amount

        return Route(
            calldata=method_parameters.get("calldata"),
            value=_parse_int(method_parameters.get("value")),
            amount_in=amount_in,
            amount_out=amount_out,
            provider=self.name,
            gas_estimate=_parse_int(data.get("gasUseEstimate"), 0) or None,
            path=data.get("routeString", ""),
            to=method_parameters.get("to"),
        )
