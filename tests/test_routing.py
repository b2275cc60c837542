"""Tests for route resolution and providers."""

from decimal import Decimal

import httpx
import pytest
from eth_abi import decode
from web3 import Web3

from fakes import FIXED_NOW, SWAP_CALLDATA, WALLET, FakeChainReader, FakeRouteProvider

from vaultswap.abi import (
    EXACT_INPUT_SINGLE_SIGNATURE,
    EXACT_OUTPUT_SINGLE_SIGNATURE,
    MULTICALL_SIGNATURE,
    SINGLE_SWAP_PARAMS_TYPE,
)
from vaultswap.chain.base import PoolState
from vaultswap.errors import NoRouteFound, RoutingUnavailable
from vaultswap.routing.base import RouteOptions, RouteResolver, SwapType, TradeType
from vaultswap.routing.routing_api import RoutingApiProvider
from vaultswap.routing.single_pool import SinglePoolProvider, quote_exact_input, quote_exact_output

POOL = "0x88e6A0c2dDD26FEEb64F039a2c41296FcB3f5640"
Q96 = 2 ** 96


def selector(signature: str) -> bytes:
    return bytes(Web3.keccak(text=signature)[:4])


def make_options(**overrides) -> RouteOptions:
    values = {
        "recipient": WALLET,
        "slippage_tolerance": Decimal("0.01"),
        "deadline": int(FIXED_NOW) + 1800,
    }
    values.update(overrides)
    return RouteOptions(**values)


def make_pool(token0: str, token1: str, sqrt_price_x96: int = Q96, liquidity: int = 10 ** 18) -> PoolState:
    return PoolState(
        address=POOL,
        token0=token0,
        token1=token1,
        fee=3000,
        liquidity=liquidity,
        sqrt_price_x96=sqrt_price_x96,
        tick=0,
    )


class TestRouteResolver:
    """Tests for RouteResolver."""

    def test_deadline_counts_from_call_time(self):
        now = [FIXED_NOW]
        resolver = RouteResolver(FakeRouteProvider(None), deadline_seconds=1800, clock=lambda: now[0])

        first = resolver.build_options(WALLET)
        now[0] += 60
        second = resolver.build_options(WALLET)

        assert first.deadline == int(FIXED_NOW) + 1800
        assert second.deadline == first.deadline + 60
        assert first.swap_type == SwapType.SWAP_ROUTER_02

    @pytest.mark.asyncio
    async def test_returns_route(self, usdc, weth, route):
        resolver = RouteResolver(FakeRouteProvider(route), clock=lambda: FIXED_NOW)
        assert await resolver.resolve(usdc, weth, 1_000_000, WALLET) == route

    @pytest.mark.asyncio
    async def test_no_route(self, usdc, weth):
        resolver = RouteResolver(FakeRouteProvider(None))
        with pytest.raises(NoRouteFound):
            await resolver.resolve(usdc, weth, 1_000_000, WALLET)

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self, usdc, weth):
        resolver = RouteResolver(FakeRouteProvider(None, error=ValueError("bad response")))
        with pytest.raises(RoutingUnavailable, match="bad response"):
            await resolver.resolve(usdc, weth, 1_000_000, WALLET)

    @pytest.mark.asyncio
    async def test_requires_raw_integer(self, usdc, weth, route):
        resolver = RouteResolver(FakeRouteProvider(route))
        with pytest.raises(TypeError):
            await resolver.resolve(usdc, weth, Decimal("1"), WALLET)


class TestRoutingApiProvider:
    """Tests for the routing-api client."""

    def make_provider(self, handler, api_key=None) -> RoutingApiProvider:
        return RoutingApiProvider(
            base_url="https://routing.test/v1",
            api_key=api_key,
            transport=httpx.MockTransport(handler),
            clock=lambda: FIXED_NOW,
        )

    @pytest.mark.asyncio
    async def test_quote_request_and_parse(self, usdc, weth):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["api_key"] = request.headers.get("x-api-key")
            return httpx.Response(200, json={
                "amount": "1000000",
                "quote": "312345678901234",
                "gasUseEstimate": "113000",
                "routeString": "[V3] 100.00% = USDC -- 0.3% [0x88e6] --> WETH",
                "methodParameters": {
                    "calldata": SWAP_CALLDATA,
                    "value": "0x00",
                    "to": "0x68b3465833fb72A70ecDF485E0e4C7bD8665Fc45",
                },
            })

        provider = self.make_provider(handler, api_key="key-1")
        route = await provider.find_route(usdc, weth, 1_000_000, TradeType.EXACT_INPUT, make_options())

        assert seen["path"] == "/v1/quote"
        assert seen["api_key"] == "key-1"
        params = seen["params"]
        assert params["tokenInAddress"] == usdc.address
        assert params["tokenOutAddress"] == weth.address
        assert params["tokenInChainId"] == "1"
        assert params["amount"] == "1000000"
        assert params["type"] == "exactIn"
        assert params["recipient"] == WALLET
        assert Decimal(params["slippageTolerance"]) == Decimal("1")
        assert params["deadline"] == "1800"
        assert params["enableUniversalRouter"] == "false"

        assert route.calldata == SWAP_CALLDATA
        assert route.value == 0
        assert route.amount_in == 1_000_000
        assert route.amount_out == 312345678901234
        assert route.gas_estimate == 113000
        assert route.to == "0x68b3465833fb72A70ecDF485E0e4C7bD8665Fc45"

    @pytest.mark.asyncio
    async def test_exact_output_amounts(self, usdc, weth):
        def handler(request):
            return httpx.Response(200, json={
                "amount": "1000000000000000",
                "quote": "3200000",
                "methodParameters": {"calldata": SWAP_CALLDATA, "value": "0"},
            })

        provider = self.make_provider(handler)
        route = await provider.find_route(usdc, weth, 10 ** 15, TradeType.EXACT_OUTPUT, make_options())

        assert route.amount_in == 3_200_000
        assert route.amount_out == 10 ** 15

    @pytest.mark.asyncio
    async def test_not_found(self, usdc, weth):
        provider = self.make_provider(lambda request: httpx.Response(404, json={"errorCode": "NO_ROUTE"}))
        assert await provider.find_route(usdc, weth, 1, TradeType.EXACT_INPUT, make_options()) is None

    @pytest.mark.asyncio
    async def test_no_route_error_code(self, usdc, weth):
        provider = self.make_provider(lambda request: httpx.Response(400, json={"errorCode": "NO_ROUTE"}))
        assert await provider.find_route(usdc, weth, 1, TradeType.EXACT_INPUT, make_options()) is None

    @pytest.mark.asyncio
    async def test_server_error(self, usdc, weth):
        provider = self.make_provider(lambda request: httpx.Response(500, text="internal error"))
        with pytest.raises(RoutingUnavailable):
            await provider.find_route(usdc, weth, 1, TradeType.EXACT_INPUT, make_options())

    @pytest.mark.asyncio
    async def test_connection_error(self, usdc, weth):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = self.make_provider(handler)
        with pytest.raises(RoutingUnavailable):
            await provider.find_route(usdc, weth, 1, TradeType.EXACT_INPUT, make_options())


class TestSinglePoolQuotes:
    """Tests for spot-price quoting."""

    def test_exact_input_at_parity(self, usdc, weth):
        pool = make_pool(usdc.address, weth.address)
        assert quote_exact_input(pool, True, 1_000_000) == 997_000

    def test_exact_input_one_for_zero(self, usdc, weth):
        pool = make_pool(usdc.address, weth.address, sqrt_price_x96=2 * Q96)
        assert quote_exact_input(pool, False, 4_000_000) == 997_000

    def test_exact_output_rounds_up(self, usdc, weth):
        pool = make_pool(usdc.address, weth.address)
        assert quote_exact_output(pool, True, 997_000) == 1_000_000


class TestSinglePoolProvider:
    """Tests for SinglePoolProvider."""

    @pytest.mark.asyncio
    async def test_exact_input_route(self, usdc, weth):
        reader = FakeChainReader(pool_address=POOL, pool_state=make_pool(usdc.address, weth.address))
        provider = SinglePoolProvider(reader, fee=3000)
        options = make_options()

        route = await provider.find_route(usdc, weth, 1_000_000, TradeType.EXACT_INPUT, options)

        assert reader.pool_lookups == [(usdc.address, weth.address, 3000)]
        assert route.amount_in == 1_000_000
        assert route.amount_out == 997_000
        assert route.value == 0

        calldata = bytes.fromhex(route.calldata[2:])
        assert calldata[:4] == selector(MULTICALL_SIGNATURE)
        deadline, calls = decode(["uint256", "bytes[]"], calldata[4:])
        assert deadline == options.deadline
        assert len(calls) == 1
        assert calls[0][:4] == selector(EXACT_INPUT_SINGLE_SIGNATURE)

        (params,) = decode([SINGLE_SWAP_PARAMS_TYPE], calls[0][4:])
        token_in, token_out, fee, recipient, amount_in, min_out, price_limit = params
        assert token_in.lower() == usdc.address.lower()
        assert token_out.lower() == weth.address.lower()
        assert fee == 3000
        assert recipient.lower() == WALLET.lower()
        assert amount_in == 1_000_000
        assert min_out == 987_030
        assert price_limit == 0

    @pytest.mark.asyncio
    async def test_exact_output_route(self, usdc, weth):
        reader = FakeChainReader(pool_address=POOL, pool_state=make_pool(usdc.address, weth.address))
        provider = SinglePoolProvider(reader, fee=3000)

        route = await provider.find_route(usdc, weth, 997_000, TradeType.EXACT_OUTPUT, make_options())

        calldata = bytes.fromhex(route.calldata[2:])
        _, calls = decode(["uint256", "bytes[]"], calldata[4:])
        assert calls[0][:4] == selector(EXACT_OUTPUT_SINGLE_SIGNATURE)
        (params,) = decode([SINGLE_SWAP_PARAMS_TYPE], calls[0][4:])
        assert params[4] == 997_000
        assert params[5] == 1_010_000
        assert route.amount_in == 1_000_000

    @pytest.mark.asyncio
    async def test_missing_pool(self, usdc, weth):
        provider = SinglePoolProvider(FakeChainReader(pool_address=None), fee=3000)
        assert await provider.find_route(usdc, weth, 1, TradeType.EXACT_INPUT, make_options()) is None

    @pytest.mark.asyncio
    async def test_empty_pool(self, usdc, weth):
        reader = FakeChainReader(
            pool_address=POOL, pool_state=make_pool(usdc.address, weth.address, liquidity=0)
        )
        provider = SinglePoolProvider(reader, fee=3000)
        assert await provider.find_route(usdc, weth, 1_000_000, TradeType.EXACT_INPUT, make_options()) is None

    @pytest.mark.asyncio
    async def test_dust_input(self, usdc, weth):
        reader = FakeChainReader(pool_address=POOL, pool_state=make_pool(usdc.address, weth.address))
        provider = SinglePoolProvider(reader, fee=3000)
        assert await provider.find_route(usdc, weth, 1, TradeType.EXACT_INPUT, make_options()) is None

    @pytest.mark.asyncio
    async def test_wrong_pool_tokens(self, usdc, weth):
        dai = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
        reader = FakeChainReader(pool_address=POOL, pool_state=make_pool(dai, weth.address))
        provider = SinglePoolProvider(reader, fee=3000)
        with pytest.raises(RoutingUnavailable):
            await provider.find_route(usdc, weth, 1_000_000, TradeType.EXACT_INPUT, make_options())

    @pytest.mark.asyncio
    async def test_universal_router_not_supported(self, usdc, weth):
        provider = SinglePoolProvider(FakeChainReader(pool_address=POOL), fee=3000)
        options = make_options(swap_type=SwapType.UNIVERSAL_ROUTER)
        with pytest.raises(RoutingUnavailable):
            await provider.find_route(usdc, weth, 1_000_000, TradeType.EXACT_INPUT, options)
