"""Pytest configuration and fixtures."""

import os
from decimal import Decimal

import pytest

# Set test environment
os.environ["DRY_RUN"] = "true"
os.environ["DEBUG"] = "false"
os.environ["WALLET_ADDRESS"] = "0x8BFCF9e2764BC84DE4BBd0a0f5AAF19F47027A73"

from fakes import SWAP_CALLDATA, WALLET

from vaultswap.config import SwapConfig, get_settings
from vaultswap.routing.base import Route
from vaultswap.tokens import SWAP_ROUTER_02_ADDRESS, get_token


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; reset around each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def usdc():
    return get_token(1, "USDC")


@pytest.fixture
def weth():
    return get_token(1, "WETH")


@pytest.fixture
def swap_config(usdc, weth) -> SwapConfig:
    return SwapConfig(
        chain_id=1,
        rpc_url="http://localhost:8545",
        token_in=usdc,
        token_out=weth,
        amount_in=Decimal("1"),
        pool_fee=3000,
        wallet_address=WALLET,
        recipient_address=WALLET,
        swap_router_address=SWAP_ROUTER_02_ADDRESS,
        slippage_tolerance=Decimal("0.01"),
        deadline_seconds=1800,
    )


@pytest.fixture
def route() -> Route:
    return Route(
        calldata=SWAP_CALLDATA,
        value=0,
        amount_in=1_000_000,
        amount_out=300_000_000_000_000,
        provider="Fake",
        path="USDC -[3000]-> WETH",
    )


@pytest.fixture
def events() -> list:
    return []
