"""Token definitions and well-known contract addresses.

Tokens are identified by (chain id, address). Symbols are only a lookup
convenience for configuration.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional


class FeeAmount(IntEnum):
    """Uniswap V3 fee tiers in hundredths of a bip."""
    LOWEST = 100    # 0.01%
    LOW = 500       # 0.05%
    MEDIUM = 3000   # 0.3%
    HIGH = 10000    # 1%


# ======================
# Contract Addresses
# ======================

SWAP_ROUTER_02_ADDRESS = "0x68b3465833fb72A70ecDF485E0e4C7bD8665Fc45"
V3_FACTORY_ADDRESS = "0x1F98431c8aD98523631AE4a59f267346ea31F984"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

MAINNET_CHAIN_ID = 1
ARBITRUM_CHAIN_ID = 42161


@dataclass(frozen=True)
class Token:
    """An ERC-20 token on a specific chain.

    Attributes:
        chain_id: EVM chain identifier
        address: Contract address (checksum casing is not significant)
        decimals: On-chain precision
        symbol: Ticker, e.g. "USDC"
        name: Display name
    """
    chain_id: int
    address: str
    decimals: int
    symbol: str
    name: str = field(default="", compare=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return (
            self.chain_id == other.chain_id
            and self.address.lower() == other.address.lower()
        )

    def __hash__(self) -> int:
        return hash((self.chain_id, self.address.lower()))

    def __str__(self) -> str:
        return f"{self.symbol} ({self.address})"


# ======================
# Token Registry
# ======================

TOKENS: dict[tuple[int, str], Token] = {
    # Ethereum Mainnet
    (MAINNET_CHAIN_ID, "WETH"): Token(
        MAINNET_CHAIN_ID, "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", 18, "WETH", "Wrapped Ether"
    ),
    (MAINNET_CHAIN_ID, "USDC"): Token(
        MAINNET_CHAIN_ID, "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", 6, "USDC", "USD//C"
    ),
    (MAINNET_CHAIN_ID, "USDT"): Token(
        MAINNET_CHAIN_ID, "0xdAC17F958D2ee523a2206206994597C13D831ec7", 6, "USDT", "Tether USD"
    ),
    (MAINNET_CHAIN_ID, "DAI"): Token(
        MAINNET_CHAIN_ID, "0x6B175474E89094C44Da98b954EedeAC495271d0F", 18, "DAI", "Dai Stablecoin"
    ),
    (MAINNET_CHAIN_ID, "WBTC"): Token(
        MAINNET_CHAIN_ID, "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599", 8, "WBTC", "Wrapped BTC"
    ),
    # Arbitrum One
    (ARBITRUM_CHAIN_ID, "WETH"): Token(
        ARBITRUM_CHAIN_ID, "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1", 18, "WETH", "Wrapped Ether"
    ),
    (ARBITRUM_CHAIN_ID, "USDC"): Token(
        ARBITRUM_CHAIN_ID, "0xaf88d065e77c8cC2239327C5EDb3A432268e5831", 6, "USDC", "USD Coin"
    ),
}


def get_token(chain_id: int, symbol: str) -> Optional[Token]:
    """Look up a registered token by chain and symbol."""
    return TOKENS.get((chain_id, symbol.upper()))


def get_supported_symbols(chain_id: int) -> list[str]:
    """List registered token symbols for a chain."""
    return sorted(symbol for (cid, symbol) in TOKENS if cid == chain_id)
