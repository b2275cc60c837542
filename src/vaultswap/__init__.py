"""vaultswap - single Uniswap swap through a custody vault."""

__version__ = "0.1.0"
