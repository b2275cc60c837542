"""Application configuration using pydantic-settings.

Settings come from environment variables or a .env file. load_swap_config()
turns them into the immutable SwapConfig the pipeline consumes and fails
fast with ConfigurationError on anything missing or inconsistent.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vaultswap.errors import ConfigurationError
from vaultswap.tokens import SWAP_ROUTER_02_ADDRESS, FeeAmount, Token, get_supported_symbols, get_token

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")

ROUTE_PROVIDERS = ("routing_api", "single_pool")
SIGNER_BACKENDS = ("fordefi", "dry_run")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Chain
    # ======================
    chain_id: int = Field(default=1, description="EVM chain id")
    rpc_url: str = Field(
        default="https://ethereum-rpc.publicnode.com", description="Chain RPC URL"
    )

    # ======================
    # Swap
    # ======================
    token_in: str = Field(default="USDC", description="Input token symbol")
    token_out: str = Field(default="WETH", description="Output token symbol")
    amount_in: str = Field(default="1", description="Input amount in natural units (1 = 1 whole token)")
    pool_fee: int = Field(default=int(FeeAmount.MEDIUM), description="Pool fee tier")
    wallet_address: Optional[str] = Field(
        default=None, description="Vault address that signs and pays for the swap"
    )
    recipient_address: Optional[str] = Field(
        default=None, description="Output recipient (defaults to wallet address)"
    )
    swap_router_address: str = Field(
        default=SWAP_ROUTER_02_ADDRESS, description="Swap router contract (approval spender)"
    )
    slippage_bps: int = Field(default=100, description="Slippage tolerance in basis points (100 = 1%)")
    deadline_seconds: int = Field(default=1800, description="Swap deadline window in seconds")

    # ======================
    # Fees
    # ======================
    gas_limit: int = Field(default=400_000, description="Fixed gas limit for the swap")
    max_priority_fee_per_gas_wei: int = Field(
        default=100_000_000, description="Priority fee (0.1 gwei)"
    )
    fallback_max_fee_per_gas_wei: int = Field(
        default=1_000_000_000, description="Max fee used when no base fee is available (1 gwei)"
    )
    base_fee_multiplier: int = Field(default=2, description="Max fee = multiplier * base fee")

    # ======================
    # Routing
    # ======================
    route_provider: str = Field(default="routing_api", description="routing_api or single_pool")
    routing_api_url: str = Field(
        default="https://api.uniswap.org/v1", description="Uniswap routing-api base URL"
    )
    routing_api_key: str = Field(default="", description="Routing API key (optional)")

    # ======================
    # Signing
    # ======================
    signer_backend: str = Field(default="fordefi", description="fordefi or dry_run")
    dry_run: bool = Field(default=True, description="Enable dry-run mode (no real transactions)")
    fordefi_api_url: str = Field(default="https://api.fordefi.com", description="Fordefi API URL")
    fordefi_api_user_token: str = Field(default="", description="Fordefi API user token")
    fordefi_api_signer_key_path: str = Field(
        default="./fordefi_secret/private.pem", description="PEM key used to sign API requests"
    )
    fordefi_vault_id: str = Field(default="", description="Fordefi vault id")
    approval_timeout_seconds: int = Field(default=180, description="Approval confirmation timeout")

    # ======================
    # Environment
    # ======================
    debug: bool = Field(default=False, description="Enable debug logging")

    @field_validator("wallet_address", "recipient_address", "swap_router_address")
    @classmethod
    def _check_address(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return None
        value = value.strip()
        if not ADDRESS_PATTERN.match(value):
            raise ValueError(f"Invalid EVM address format: {value}")
        return value

    @field_validator("route_provider", "signer_backend")
    @classmethod
    def _lowercase(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def effective_signer_backend(self) -> str:
        """DRY_RUN overrides whatever backend is configured."""
        return "dry_run" if self.dry_run else self.signer_backend

    @property
    def slippage_tolerance(self) -> Decimal:
        """Slippage as a ratio (100 bps = 0.01)."""
        return Decimal(self.slippage_bps) / Decimal(10_000)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "chain_id": self.chain_id,
            "rpc_url": self.rpc_url,
            "swap": {
                "token_in": self.token_in,
                "token_out": self.token_out,
                "amount_in": self.amount_in,
                "pool_fee": self.pool_fee,
                "wallet_address": self.wallet_address or "(not set)",
                "recipient_address": self.recipient_address or "(wallet)",
                "swap_router_address": self.swap_router_address,
                "slippage_bps": self.slippage_bps,
                "deadline_seconds": self.deadline_seconds,
            },
            "fees": {
                "gas_limit": self.gas_limit,
                "max_priority_fee_per_gas_wei": self.max_priority_fee_per_gas_wei,
                "fallback_max_fee_per_gas_wei": self.fallback_max_fee_per_gas_wei,
                "base_fee_multiplier": self.base_fee_multiplier,
            },
            "routing": {
                "provider": self.route_provider,
                "api_url": self.routing_api_url,
                "api_key": "***" if self.routing_api_key else "(not set)",
            },
            "signing": {
                "backend": self.effective_signer_backend,
                "dry_run": self.dry_run,
                "fordefi_api_url": self.fordefi_api_url,
                "fordefi_api_user_token": "***" if self.fordefi_api_user_token else "(not set)",
                "fordefi_api_signer_key_path": self.fordefi_api_signer_key_path,
                "fordefi_vault_id": self.fordefi_vault_id or "(not set)",
            },
            "debug": self.debug,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        ConfigurationError: If environment values fail validation
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


@dataclass(frozen=True)
class SwapConfig:
    """Validated, immutable description of the swap to run."""
    chain_id: int
    rpc_url: str
    token_in: Token
    token_out: Token
    amount_in: Decimal
    pool_fee: int
    wallet_address: str
    recipient_address: str
    swap_router_address: str
    slippage_tolerance: Decimal
    deadline_seconds: int


def _resolve_token(chain_id: int, symbol: str, role: str) -> Token:
    token = get_token(chain_id, symbol)
    if token is None:
        supported = ", ".join(get_supported_symbols(chain_id)) or "none"
        raise ConfigurationError(
            f"Unknown {role} token {symbol!r} on chain {chain_id} (supported: {supported})"
        )
    return token


def load_swap_config(settings: Optional[Settings] = None) -> SwapConfig:
    """Validate settings and build the SwapConfig.

    Raises:
        ConfigurationError: On the first missing or inconsistent value
    """
    settings = settings or get_settings()

    if not settings.wallet_address:
        raise ConfigurationError("WALLET_ADDRESS is not set")
    if not settings.swap_router_address:
        raise ConfigurationError("SWAP_ROUTER_ADDRESS is not set")

    token_in = _resolve_token(settings.chain_id, settings.token_in, "input")
    token_out = _resolve_token(settings.chain_id, settings.token_out, "output")
    if token_in == token_out:
        raise ConfigurationError(f"Input and output token are the same: {token_in}")

    try:
        amount_in = Decimal(settings.amount_in.strip())
    except InvalidOperation:
        raise ConfigurationError(f"AMOUNT_IN is not a number: {settings.amount_in!r}")
    if not amount_in.is_finite() or amount_in <= 0:
        raise ConfigurationError(f"AMOUNT_IN must be a positive number, got {settings.amount_in!r}")

    if settings.pool_fee not in {fee.value for fee in FeeAmount}:
        raise ConfigurationError(
            f"POOL_FEE {settings.pool_fee} is not a valid fee tier "
            f"({', '.join(str(fee.value) for fee in FeeAmount)})"
        )
    if not 0 <= settings.slippage_bps < 10_000:
        raise ConfigurationError(f"SLIPPAGE_BPS must be between 0 and 9999, got {settings.slippage_bps}")
    if settings.deadline_seconds <= 0:
        raise ConfigurationError(f"DEADLINE_SECONDS must be positive, got {settings.deadline_seconds}")
    if settings.base_fee_multiplier < 1:
        raise ConfigurationError(f"BASE_FEE_MULTIPLIER must be at least 1, got {settings.base_fee_multiplier}")
    if settings.gas_limit <= 0:
        raise ConfigurationError(f"GAS_LIMIT must be positive, got {settings.gas_limit}")

    if settings.route_provider not in ROUTE_PROVIDERS:
        raise ConfigurationError(
            f"ROUTE_PROVIDER must be one of {', '.join(ROUTE_PROVIDERS)}, got {settings.route_provider!r}"
        )
    if settings.signer_backend not in SIGNER_BACKENDS:
        raise ConfigurationError(
            f"SIGNER_BACKEND must be one of {', '.join(SIGNER_BACKENDS)}, got {settings.signer_backend!r}"
        )
    if settings.effective_signer_backend == "fordefi":
        _check_fordefi(settings)

    return SwapConfig(
        chain_id=settings.chain_id,
        rpc_url=settings.rpc_url,
        token_in=token_in,
        token_out=token_out,
        amount_in=amount_in,
        pool_fee=settings.pool_fee,
        wallet_address=settings.wallet_address,
        recipient_address=settings.recipient_address or settings.wallet_address,
        swap_router_address=settings.swap_router_address,
        slippage_tolerance=settings.slippage_tolerance,
        deadline_seconds=settings.deadline_seconds,
    )


def _check_fordefi(settings: Settings) -> None:
    """Fordefi needs a token, a vault and a readable request-signing key."""
    if not settings.fordefi_api_user_token:
        raise ConfigurationError("FORDEFI_API_USER_TOKEN is not set")
    if not settings.fordefi_vault_id:
        raise ConfigurationError("FORDEFI_VAULT_ID is not set")
    key_path = Path(settings.fordefi_api_signer_key_path)
    if not key_path.is_file():
        raise ConfigurationError(f"Fordefi API signer key not found at {key_path}")
