"""Swap execution driver.

Runs one swap as a fixed sequence of steps, each awaited before the next:

    IDLE -> ROUTE_RESOLVED -> APPROVED -> ASSEMBLED -> SUBMITTED -> SUCCEEDED
                  any step failure ---------------------------------> FAILED

Nothing is retried. The first failure ends the run and is reported in the
SwapOutcome together with the step that raised it.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from vaultswap.amounts import display_trade, to_display_amount, to_raw_amount
from vaultswap.chain.base import ChainReader, FeeQuote
from vaultswap.config import Settings, SwapConfig, get_settings, load_swap_config
from vaultswap.errors import ApprovalFailed, FeeDataUnavailable, SubmissionFailed, SwapError
from vaultswap.routing.base import Route, RouteProvider, RouteResolver, TradeType
from vaultswap.signing.base import TransactionRequest, TransactionSigner, is_transaction_hash
from vaultswap.swap.approval import ApprovalGate, ApprovalReceipt
from vaultswap.swap.assembler import FeePolicy, TransactionAssembler

logger = logging.getLogger(__name__)


class SwapState(str, Enum):
    """Pipeline states."""
    IDLE = "idle"
    ROUTE_RESOLVED = "route_resolved"
    APPROVED = "approved"
    ASSEMBLED = "assembled"
    SUBMITTED = "submitted"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class SwapOutcome:
    """Terminal result of one swap run."""
    state: SwapState
    history: tuple[SwapState, ...]
    raw_amount_in: Optional[int] = None
    route: Optional[Route] = None
    approval: Optional[ApprovalReceipt] = None
    fee_quote: Optional[FeeQuote] = None
    transaction: Optional[TransactionRequest] = None
    tx_hash: Optional[str] = None
    # "tx_hash" for an on-chain hash, "custody_id" for a signer-side reference
    reference_kind: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    failed_step: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == SwapState.SUCCEEDED


class SwapExecutor:
    """Executes a single configured swap."""

    def __init__(
        self,
        config: SwapConfig,
        resolver: RouteResolver,
        approval_gate: ApprovalGate,
        assembler: TransactionAssembler,
        chain_reader: ChainReader,
        signer: TransactionSigner,
    ):
        self.config = config
        self.resolver = resolver
        self.approval_gate = approval_gate
        self.assembler = assembler
        self.chain_reader = chain_reader
        self.signer = signer

    async def _read_fees(self) -> FeeQuote:
        try:
            return await self.chain_reader.get_fee_quote()
        except Exception as e:
            logger.error(f"Fee data read failed: {type(e).__name__}: {e}")
            raise FeeDataUnavailable(f"Could not read fee data: {e}") from e

    async def _submit(self, tx: TransactionRequest) -> str:
        try:
            tx_hash = await self.signer.send_transaction(tx)
        except Exception as e:
            logger.error(f"Swap submission failed: {type(e).__name__}: {e}")
            raise SubmissionFailed(f"Signer rejected swap transaction: {e}") from e

        if not tx_hash:
            raise SubmissionFailed("Signer returned no transaction reference")
        return tx_hash

    async def execute(self) -> SwapOutcome:
        """Run the pipeline once.

        Returns:
            SwapOutcome in SUCCEEDED or FAILED state
        """
        config = self.config
        history = [SwapState.IDLE]
        result: dict = {}

        def advance(state: SwapState) -> None:
            logger.info(f"Swap state: {history[-1].value} -> {state.value}")
            history.append(state)

        logger.info(f"Token in -> {config.token_in.address} ({config.token_in.symbol})")
        logger.info(f"Token out -> {config.token_out.address} ({config.token_out.symbol})")

        try:
            raw_amount = to_raw_amount(config.amount_in, config.token_in.decimals)
            result["raw_amount_in"] = raw_amount

            route = await self.resolver.resolve(
                config.token_in,
                config.token_out,
                raw_amount,
                recipient=config.recipient_address,
                trade_type=TradeType.EXACT_INPUT,
            )
            result["route"] = route
            logger.info(f"Route: {display_trade(route, config.token_in, config.token_out)}")
            advance(SwapState.ROUTE_RESOLVED)

            approval = await self.approval_gate.ensure_approval(
                config.token_in,
                spender=config.swap_router_address,
                raw_amount=raw_amount,
                owner=config.wallet_address,
            )
            result["approval"] = approval
            if self.signer.broadcasts and not approval.confirmed:
                raise ApprovalFailed(f"Approval {approval.tx_hash} is not confirmed on chain")
            advance(SwapState.APPROVED)

            # Fee data is read only now, after approval, to keep it fresh
            fee_quote = await self._read_fees()
            result["fee_quote"] = fee_quote
            tx = self.assembler.assemble(route, fee_quote, config.wallet_address)
            result["transaction"] = tx
            advance(SwapState.ASSEMBLED)

            advance(SwapState.SUBMITTED)
            tx_hash = await self._submit(tx)
            result["tx_hash"] = tx_hash
            result["reference_kind"] = "tx_hash" if is_transaction_hash(tx_hash) else "custody_id"
            advance(SwapState.SUCCEEDED)

        except SwapError as e:
            logger.error(f"Swap failed at {e.step}: {e}")
            advance(SwapState.FAILED)
            return SwapOutcome(
                state=SwapState.FAILED,
                history=tuple(history),
                error=str(e),
                error_type=type(e).__name__,
                failed_step=e.step,
                **result,
            )

        logger.info(
            f"Swap successful: {to_display_amount(raw_amount, config.token_in.decimals)} "
            f"{config.token_in.symbol} -> {config.token_out.symbol}, {result['reference_kind']} {tx_hash}"
        )
        if result["reference_kind"] == "custody_id":
            logger.warning(f"Swap reference {tx_hash} is a signer transaction id, not an on-chain hash")
        return SwapOutcome(state=SwapState.SUCCEEDED, history=tuple(history), **result)


def create_route_provider(settings: Settings, chain_reader: ChainReader) -> RouteProvider:
    """Create the configured route provider."""
    if settings.route_provider == "single_pool":
        from vaultswap.routing.single_pool import SinglePoolProvider
        return SinglePoolProvider(chain_reader, fee=settings.pool_fee)

    from vaultswap.routing.routing_api import RoutingApiProvider
    return RoutingApiProvider(
        base_url=settings.routing_api_url,
        api_key=settings.routing_api_key or None,
    )


def create_swap_executor(
    settings: Optional[Settings] = None,
    config: Optional[SwapConfig] = None,
) -> SwapExecutor:
    """Wire a SwapExecutor from settings.

    Raises:
        ConfigurationError: If settings are incomplete
    """
    from vaultswap.chain.web3_reader import Web3ChainReader
    from vaultswap.signing.factory import get_signer

    settings = settings or get_settings()
    config = config or load_swap_config(settings)

    chain_reader = Web3ChainReader(config.rpc_url)
    signer = get_signer(settings)

    resolver = RouteResolver(
        create_route_provider(settings, chain_reader),
        slippage_tolerance=config.slippage_tolerance,
        deadline_seconds=config.deadline_seconds,
    )
    approval_gate = ApprovalGate(
        signer,
        chain_reader,
        wait_for_receipt=signer.broadcasts,
        timeout=settings.approval_timeout_seconds,
    )
    assembler = TransactionAssembler(
        router_address=config.swap_router_address,
        chain_id=config.chain_id,
        fee_policy=FeePolicy(
            max_priority_fee_per_gas=settings.max_priority_fee_per_gas_wei,
            fallback_max_fee_per_gas=settings.fallback_max_fee_per_gas_wei,
            gas_limit=settings.gas_limit,
            base_fee_multiplier=settings.base_fee_multiplier,
        ),
    )

    return SwapExecutor(
        config=config,
        resolver=resolver,
        approval_gate=approval_gate,
        assembler=assembler,
        chain_reader=chain_reader,
        signer=signer,
    )
