"""In-memory collaborators for pipeline tests."""

from typing import Optional

from vaultswap.chain.base import ChainReader, FeeQuote, PoolState
from vaultswap.config import SwapConfig
from vaultswap.routing.base import Route, RouteOptions, RouteProvider, RouteResolver, TradeType
from vaultswap.signing.base import ApprovalRequest, SignerType, TransactionRequest, TransactionSigner
from vaultswap.swap.approval import ApprovalGate
from vaultswap.swap.assembler import FeePolicy, TransactionAssembler
from vaultswap.swap.executor import SwapExecutor

WALLET = "0x8BFCF9e2764BC84DE4BBd0a0f5AAF19F47027A73"
FIXED_NOW = 1_700_000_000.0
SWAP_CALLDATA = "0x5ae401dc" + "00" * 64


class FakeRouteProvider(RouteProvider):
    """Returns a fixed route (or None) and records requests."""

    def __init__(self, route: Optional[Route], events: Optional[list] = None, error: Exception = None):
        self.route = route
        self.events = events if events is not None else []
        self.error = error
        self.requests: list[tuple] = []

    @property
    def name(self) -> str:
        return "Fake"

    async def find_route(self, token_in, token_out, raw_amount, trade_type: TradeType, options: RouteOptions):
        self.events.append("route")
        self.requests.append((token_in, token_out, raw_amount, trade_type, options))
        if self.error:
            raise self.error
        return self.route


class FakeChainReader(ChainReader):
    """In-memory chain state."""

    def __init__(
        self,
        fee_quote: FeeQuote = FeeQuote(base_fee_per_gas=10_000_000_000, gas_price=11_000_000_000),
        pool_address: Optional[str] = None,
        pool_state: Optional[PoolState] = None,
        receipt: Optional[dict] = None,
        events: Optional[list] = None,
        fee_error: Exception = None,
        receipt_error: Exception = None,
    ):
        self.fee_quote = fee_quote
        self.pool_address = pool_address
        self.pool_state = pool_state
        self.receipt = receipt if receipt is not None else {"status": 1, "blockNumber": 100}
        self.events = events if events is not None else []
        self.fee_error = fee_error
        self.receipt_error = receipt_error
        self.pool_lookups: list[tuple] = []

    async def get_fee_quote(self) -> FeeQuote:
        self.events.append("fees")
        if self.fee_error:
            raise self.fee_error
        return self.fee_quote

    async def get_pool_address(self, token_a, token_b, fee):
        self.pool_lookups.append((token_a, token_b, fee))
        return self.pool_address

    async def read_pool_state(self, pool_address):
        return self.pool_state

    async def wait_for_receipt(self, tx_hash, timeout=180):
        self.events.append("receipt")
        if self.receipt_error:
            raise self.receipt_error
        return self.receipt


class RecordingSigner(TransactionSigner):
    """Signer fake with configurable responses."""

    def __init__(
        self,
        events: Optional[list] = None,
        approve_hash: Optional[str] = "0xapprove",
        send_hash: Optional[str] = "0xswap",
        approve_error: Exception = None,
        send_error: Exception = None,
    ):
        super().__init__(SignerType.DRY_RUN)
        self.events = events if events is not None else []
        self.approve_hash = approve_hash
        self.send_hash = send_hash
        self.approve_error = approve_error
        self.send_error = send_error
        self.approvals: list[ApprovalRequest] = []
        self.transactions: list[TransactionRequest] = []

    async def approve(self, request: ApprovalRequest):
        self.events.append("approve")
        self.approvals.append(request)
        if self.approve_error:
            raise self.approve_error
        return self.approve_hash

    async def send_transaction(self, tx: TransactionRequest):
        self.events.append("send")
        self.transactions.append(tx)
        if self.send_error:
            raise self.send_error
        return self.send_hash


def make_executor(
    config: SwapConfig,
    provider: RouteProvider,
    reader: ChainReader,
    signer: TransactionSigner,
    wait_for_receipt: bool = True,
) -> SwapExecutor:
    """Wire an executor around fakes with a fixed clock."""
    return SwapExecutor(
        config=config,
        resolver=RouteResolver(
            provider,
            slippage_tolerance=config.slippage_tolerance,
            deadline_seconds=config.deadline_seconds,
            clock=lambda: FIXED_NOW,
        ),
        approval_gate=ApprovalGate(signer, reader, wait_for_receipt=wait_for_receipt),
        assembler=TransactionAssembler(config.swap_router_address, config.chain_id, FeePolicy()),
        chain_reader=reader,
        signer=signer,
    )
