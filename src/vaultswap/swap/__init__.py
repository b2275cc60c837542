"""Swap execution pipeline.

Provides:
- SwapExecutor: Route -> approve -> assemble -> submit driver
- ApprovalGate: Unconditional token approval before the swap
- TransactionAssembler: Route and fee data to TransactionRequest
"""

from vaultswap.swap.approval import ApprovalGate, ApprovalReceipt
from vaultswap.swap.assembler import FeePolicy, TransactionAssembler
from vaultswap.swap.executor import (
    SwapExecutor,
    SwapOutcome,
    SwapState,
    create_swap_executor,
)

__all__ = [
    # Executor
    "SwapExecutor",
    "SwapOutcome",
    "SwapState",
    "create_swap_executor",
    # Steps
    "ApprovalGate",
    "ApprovalReceipt",
    "FeePolicy",
    "TransactionAssembler",
]
