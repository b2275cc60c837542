"""Dry-run signer for simulated swaps.

Records every request and returns a deterministic simulated hash. Nothing
is signed or broadcast.
"""

import json
import logging
from dataclasses import asdict
from typing import Optional

from web3 import Web3

from vaultswap.signing.base import ApprovalRequest, SignerType, TransactionRequest, TransactionSigner

logger = logging.getLogger(__name__)


def simulated_hash(kind: str, payload: dict) -> str:
    """Hash of the request contents, stable across runs."""
    encoded = json.dumps({"kind": kind, **payload}, sort_keys=True)
    return "0x" + bytes(Web3.keccak(text=encoded)).hex()


class DryRunSigner(TransactionSigner):
    """Signer that never broadcasts."""

    def __init__(self):
        super().__init__(SignerType.DRY_RUN)
        self.approvals: list[ApprovalRequest] = []
        self.transactions: list[TransactionRequest] = []

    @property
    def broadcasts(self) -> bool:
        return False

    async def approve(self, request: ApprovalRequest) -> Optional[str]:
        self.approvals.append(request)
        tx_hash = simulated_hash("approve", asdict(request))
        logger.info(f"[DRY RUN] Approve {request.amount} of {request.token} for {request.spender}: {tx_hash}")
        return tx_hash

    async def send_transaction(self, tx: TransactionRequest) -> Optional[str]:
        self.transactions.append(tx)
        tx_hash = simulated_hash("transaction", asdict(tx))
        logger.info(f"[DRY RUN] Transaction to {tx.to} (value {tx.value}, gas {tx.gas_limit}): {tx_hash}")
        return tx_hash
