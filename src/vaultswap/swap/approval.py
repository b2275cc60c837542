"""Token approval before the swap.

Approval is unconditional: every run submits a fresh approve() for the
exact input amount, with no allowance pre-check.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from vaultswap.chain.base import ChainReader
from vaultswap.errors import ApprovalFailed
from vaultswap.signing.base import ApprovalRequest, TransactionSigner
from vaultswap.tokens import Token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApprovalReceipt:
    """Result of a successful approval."""
    request: ApprovalRequest
    tx_hash: str
    confirmed: bool
    block_number: Optional[int] = None


class ApprovalGate:
    """Authorizes the swap router to spend the input token."""

    def __init__(
        self,
        signer: TransactionSigner,
        chain_reader: Optional[ChainReader] = None,
        wait_for_receipt: bool = True,
        timeout: float = 180,
    ):
        if wait_for_receipt and chain_reader is None:
            raise ValueError("chain_reader is required to wait for approval receipts")
        self.signer = signer
        self.chain_reader = chain_reader
        self.wait_for_receipt = wait_for_receipt
        self.timeout = timeout

    async def ensure_approval(
        self,
        token: Token,
        spender: str,
        raw_amount: int,
        owner: str,
    ) -> ApprovalReceipt:
        """Approve spender for raw_amount of token.

        Raises:
            ApprovalFailed: If the approval is rejected, has no hash, or reverts
        """
        request = ApprovalRequest(
            chain_id=token.chain_id,
            token=token.address,
            spender=spender,
            amount=raw_amount,
            owner=owner,
        )
        logger.info(f"Approving {spender} to spend {raw_amount} raw {token.symbol} from {owner}")

        try:
            tx_hash = await self.signer.approve(request)
        except Exception as e:
            logger.error(f"Approval submission failed: {type(e).__name__}: {e}")
            raise ApprovalFailed(f"Approval of {token.symbol} for {spender} was rejected: {e}") from e

        if not tx_hash:
            raise ApprovalFailed(f"Approval of {token.symbol} for {spender} returned no transaction hash")

        if not self.wait_for_receipt:
            return ApprovalReceipt(request=request, tx_hash=tx_hash, confirmed=False)

        try:
            receipt = await self.chain_reader.wait_for_receipt(tx_hash, timeout=self.timeout)
        except Exception as e:
            logger.error(f"Approval {tx_hash} not confirmed: {type(e).__name__}: {e}")
            raise ApprovalFailed(f"Approval {tx_hash} was not confirmed: {e}") from e

        if receipt.get("status") != 1:
            raise ApprovalFailed(f"Approval {tx_hash} reverted")

        logger.info(f"Approval confirmed: {tx_hash} (block {receipt.get('blockNumber')})")
        return ApprovalReceipt(
            request=request,
            tx_hash=tx_hash,
            confirmed=True,
            block_number=receipt.get("blockNumber"),
        )
