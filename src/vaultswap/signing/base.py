"""Base interfaces for transaction signing.

Signing flow:
1. Build the unsigned request (approval or swap transaction)
2. Hand it to the signer backend, which holds custody of the key
3. Backend signs and broadcasts, returning a transaction reference

This package never sees raw private key material for the vault.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)

TX_HASH_PATTERN = re.compile(r"^0x[a-fA-F0-9]{64}$")


def is_transaction_hash(reference: Optional[str]) -> bool:
    """Whether a signer reference is an on-chain transaction hash."""
    return bool(reference) and TX_HASH_PATTERN.match(reference) is not None


class SignerType(str, Enum):
    """Type of signing backend."""
    FORDEFI = "fordefi"     # Fordefi MPC vault via API
    DRY_RUN = "dry_run"     # Records requests, never broadcasts


@dataclass(frozen=True)
class ApprovalRequest:
    """ERC-20 approval to be signed by the vault.

    Attributes:
        chain_id: EVM chain identifier
        token: Token contract address
        spender: Address allowed to move the tokens (swap router)
        amount: Raw amount to approve
        owner: Vault address granting the allowance
    """
    chain_id: int
    token: str
    spender: str
    amount: int
    owner: str


@dataclass(frozen=True)
class TransactionRequest:
    """Fully assembled EIP-1559 transaction.

    Attributes:
        chain_id: EVM chain identifier
        to: Destination contract
        data: Hex call data
        value: Native value in wei
        sender: Vault address sending the transaction
        max_fee_per_gas: Fee cap in wei
        max_priority_fee_per_gas: Tip in wei
        gas_limit: Gas ceiling
    """
    chain_id: int
    to: str
    data: str
    value: int
    sender: str
    max_fee_per_gas: int
    max_priority_fee_per_gas: int
    gas_limit: int


class TransactionSigner(ABC):
    """Abstract base class for signing and broadcast backends.

    Implementations return a transaction reference (hash or custody id)
    and raise SigningError on rejection.
    """

    def __init__(self, signer_type: SignerType):
        self.signer_type = signer_type

    @abstractmethod
    async def approve(self, request: ApprovalRequest) -> Optional[str]:
        """Sign and broadcast a token approval.

        Returns:
            Transaction hash of the approval, or None if none was produced
        """
        pass

    @abstractmethod
    async def send_transaction(self, tx: TransactionRequest) -> Optional[str]:
        """Sign and broadcast a transaction.

        Returns:
            Transaction reference, or None if none was produced
        """
        pass

    @property
    def broadcasts(self) -> bool:
        """Whether submitted transactions actually reach the chain."""
        return True

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type={self.signer_type.value})"


class SigningError(Exception):
    """Exception raised when signing or broadcast fails."""
    pass


class SigningTimeoutError(SigningError):
    """Exception raised when the backend does not produce a hash in time."""
    pass
