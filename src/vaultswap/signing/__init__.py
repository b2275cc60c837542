"""Transaction signing services.

Provides signing implementations:
- FordefiSigner: Fordefi MPC vault via API
- DryRunSigner: Records requests without broadcasting
"""

from vaultswap.signing.base import (
    ApprovalRequest,
    SignerType,
    SigningError,
    TransactionRequest,
    TransactionSigner,
)
from vaultswap.signing.dry_run import DryRunSigner
from vaultswap.signing.factory import get_signer

__all__ = [
    "ApprovalRequest",
    "SignerType",
    "SigningError",
    "TransactionRequest",
    "TransactionSigner",
    "DryRunSigner",
    "get_signer",
]
