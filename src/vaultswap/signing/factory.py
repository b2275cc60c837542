"""Signer factory.

Creates the appropriate signing backend based on configuration. DRY_RUN
always wins over SIGNER_BACKEND so a misconfigured run cannot broadcast.
"""

import logging
from typing import Optional

from vaultswap.config import Settings, get_settings
from vaultswap.errors import ConfigurationError
from vaultswap.signing.base import SignerType, SigningError, TransactionSigner

logger = logging.getLogger(__name__)


def get_signer_type(settings: Optional[Settings] = None) -> SignerType:
    """Determine which signer to use."""
    settings = settings or get_settings()
    try:
        return SignerType(settings.effective_signer_backend)
    except ValueError:
        raise ConfigurationError(f"Unknown signer backend: {settings.signer_backend!r}")


def get_signer(settings: Optional[Settings] = None) -> TransactionSigner:
    """Create the configured signer.

    Raises:
        ConfigurationError: If the backend's credentials are unusable
    """
    settings = settings or get_settings()
    signer_type = get_signer_type(settings)
    logger.info(f"Initializing {signer_type.value} signer")

    if signer_type == SignerType.DRY_RUN:
        from vaultswap.signing.dry_run import DryRunSigner
        return DryRunSigner()

    from vaultswap.signing.fordefi import FordefiSigner
    try:
        return FordefiSigner(
            api_user_token=settings.fordefi_api_user_token,
            vault_id=settings.fordefi_vault_id,
            signer_key_path=settings.fordefi_api_signer_key_path,
            api_url=settings.fordefi_api_url,
            hash_timeout=settings.approval_timeout_seconds,
        )
    except (SigningError, OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot initialize Fordefi signer: {e}") from e
