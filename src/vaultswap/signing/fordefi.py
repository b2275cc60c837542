"""Fordefi signing backend.

Transactions are created through the Fordefi REST API and signed by the
vault's MPC key. Each create request is authenticated with the API user
token and signed with the API signer's ECDSA key (P-256, SHA-256, DER).
API docs: https://docs.fordefi.com/developers/getting-started
"""

import asyncio
import base64
import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Optional

import httpx
from ecdsa import SigningKey
from ecdsa.der import UnexpectedDER
from ecdsa.util import sigencode_der

from vaultswap.abi import encode_approve
from vaultswap.signing.base import (
    ApprovalRequest,
    SignerType,
    SigningError,
    SigningTimeoutError,
    TransactionRequest,
    TransactionSigner,
)

logger = logging.getLogger(__name__)

DEFAULT_FORDEFI_API_URL = "https://api.fordefi.com"
TRANSACTIONS_PATH = "/api/v1/transactions"

FORDEFI_CHAINS = {
    1: "evm_ethereum_mainnet",
    10: "evm_optimism_mainnet",
    56: "evm_bsc_mainnet",
    137: "evm_polygon_mainnet",
    8453: "evm_base_mainnet",
    42161: "evm_arbitrum_mainnet",
}

# Transaction states after which no hash will ever appear
FAILED_STATES = {"aborted", "error_signing", "error_pushing_to_blockchain", "dropped", "stuck"}


def fordefi_chain(chain_id: int) -> str:
    """Fordefi chain identifier for an EVM chain id."""
    return FORDEFI_CHAINS.get(chain_id, f"evm_{chain_id}")


class FordefiSigner(TransactionSigner):
    """Signs and broadcasts through a Fordefi vault."""

    def __init__(
        self,
        api_user_token: str,
        vault_id: str,
        signer_key_pem: Optional[bytes] = None,
        signer_key_path: Optional[str] = None,
        api_url: str = DEFAULT_FORDEFI_API_URL,
        skip_prediction: bool = False,
        hash_timeout: float = 180.0,
        poll_interval: float = 2.0,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Fordefi signer.

        Args:
            api_user_token: Bearer token of the API user
            vault_id: Vault that signs the transactions
            signer_key_pem: PEM of the API signer key (takes precedence over path)
            signer_key_path: Path to the PEM file
            api_url: Fordefi API base URL
            skip_prediction: Skip Fordefi's simulation of the transaction
            hash_timeout: Seconds to wait for the vault to sign and push
            poll_interval: Seconds between status polls
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        super().__init__(SignerType.FORDEFI)
        if not api_user_token:
            raise SigningError("Fordefi API user token is required")
        if not vault_id:
            raise SigningError("Fordefi vault id is required")

        if signer_key_pem is None:
            if not signer_key_path:
                raise SigningError("Fordefi API signer key is required")
            signer_key_pem = Path(signer_key_path).read_bytes()

        self.api_user_token = api_user_token
        self.vault_id = vault_id
        self.api_url = api_url.rstrip("/")
        self.skip_prediction = skip_prediction
        self.hash_timeout = hash_timeout
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._transport = transport
        try:
            self._signing_key = SigningKey.from_pem(signer_key_pem)
        except (UnexpectedDER, ValueError) as e:
            raise SigningError(f"Invalid Fordefi API signer key: {e}") from e

    def _sign_payload(self, path: str, timestamp: str, body: str) -> str:
        payload = f"{path}|{timestamp}|{body}".encode()
        signature = self._signing_key.sign(payload, hashfunc=hashlib.sha256, sigencode=sigencode_der)
        return base64.b64encode(signature).decode()

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_user_token}",
            "Accept": "application/json",
        }

    def _build_body(self, chain_id: int, to: str, data: str, value: int, gas: dict, note: str) -> dict:
        return {
            "vault_id": self.vault_id,
            "signer_type": "api_signer",
            "sign_mode": "auto",
            "type": "evm_transaction",
            "note": note,
            "skip_prediction": self.skip_prediction,
            "details": {
                "type": "evm_raw_transaction",
                "chain": fordefi_chain(chain_id),
                "to": to,
                "value": str(value),
                "data": {"type": "hex", "hex_data": data},
                "gas": gas,
            },
        }

    async def _create_transaction(self, client: httpx.AsyncClient, body: dict) -> dict:
        body_json = json.dumps(body, separators=(",", ":"))
        timestamp = str(int(time.time() * 1000))
        headers = self._get_headers()
        headers.update({
            "Content-Type": "application/json",
            "x-timestamp": timestamp,
            "x-signature": self._sign_payload(TRANSACTIONS_PATH, timestamp, body_json),
        })

        try:
            response = await client.post(
                f"{self.api_url}{TRANSACTIONS_PATH}",
                headers=headers,
                content=body_json,
            )
        except httpx.HTTPError as e:
            raise SigningError(f"Fordefi request failed: {type(e).__name__}: {e}") from e

        if response.status_code not in (200, 201):
            raise SigningError(f"Fordefi rejected transaction: HTTP {response.status_code} - {response.text}")

        data = response.json()
        logger.info(f"Fordefi transaction created: {data.get('id')} (state: {data.get('state')})")
        return data

    async def _wait_for_hash(self, client: httpx.AsyncClient, transaction: dict) -> Optional[str]:
        """Poll the transaction until the vault has signed and pushed it."""
        tx_id = transaction.get("id")
        deadline = time.monotonic() + self.hash_timeout

        while True:
            tx_hash = transaction.get("hash")
            if tx_hash:
                return tx_hash

            state = transaction.get("state", "")
            if state in FAILED_STATES:
                raise SigningError(f"Fordefi transaction {tx_id} failed in state {state}")

            if not tx_id or time.monotonic() > deadline:
                return None

            await asyncio.sleep(self.poll_interval)
            try:
                response = await client.get(
                    f"{self.api_url}{TRANSACTIONS_PATH}/{tx_id}",
                    headers=self._get_headers(),
                )
            except httpx.HTTPError as e:
                raise SigningError(f"Fordefi status request failed: {type(e).__name__}: {e}") from e

            if response.status_code != 200:
                raise SigningError(f"Fordefi status error: HTTP {response.status_code} - {response.text}")
            transaction = response.json()

    async def approve(self, request: ApprovalRequest) -> Optional[str]:
        body = self._build_body(
            chain_id=request.chain_id,
            to=request.token,
            data=encode_approve(request.spender, request.amount),
            value=0,
            gas={"type": "priority", "priority_level": "medium"},
            note=f"Approve {request.spender} for {request.amount}",
        )

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            created = await self._create_transaction(client, body)
            tx_hash = await self._wait_for_hash(client, created)

        if not tx_hash:
            raise SigningTimeoutError(
                f"Fordefi approval {created.get('id')} has no hash after {self.hash_timeout}s"
            )
        logger.info(f"Token approval tx: {tx_hash}")
        return tx_hash

    async def send_transaction(self, tx: TransactionRequest) -> Optional[str]:
        body = self._build_body(
            chain_id=tx.chain_id,
            to=tx.to,
            data=tx.data,
            value=tx.value,
            gas={
                "type": "custom",
                "gas_limit": str(tx.gas_limit),
                "details": {
                    "type": "dynamic",
                    "max_fee_per_gas": str(tx.max_fee_per_gas),
                    "max_priority_fee_per_gas": str(tx.max_priority_fee_per_gas),
                },
            },
            note="Swap",
        )

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            created = await self._create_transaction(client, body)
            tx_hash = await self._wait_for_hash(client, created)

        if tx_hash:
            return tx_hash

        # Signed asynchronously by the vault; the Fordefi id still identifies it
        logger.warning(
            f"Fordefi transaction {created.get('id')} has no hash yet, "
            f"returning its Fordefi id (not an on-chain hash)"
        )
        return created.get("id")
