"""Account signing capability.

A LocalSigner is the immutable half of a session: the private key and
the address derived from it. It outlives any single RPC connection, so
a closed session's signer can be reused with a new endpoint through
:meth:`LocalSigner.connect`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from .errors import InvalidPrivateKeyError, SigningError
from .models import SignedTransaction, UnsignedTransaction
from .utils.logging import get_logger

if TYPE_CHECKING:
    from .client import EthClient

__all__ = ["LocalSigner", "private_key_to_address"]

_logger = get_logger(__name__)


def _load_account(private_key: str) -> LocalAccount:
    # Sanitize parsing errors to prevent key leakage in stack traces
    try:
        return Account.from_key(private_key)
    except Exception:
        raise InvalidPrivateKeyError() from None


def private_key_to_address(private_key: str) -> str:
    """Derive the checksummed address of a hex private key. No RPC needed.

    Raises:
        InvalidPrivateKeyError: If the key cannot be parsed
    """
    return _load_account(private_key).address


@dataclass(frozen=True)
class LocalSigner:
    account: LocalAccount = field(repr=False)

    @classmethod
    def from_key(cls, private_key: str) -> "LocalSigner":
        """Create a signer from a hex private key, with or without 0x."""
        return cls(account=_load_account(private_key))

    @property
    def address(self) -> str:
        return self.account.address

    def sign(self, tx: UnsignedTransaction, chain_id: int) -> SignedTransaction:
        """Sign a legacy transaction with EIP-155 replay protection.

        Raises:
            SigningError: If the transaction cannot be signed
        """
        params = tx.to_tx_params(chain_id)
        if tx.to is not None:
            params["to"] = Web3.to_checksum_address(tx.to)
        try:
            signed = self.account.sign_transaction(params)
        except Exception as e:
            raise SigningError(
                f"Signing transaction failed: {e}",
                details={"nonce": tx.nonce, "to": tx.to, "chain_id": chain_id},
            ) from e

        tx_hash = Web3.to_hex(signed.hash)
        _logger.debug(
            "Signed transaction",
            extra={"tx_hash": tx_hash, "nonce": tx.nonce, "chain_id": chain_id},
        )
        return SignedTransaction(
            transaction=tx,
            chain_id=chain_id,
            raw=bytes(signed.raw_transaction),
            tx_hash=tx_hash,
            v=signed.v,
            r=signed.r,
            s=signed.s,
        )

    def connect(
        self,
        endpoint: str,
        web3: Optional[Web3] = None,
        **kwargs: Any,
    ) -> "EthClient":
        """Open a new session for this signer against ``endpoint``."""
        from .client import EthClient

        return EthClient(endpoint, signer=self, web3=web3, **kwargs)
