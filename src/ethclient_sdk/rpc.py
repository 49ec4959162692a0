"""Ledger RPC Service adapter.

Thin wrapper around a Web3 instance exposing the node queries the SDK
needs. Each call either returns the node's answer or raises an RpcError
(or subclass) naming the operation and its inputs; there is no retry at
this layer.

The adapter owns the HTTP session it creates and releases it on
:meth:`LedgerRpc.close`. An injected Web3 instance is used as-is and is
not owned.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Tuple, Type, Union

import requests
from web3 import Web3
from web3.exceptions import TransactionNotFound

from .config import validate_rpc_url
from .constants import PROVIDER_TIMEOUT_SECONDS, REVERT_SELECTOR
from .errors import (
    BroadcastError,
    ConnectionSetupError,
    EthClientError,
    ReceiptNotFoundError,
    RpcError,
    SessionClosedError,
    TransactionNotFoundError,
    ValidationError,
)
from .utils.logging import get_logger

__all__ = ["LedgerRpc", "BlockId"]

_logger = get_logger(__name__)

BlockId = Union[int, str]

_ABI_WORD_LENGTH = 32


def _decode_revert_reason(raw: str) -> Optional[str]:
    """Decode a Solidity ``Error(string)`` revert payload."""
    if raw.startswith(REVERT_SELECTOR) and len(raw) >= 10:
        try:
            data = bytes.fromhex(raw[2:])
            # 4 bytes selector + 32 bytes offset + 32 bytes length
            offset = 4 + _ABI_WORD_LENGTH
            if len(data) >= offset + _ABI_WORD_LENGTH:
                strlen = int.from_bytes(data[offset : offset + _ABI_WORD_LENGTH], "big")
                start = offset + _ABI_WORD_LENGTH
                return data[start : start + strlen].decode(errors="ignore")
        except ValueError:
            return None
    return None


def _error_message(e: Exception) -> str:
    """Best-effort human-readable reason from a provider exception."""
    data = getattr(e, "data", None)
    if isinstance(data, str):
        decoded = _decode_revert_reason(data)
        if decoded:
            return decoded
    if e.args and isinstance(e.args[0], dict):
        payload = e.args[0]
        reason = payload.get("message") or payload.get("reason")
        data = payload.get("data")
        if isinstance(data, str):
            reason = _decode_revert_reason(data) or reason
        if reason:
            return str(reason)
    return str(e) or e.__class__.__name__


def _to_address(address: str, field: str = "address") -> str:
    if not isinstance(address, str) or not Web3.is_address(address):
        raise ValidationError(f"{field} {address!r} is not a valid address")
    return Web3.to_checksum_address(address)


def _to_hash(value: str, field: str = "hash") -> str:
    hex_str = value[2:] if isinstance(value, str) and value.startswith("0x") else value
    if not isinstance(hex_str, str) or len(hex_str) != 64:
        raise ValidationError(f"{field} {value!r} must be a 32-byte hex string")
    try:
        bytes.fromhex(hex_str)
    except ValueError:
        raise ValidationError(f"{field} {value!r} must be a 32-byte hex string") from None
    return "0x" + hex_str.lower()


def _to_block_id(block: BlockId) -> BlockId:
    if isinstance(block, bool):
        raise ValidationError("block must be a height or a block hash")
    if isinstance(block, int):
        if block < 0:
            raise ValidationError("block height must be non-negative")
        return block
    return _to_hash(block, "block hash")


class LedgerRpc:
    """Blocking JSON-RPC access to one ledger node."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        *,
        web3: Optional[Web3] = None,
        timeout: int = PROVIDER_TIMEOUT_SECONDS,
    ):
        self.endpoint = endpoint
        self._session: Optional[requests.Session] = None
        self._closed = False
        if web3 is not None:
            self.w3 = web3
            return

        validate_rpc_url(endpoint)
        self._session = requests.Session()
        try:
            self.w3 = Web3(Web3.HTTPProvider(
                endpoint,
                request_kwargs={"timeout": timeout},
                session=self._session,
            ))
        except Exception as e:
            self._session.close()
            raise ConnectionSetupError(
                f"Connecting to {endpoint} failed: {e}",
                details={"endpoint": endpoint},
            ) from e

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the HTTP session. Further calls raise SessionClosedError."""
        if self._closed:
            return
        self._closed = True
        if self._session is not None:
            self._session.close()
            self._session = None
        _logger.debug("RPC connection closed", extra={"endpoint": self.endpoint})

    def _call(
        self,
        operation: str,
        fn: Callable[[], Any],
        error_cls: Type[EthClientError] = RpcError,
        not_found_cls: Type[RpcError] = TransactionNotFoundError,
        **details: Any,
    ) -> Any:
        if self._closed:
            raise SessionClosedError(
                f"{operation} called on a closed connection",
                details={"operation": operation, **details},
            )
        try:
            return fn()
        except EthClientError:
            raise
        except TransactionNotFound as e:
            raise not_found_cls(
                f"{operation} failed: {_error_message(e)}",
                details={"operation": operation, **details},
            ) from e
        except Exception as e:
            raise error_cls(
                f"{operation} failed: {_error_message(e)}",
                details={"operation": operation, **details},
            ) from e

    # ------------------------------------------------------------------
    # Chain queries
    # ------------------------------------------------------------------
    def block_number(self) -> int:
        return self._call("block_number", lambda: self.w3.eth.block_number)

    def get_block(self, block: BlockId, full_transactions: bool = True) -> Any:
        block_id = _to_block_id(block)
        return self._call(
            "get_block",
            lambda: self.w3.eth.get_block(block_id, full_transactions=full_transactions),
            block=block_id,
        )

    def get_header(self, block: BlockId) -> Any:
        """Block without transaction bodies."""
        return self.get_block(block, full_transactions=False)

    def get_chain_id(self) -> int:
        return self._call("get_chain_id", lambda: self.w3.eth.chain_id)

    def get_gas_price(self) -> int:
        return self._call("get_gas_price", lambda: self.w3.eth.gas_price)

    # ------------------------------------------------------------------
    # Account queries
    # ------------------------------------------------------------------
    def get_pending_nonce(self, address: str) -> int:
        checksum = _to_address(address)
        return self._call(
            "get_pending_nonce",
            lambda: self.w3.eth.get_transaction_count(checksum, "pending"),
            address=checksum,
        )

    def get_balance(self, address: str) -> int:
        checksum = _to_address(address)
        return self._call(
            "get_balance",
            lambda: self.w3.eth.get_balance(checksum, "latest"),
            address=checksum,
        )

    def get_code(self, address: str) -> str:
        """Deployed byte code at ``address`` as hex without 0x prefix."""
        checksum = _to_address(address, "contract address")
        code = self._call(
            "get_code",
            lambda: self.w3.eth.get_code(checksum, "latest"),
            address=checksum,
        )
        return bytes(code).hex()

    def estimate_gas(
        self,
        sender: str,
        to: Optional[str],
        data: bytes,
        value: int,
    ) -> int:
        """Simulate a call and return the gas it needs. ``to=None`` simulates a deployment."""
        call: Dict[str, Any] = {
            "from": _to_address(sender, "sender"),
            "data": Web3.to_hex(data),
            "value": value,
        }
        if to is not None:
            call["to"] = _to_address(to, "recipient")
        return self._call(
            "estimate_gas",
            lambda: self.w3.eth.estimate_gas(call),
            sender=call["from"],
            to=call.get("to"),
            value=value,
        )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    def get_transaction(self, tx_hash: str) -> Tuple[Any, bool]:
        """Return ``(transaction, is_pending)``; pending means not yet in a block."""
        tx_hash = _to_hash(tx_hash, "transaction hash")
        tx = self._call(
            "get_transaction",
            lambda: self.w3.eth.get_transaction(tx_hash),
            tx_hash=tx_hash,
        )
        if tx is None:
            raise TransactionNotFoundError(
                f"Transaction {tx_hash} not found",
                tx_hash=tx_hash,
                details={"operation": "get_transaction"},
            )
        return tx, tx.get("blockNumber") is None

    def get_transaction_in_block(self, block_hash: str, index: int) -> Any:
        block_hash = _to_hash(block_hash, "block hash")
        if index < 0:
            raise ValidationError("transaction index must be non-negative")
        return self._call(
            "get_transaction_in_block",
            lambda: self.w3.eth.get_transaction_by_block(block_hash, index),
            block_hash=block_hash,
            index=index,
        )

    def get_receipt(self, tx_hash: str) -> Any:
        tx_hash = _to_hash(tx_hash, "transaction hash")
        return self._call(
            "get_receipt",
            lambda: self.w3.eth.get_transaction_receipt(tx_hash),
            not_found_cls=ReceiptNotFoundError,
            tx_hash=tx_hash,
        )

    def send_raw_transaction(self, raw: bytes) -> str:
        tx_hash = self._call(
            "send_raw_transaction",
            lambda: self.w3.eth.send_raw_transaction(raw),
            error_cls=BroadcastError,
        )
        return Web3.to_hex(tx_hash)
