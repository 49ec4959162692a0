"""
Exception hierarchy for the ethclient SDK.

Every failure the SDK can surface inherits from EthClientError, which
carries a machine-readable code, an optional transaction hash and a
details dictionary with the operation context. An on-chain revert is
not an error: it is reported through ``Receipt.status``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

__all__ = [
    "EthClientError",
    "ValidationError",
    "ConnectionSetupError",
    "InvalidPrivateKeyError",
    "SessionClosedError",
    "RpcError",
    "TransactionNotFoundError",
    "ReceiptNotFoundError",
    "SigningError",
    "BroadcastError",
    "UnknownReceiptStatusError",
    "PollCancelledError",
]


class EthClientError(Exception):
    """
    Base exception for all SDK errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code (e.g., "RPC_ERROR").
        tx_hash: Optional transaction hash related to the error.
        details: Additional context (operation name, inputs).

    Example:
        >>> raise EthClientError(
        ...     "Broadcast rejected",
        ...     code="BROADCAST_REJECTED",
        ...     tx_hash="0x123...",
        ...     details={"nonce": 7},
        ... )
    """

    default_code = "ETHCLIENT_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.tx_hash = tx_hash
        self.details = details or {}

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.tx_hash:
            parts.append(f"(tx: {self.tx_hash})")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"tx_hash={self.tx_hash!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "tx_hash": self.tx_hash,
            "details": self.details,
        }


class ValidationError(EthClientError):
    """Raised when caller input validation fails."""

    default_code = "VALIDATION_ERROR"


class ConnectionSetupError(EthClientError):
    """Raised when the RPC endpoint cannot be used to build a session."""

    default_code = "CONNECTION_SETUP_ERROR"


class InvalidPrivateKeyError(ValidationError):
    """Raised when a private key cannot be parsed. The key is never included."""

    default_code = "INVALID_PRIVATE_KEY"

    def __init__(self) -> None:
        super().__init__("Invalid private key format (key not shown for security)")


class SessionClosedError(EthClientError):
    """Raised when an operation is attempted on a closed session."""

    default_code = "SESSION_CLOSED"


class RpcError(EthClientError):
    """Raised when a Ledger RPC call fails (network, node rejection, bad response)."""

    default_code = "RPC_ERROR"


class TransactionNotFoundError(RpcError):
    """Raised when the node does not know the requested transaction."""

    default_code = "TRANSACTION_NOT_FOUND"


class ReceiptNotFoundError(RpcError):
    """Raised when no receipt can be fetched for a transaction."""

    default_code = "RECEIPT_NOT_FOUND"


class SigningError(EthClientError):
    """Raised when a transaction cannot be signed."""

    default_code = "SIGNING_ERROR"


class BroadcastError(EthClientError):
    """Raised when the node refuses a signed transaction."""

    default_code = "BROADCAST_REJECTED"


class UnknownReceiptStatusError(EthClientError):
    """Raised when a receipt reports a status other than 0 or 1.

    Attributes:
        status: The raw status value reported by the node.
    """

    default_code = "UNKNOWN_RECEIPT_STATUS"

    def __init__(self, status: Any, tx_hash: Optional[str] = None) -> None:
        self.status = status
        super().__init__(
            f"Unrecognized receipt status {status!r}",
            tx_hash=tx_hash,
            details={"status": status},
        )


class PollCancelledError(EthClientError):
    """Raised when confirmation polling is cancelled by the caller."""

    default_code = "POLL_CANCELLED"
