"""Unsigned transaction construction."""
from typing import Optional

from .errors import ValidationError
from .models import UnsignedTransaction
from .nonce import NonceTracker
from .rpc import LedgerRpc
from .utils.logging import get_logger

__all__ = ["TransactionBuilder"]

_logger = get_logger(__name__)

MAX_UINT256 = 2**256 - 1


def _validate_value(value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("value must be an integer amount of wei")
    if value < 0:
        raise ValidationError("value must be non-negative")
    if value > MAX_UINT256:
        raise ValidationError("value exceeds uint256")


class TransactionBuilder:
    """Packages caller intent plus nonce, gas price and gas limit.

    The nonce comes from a NonceTracker and is not recorded until the
    transaction is broadcast, so a build that is never sent does not
    move the next nonce forward.
    """

    def __init__(
        self,
        rpc: LedgerRpc,
        sender: str,
        nonce_tracker: Optional[NonceTracker] = None,
    ):
        self.rpc = rpc
        self.sender = sender
        self.nonce_tracker = nonce_tracker or NonceTracker()

    def build(
        self,
        to: Optional[str],
        data: bytes = b"",
        value: int = 0,
        nonce: Optional[int] = None,
    ) -> UnsignedTransaction:
        """Build an unsigned legacy transaction.

        Args:
            to: Recipient address, or None to deploy ``data`` as a contract
            data: Call payload
            value: Amount to transfer in wei
            nonce: Caller-managed nonce; skips the pending-nonce lookup

        Returns:
            UnsignedTransaction

        Raises:
            ValidationError: If the value or explicit nonce is invalid
            RpcError: If the nonce, gas price or gas estimate query fails
        """
        _validate_value(value)
        data = bytes(data or b"")
        if nonce is not None:
            if isinstance(nonce, bool) or not isinstance(nonce, int) or nonce < 0:
                raise ValidationError("nonce must be a non-negative integer")
            return self._assemble(to, data, value, nonce)

        with self.nonce_tracker.lock(self.sender):
            next_nonce = self.nonce_tracker.next_nonce(
                self.sender, lambda: self.rpc.get_pending_nonce(self.sender)
            )
            return self._assemble(to, data, value, next_nonce)

    def _assemble(self, to: Optional[str], data: bytes, value: int, nonce: int) -> UnsignedTransaction:
        gas_price = self.rpc.get_gas_price()
        gas = self.rpc.estimate_gas(self.sender, to, data, value)
        tx = UnsignedTransaction(
            nonce=nonce,
            to=to,
            value=value,
            gas=gas,
            gas_price=gas_price,
            data=data,
        )
        _logger.debug(
            "Built transaction",
            extra={"nonce": nonce, "to": to, "gas": gas, "gas_price": gas_price},
        )
        return tx

    def commit(self, tx: UnsignedTransaction) -> None:
        """Record the nonce of a transaction the node accepted."""
        self.nonce_tracker.commit(self.sender, tx.nonce)
