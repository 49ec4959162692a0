from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .constants import RECEIPT_STATUS_FAILED, RECEIPT_STATUS_SUCCEEDED
from .errors import UnknownReceiptStatusError

__all__ = [
    "ReceiptStatus",
    "UnsignedTransaction",
    "SignedTransaction",
    "Receipt",
    "MethodCall",
]


class ReceiptStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @classmethod
    def from_raw(cls, status: Any, tx_hash: Optional[str] = None) -> "ReceiptStatus":
        """Map a receipt status integer (or hex string) to an outcome.

        Raises:
            UnknownReceiptStatusError: For anything other than 0 or 1
        """
        value = status
        if isinstance(status, str):
            try:
                value = int(status, 16) if status.startswith("0x") else int(status)
            except ValueError:
                raise UnknownReceiptStatusError(status, tx_hash=tx_hash) from None
        if isinstance(value, bool) or not isinstance(value, int):
            raise UnknownReceiptStatusError(status, tx_hash=tx_hash)
        if value == RECEIPT_STATUS_SUCCEEDED:
            return cls.SUCCEEDED
        if value == RECEIPT_STATUS_FAILED:
            return cls.FAILED
        raise UnknownReceiptStatusError(status, tx_hash=tx_hash)


@dataclass(frozen=True)
class UnsignedTransaction:
    """Legacy (gas-price) transaction ready for signing.

    Attributes:
        nonce: Sender's next pending nonce at build time
        to: Recipient address, None for contract creation
        value: Amount transferred in wei
        gas: Estimated gas limit
        gas_price: Network-suggested gas price in wei
        data: Call payload (selector + encoded arguments), possibly empty
    """
    nonce: int
    to: Optional[str]
    value: int
    gas: int
    gas_price: int
    data: bytes = b""

    def to_tx_params(self, chain_id: int) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "nonce": self.nonce,
            "value": self.value,
            "gas": self.gas,
            "gasPrice": self.gas_price,
            "data": self.data,
            "chainId": chain_id,
        }
        if self.to is not None:
            params["to"] = self.to
        return params


@dataclass(frozen=True)
class SignedTransaction:
    """Unsigned transaction plus an EIP-155 signature bound to ``chain_id``."""
    transaction: UnsignedTransaction
    chain_id: int
    raw: bytes
    tx_hash: str
    v: int
    r: int
    s: int

    @property
    def nonce(self) -> int:
        return self.transaction.nonce


@dataclass(frozen=True)
class Receipt:
    """Finalized inclusion record for a submitted transaction.

    Attributes:
        tx_hash: 0x-prefixed transaction hash
        status: Execution outcome (succeeded or failed)
        block_number: Height of the including block
        block_hash: Hash of the including block
        transaction_index: Position in the block
        gas_used: Gas consumed by execution
        contract_address: Created contract, for deployments
        raw: Receipt as returned by the node
    """
    tx_hash: str
    status: ReceiptStatus
    block_number: Optional[int] = None
    block_hash: Optional[str] = None
    transaction_index: Optional[int] = None
    gas_used: Optional[int] = None
    contract_address: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.status is ReceiptStatus.SUCCEEDED


@dataclass(frozen=True)
class MethodCall:
    """Contract method name and its ordered (type, value) arguments."""
    method: str
    args: Tuple[Tuple[str, Any], ...] = ()

    @property
    def arg_types(self) -> List[str]:
        return [arg_type for arg_type, _ in self.args]

    @property
    def arg_values(self) -> List[Any]:
        return [value for _, value in self.args]

    @property
    def signature(self) -> str:
        return f"{self.method}({','.join(self.arg_types)})"
