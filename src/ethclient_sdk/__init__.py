from .builder import TransactionBuilder
from .client import EthClient
from .config import ClientConfig, load_private_key
from .confirmation import ConfirmationEngine
from .constants import (
    DEFAULT_MAX_POLL_ATTEMPTS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    PROVIDER_TIMEOUT_SECONDS,
    SELECTOR_LENGTH,
    WEI_PER_ETHER,
)
from .encoding import (
    balance_to_ether,
    encode_arguments,
    method_selector,
    method_signature,
    pack_method_data,
)
from .errors import (
    BroadcastError,
    ConnectionSetupError,
    EthClientError,
    InvalidPrivateKeyError,
    PollCancelledError,
    ReceiptNotFoundError,
    RpcError,
    SessionClosedError,
    SigningError,
    TransactionNotFoundError,
    UnknownReceiptStatusError,
    ValidationError,
)
from .models import MethodCall, Receipt, ReceiptStatus, SignedTransaction, UnsignedTransaction
from .nonce import NonceTracker
from .rpc import LedgerRpc
from .signer import LocalSigner, private_key_to_address
from .utils.logging import configure_logging, get_logger
from .utils.polling import PollConfig

__all__ = [
    # Client
    "EthClient",
    "LocalSigner",
    "LedgerRpc",
    "TransactionBuilder",
    "ConfirmationEngine",
    "NonceTracker",
    # Config
    "ClientConfig",
    "PollConfig",
    "load_private_key",
    # Models
    "UnsignedTransaction",
    "SignedTransaction",
    "Receipt",
    "ReceiptStatus",
    "MethodCall",
    # Encoding
    "private_key_to_address",
    "method_signature",
    "method_selector",
    "encode_arguments",
    "pack_method_data",
    "balance_to_ether",
    # Errors
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
    # Logging
    "configure_logging",
    "get_logger",
    # Constants
    "SELECTOR_LENGTH",
    "WEI_PER_ETHER",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "DEFAULT_MAX_POLL_ATTEMPTS",
    "PROVIDER_TIMEOUT_SECONDS",
]
