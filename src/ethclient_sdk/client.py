"""Account session client.

This module provides the EthClient class, which binds one private key
and one RPC endpoint into a session and drives the transaction
lifecycle: build, sign, broadcast, confirm.

The client supports:
- Balance, nonce, gas price and chain id queries
- Block, header, transaction and byte code lookups
- Contract method invocation and contract deployment
- Cancellable, deadline-bounded confirmation polling

Example:
    >>> from ethclient_sdk import EthClient
    >>> with EthClient("https://rpc.example.org", private_key="0x...") as client:
    ...     receipt = client.invoke_contract_without_args(
    ...         contract_addr="0x...",
    ...         method="deposit",
    ...         value=10**16,
    ...     )
    ...     print(receipt.status)  # ReceiptStatus.SUCCEEDED
"""
import threading
import time
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Sequence, Tuple, Union

from web3 import Web3

from .builder import TransactionBuilder
from .config import ClientConfig, load_private_key
from .confirmation import ConfirmationEngine
from .constants import PROVIDER_TIMEOUT_SECONDS
from .encoding import balance_to_ether, pack_method_data
from .errors import ValidationError
from .models import Receipt, SignedTransaction, UnsignedTransaction
from .nonce import NonceTracker
from .rpc import BlockId, LedgerRpc
from .signer import LocalSigner
from .utils.logging import get_logger
from .utils.polling import Clock, PollConfig, Sleeper

__all__ = ["EthClient"]

_logger = get_logger(__name__)


class EthClient:
    """Session binding a signer to a Ledger RPC connection."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        private_key: Optional[str] = None,
        *,
        signer: Optional[LocalSigner] = None,
        web3: Optional[Web3] = None,
        rpc: Optional[LedgerRpc] = None,
        timeout: int = PROVIDER_TIMEOUT_SECONDS,
        poll_config: Optional[PollConfig] = None,
        nonce_tracker: Optional[NonceTracker] = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep,
    ):
        if signer is None:
            if private_key is None:
                raise ValidationError("Either private_key or signer must be provided")
            signer = LocalSigner.from_key(private_key)
        self.signer = signer
        self.rpc = rpc or LedgerRpc(endpoint, web3=web3, timeout=timeout)
        self.builder = TransactionBuilder(self.rpc, signer.address, nonce_tracker)
        self.nonce_tracker = self.builder.nonce_tracker
        self.engine = ConfirmationEngine(self.rpc, poll_config, clock=clock, sleep=sleep)
        _logger.debug("Session opened", extra={"address": signer.address, "endpoint": endpoint})

    @classmethod
    def from_config(cls, config: ClientConfig, private_key: str, **kwargs: Any) -> "EthClient":
        return cls(
            config.rpc_url,
            private_key,
            timeout=config.timeout,
            poll_config=config.poll,
            **kwargs,
        )

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None, **kwargs: Any) -> "EthClient":
        """Build a session from ETHCLIENT_RPC_URL and ETHCLIENT_PRIVATE_KEY."""
        config = ClientConfig.from_env(env_path)
        return cls.from_config(config, load_private_key(env_path), **kwargs)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    @property
    def address(self) -> str:
        return self.signer.address

    def account(self) -> str:
        """Checksummed address of the session account."""
        return self.signer.address

    @property
    def closed(self) -> bool:
        return self.rpc.closed

    def close(self) -> None:
        """Release the RPC connection. The signer stays usable via ``signer.connect``."""
        self.rpc.close()

    def __enter__(self) -> "EthClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Chain queries
    # ------------------------------------------------------------------
    def get_current_block_height(self) -> int:
        return self.rpc.block_number()

    def get_block_by_height(self, height: int) -> Any:
        return self.rpc.get_block(height)

    def get_block_by_hash(self, block_hash: str) -> Any:
        return self.rpc.get_block(block_hash)

    def get_block_header_by_height(self, height: int) -> Any:
        return self.rpc.get_header(height)

    def get_block_header_by_hash(self, block_hash: str) -> Any:
        return self.rpc.get_header(block_hash)

    def get_nonce(self) -> int:
        """Pending nonce of the session account."""
        return self.rpc.get_pending_nonce(self.address)

    def get_gas_price(self) -> int:
        return self.rpc.get_gas_price()

    def estimate_gas(self, to: Optional[str], data: bytes = b"", value: int = 0) -> int:
        return self.rpc.estimate_gas(self.address, to, data, value)

    def get_chain_id(self) -> int:
        """Get the chain ID of the connected network (never cached)."""
        return self.rpc.get_chain_id()

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------
    def get_balance(self, account: str) -> int:
        """Balance of ``account`` in wei at the latest block."""
        return self.rpc.get_balance(account)

    def get_my_balance(self) -> int:
        return self.get_balance(self.address)

    def get_eth_balance(self, account: str) -> Decimal:
        return balance_to_ether(self.get_balance(account))

    def get_my_eth_balance(self) -> Decimal:
        return self.get_eth_balance(self.address)

    # ------------------------------------------------------------------
    # Transactions and code
    # ------------------------------------------------------------------
    def get_tx_by_hash(self, tx_hash: str) -> Tuple[Any, bool]:
        """Look up a transaction.

        Returns:
            ``(transaction, is_pending)``
        """
        tx, pending = self.rpc.get_transaction(tx_hash)
        _logger.info(
            "Transaction pending" if pending else "Transaction mined",
            extra={"tx_hash": tx_hash},
        )
        return tx, pending

    def get_tx_in_block(self, block_hash: str, index: int) -> Any:
        return self.rpc.get_transaction_in_block(block_hash, index)

    def get_byte_code(self, contract_addr: str) -> str:
        """Deployed byte code as hex (no 0x prefix); empty for plain accounts."""
        return self.rpc.get_code(contract_addr)

    def get_tx_receipt(
        self,
        tx_hash: str,
        poll: Optional[PollConfig] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        """Poll until ``tx_hash`` is no longer pending, then return its receipt.

        Args:
            tx_hash: Transaction hash
            poll: Override of the session poll configuration
            cancel: Event that aborts polling when set

        Raises:
            PollCancelledError: If ``cancel`` is set while waiting
            ReceiptNotFoundError: If no receipt exists once polling ends
        """
        return self.engine.confirm(tx_hash, poll=poll, cancel=cancel)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def create_tx(
        self,
        to: Optional[str],
        data: bytes = b"",
        value: int = 0,
        nonce: Optional[int] = None,
    ) -> UnsignedTransaction:
        """Build an unsigned transaction from the account's pending nonce and network gas data."""
        return self.builder.build(to, data=data, value=value, nonce=nonce)

    def sign_tx(self, tx: UnsignedTransaction) -> SignedTransaction:
        """Sign ``tx`` for the chain the session is connected to right now."""
        return self.signer.sign(tx, self.get_chain_id())

    def send_tx(
        self,
        tx: UnsignedTransaction,
        poll: Optional[PollConfig] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        """Sign, broadcast and confirm ``tx``.

        A failed execution is reported through ``Receipt.status``, not raised.
        Errors raised after the broadcast carry the transaction hash.

        Raises:
            SigningError: If signing fails
            BroadcastError: If the node refuses the transaction
            RpcError: If a lookup fails while confirming
            PollCancelledError: If ``cancel`` is set while waiting
        """
        tx_hash = self._broadcast(tx)
        return self.engine.confirm(tx_hash, poll=poll, cancel=cancel)

    def _broadcast(self, tx: UnsignedTransaction) -> str:
        with self.nonce_tracker.lock(self.address):
            signed = self.sign_tx(tx)
            tx_hash = self.engine.broadcast(signed)
            self.builder.commit(tx)
        return tx_hash

    def _build_and_send(
        self,
        to: Optional[str],
        data: bytes,
        value: int,
        poll: Optional[PollConfig],
        cancel: Optional[threading.Event],
    ) -> Receipt:
        # Build and broadcast under one lock so no other submission takes the nonce
        with self.nonce_tracker.lock(self.address):
            tx = self.create_tx(to, data=data, value=value)
            tx_hash = self._broadcast(tx)
        return self.engine.confirm(tx_hash, poll=poll, cancel=cancel)

    def invoke_contract(
        self,
        contract_addr: str,
        method: str,
        args: Sequence[Tuple[str, Any]] = (),
        value: int = 0,
        poll: Optional[PollConfig] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        """Call ``method`` on a contract with ABI-encoded ``(type, value)`` arguments."""
        data = pack_method_data(method, *args)
        return self._build_and_send(contract_addr, data, value, poll, cancel)

    def invoke_contract_without_args(
        self,
        contract_addr: str,
        method: str,
        value: int = 0,
        poll: Optional[PollConfig] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        """Call a zero-argument contract method, e.g. ``deposit()``."""
        return self.invoke_contract(contract_addr, method, (), value=value, poll=poll, cancel=cancel)

    def deploy_contract(
        self,
        bytecode: Union[str, bytes],
        value: int = 0,
        poll: Optional[PollConfig] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        """Deploy creation ``bytecode``; the receipt carries ``contract_address``."""
        if isinstance(bytecode, str):
            hex_str = bytecode[2:] if bytecode.startswith("0x") else bytecode
            try:
                bytecode = bytes.fromhex(hex_str)
            except ValueError:
                raise ValidationError("bytecode must be hex") from None
        if not bytecode:
            raise ValidationError("bytecode must not be empty")
        return self._build_and_send(None, bytecode, value, poll, cancel)
