"""Broadcast and confirmation of signed transactions.

Lifecycle of a submission::

    SUBMITTED -> PENDING (polled) -> CONFIRMED | FAILED-STATUS | TIMED-OUT

Submission success means the node accepted the transaction; the receipt
status says whether execution changed state as intended. Callers must
check both. Running out of poll attempts (or hitting the deadline) is
not an error: the receipt is fetched once anyway and a missing receipt
raises ReceiptNotFoundError.
"""
from __future__ import annotations

import threading
import time
from typing import Any, Optional

from web3 import Web3

from .errors import BroadcastError, EthClientError, ReceiptNotFoundError
from .models import Receipt, ReceiptStatus, SignedTransaction
from .rpc import LedgerRpc
from .utils.logging import get_logger
from .utils.polling import Clock, PollConfig, Sleeper, Waiter

__all__ = ["ConfirmationEngine"]

_logger = get_logger(__name__)


def _hex(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value if value.startswith("0x") else f"0x{value}"
    return Web3.to_hex(value)


def _receipt_from_raw(raw: Any, tx_hash: str) -> Receipt:
    tx_hash = _hex(raw.get("transactionHash")) or tx_hash
    return Receipt(
        tx_hash=tx_hash,
        status=ReceiptStatus.from_raw(raw.get("status"), tx_hash=tx_hash),
        block_number=raw.get("blockNumber"),
        block_hash=_hex(raw.get("blockHash")),
        transaction_index=raw.get("transactionIndex"),
        gas_used=raw.get("gasUsed"),
        contract_address=raw.get("contractAddress"),
        raw=dict(raw),
    )


class ConfirmationEngine:
    """Submits signed transactions and resolves them to receipts."""

    def __init__(
        self,
        rpc: LedgerRpc,
        poll_config: Optional[PollConfig] = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep,
    ):
        self.rpc = rpc
        self.poll_config = poll_config or PollConfig()
        self._clock = clock
        self._sleep = sleep

    def broadcast(self, signed: SignedTransaction) -> str:
        """Submit a signed transaction and return its hash.

        Raises:
            BroadcastError: If the node refuses the transaction
        """
        _logger.info(
            "Broadcasting signed transaction",
            extra={"tx_hash": signed.tx_hash, "nonce": signed.nonce},
        )
        try:
            self.rpc.send_raw_transaction(signed.raw)
        except BroadcastError as e:
            e.tx_hash = signed.tx_hash
            e.details.setdefault("nonce", signed.nonce)
            raise
        return signed.tx_hash

    def wait_until_mined(
        self,
        tx_hash: str,
        poll: Optional[PollConfig] = None,
        cancel: Optional[threading.Event] = None,
    ) -> int:
        """Poll until the transaction leaves the pending pool or polling ends.

        Returns:
            Number of pending checks performed

        Raises:
            PollCancelledError: If ``cancel`` fires
            RpcError: If a pending check fails
        """
        config = poll or self.poll_config
        waiter = Waiter(config, cancel=cancel, clock=self._clock, sleep=self._sleep)
        checks = 0
        for attempt in range(config.max_attempts):
            waiter.check_cancelled()
            _, pending = self.rpc.get_transaction(tx_hash)
            checks += 1
            if not pending:
                _logger.debug("Transaction mined", extra={"tx_hash": tx_hash, "checks": checks})
                return checks
            if attempt == config.max_attempts - 1:
                _logger.warning(
                    "Transaction still pending after poll limit, fetching receipt anyway",
                    extra={"tx_hash": tx_hash, "checks": checks},
                )
                break
            if not waiter.wait(attempt):
                _logger.warning(
                    "Poll deadline reached, fetching receipt anyway",
                    extra={"tx_hash": tx_hash, "checks": checks},
                )
                break
        return checks

    def fetch_receipt(self, tx_hash: str) -> Receipt:
        """Fetch and interpret the receipt of a transaction.

        Raises:
            ReceiptNotFoundError: If the node has no receipt
            UnknownReceiptStatusError: If the status is neither 0 nor 1
        """
        raw = self.rpc.get_receipt(tx_hash)
        if raw is None:
            raise ReceiptNotFoundError(
                f"No receipt for transaction {tx_hash}",
                tx_hash=tx_hash,
                details={"operation": "get_receipt"},
            )
        return _receipt_from_raw(raw, tx_hash)

    def confirm(
        self,
        tx_hash: str,
        poll: Optional[PollConfig] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        """Wait for the transaction to leave the pending pool, then fetch its receipt.

        Any EthClientError raised here carries ``tx_hash``.
        """
        try:
            self.wait_until_mined(tx_hash, poll=poll, cancel=cancel)
            receipt = self.fetch_receipt(tx_hash)
        except EthClientError as e:
            if e.tx_hash is None:
                e.tx_hash = tx_hash
            raise
        if receipt.succeeded:
            _logger.info("Transaction succeeded", extra={"tx_hash": receipt.tx_hash})
        else:
            _logger.warning("Transaction execution failed", extra={"tx_hash": receipt.tx_hash})
        return receipt

    def submit(
        self,
        signed: SignedTransaction,
        poll: Optional[PollConfig] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        """Broadcast ``signed`` and return its final receipt."""
        tx_hash = self.broadcast(signed)
        return self.confirm(tx_hash, poll=poll, cancel=cancel)
