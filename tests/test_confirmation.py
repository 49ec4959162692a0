"""
Tests for broadcast and confirmation polling.

Tests cover:
- Exact number of pending checks before the receipt lookup
- Poll bound and deadline exhaustion (receipt still fetched)
- Cancellation
- Receipt status mapping
- Broadcast rejection
"""

import threading
from typing import List

import pytest

from ethclient_sdk import (
    BroadcastError,
    ConfirmationEngine,
    LocalSigner,
    PollCancelledError,
    PollConfig,
    ReceiptNotFoundError,
    ReceiptStatus,
    UnknownReceiptStatusError,
    UnsignedTransaction,
)

from .conftest import CHAIN_ID, CONTRACT_ADDRESS, TEST_PRIVATE_KEY, FakeLedger

TX_HASH = "0x" + "cd" * 32


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _engine(ledger: FakeLedger, clock: FakeClock, **poll) -> ConfirmationEngine:
    return ConfirmationEngine(ledger, PollConfig(**poll), clock=clock, sleep=clock.sleep)


def _signed():
    tx = UnsignedTransaction(nonce=0, to=CONTRACT_ADDRESS, value=0, gas=45_000, gas_price=10**9)
    return LocalSigner.from_key(TEST_PRIVATE_KEY).sign(tx, CHAIN_ID)


# =============================================================================
# Polling
# =============================================================================


class TestPolling:
    @pytest.mark.parametrize("pending_checks", [0, 1, 5, 30])
    def test_k_pending_checks_then_receipt(self, pending_checks: int) -> None:
        ledger = FakeLedger(pending_checks=pending_checks)
        clock = FakeClock()

        receipt = _engine(ledger, clock).confirm(TX_HASH)

        names = ledger.call_names()
        assert names == ["get_transaction"] * (pending_checks + 1) + ["get_receipt"]
        assert clock.sleeps == [1.0] * pending_checks
        assert receipt.tx_hash == TX_HASH

    def test_bound_exhausted_fetches_receipt_anyway(self) -> None:
        ledger = FakeLedger(pending_checks=100)
        clock = FakeClock()

        receipt = _engine(ledger, clock).confirm(TX_HASH)

        assert ledger.call_names().count("get_transaction") == 31
        assert ledger.call_names()[-1] == "get_receipt"
        assert len(clock.sleeps) == 30
        assert receipt.succeeded

    def test_custom_bound(self) -> None:
        ledger = FakeLedger(pending_checks=100)
        checks = _engine(ledger, FakeClock(), max_attempts=4).wait_until_mined(TX_HASH)
        assert checks == 4

    def test_backoff_delays(self) -> None:
        ledger = FakeLedger(pending_checks=4)
        clock = FakeClock()

        _engine(ledger, clock, interval=0.5, backoff=2.0, max_interval=3.0).confirm(TX_HASH)

        assert clock.sleeps == [0.5, 1.0, 2.0, 3.0]

    def test_deadline_stops_polling(self) -> None:
        ledger = FakeLedger(pending_checks=100)
        clock = FakeClock()

        receipt = _engine(ledger, clock, interval=1.0, timeout=2.5).confirm(TX_HASH)

        assert clock.sleeps == [1.0, 1.0, 0.5]
        assert ledger.call_names().count("get_transaction") == 4
        assert receipt.status is ReceiptStatus.SUCCEEDED

    def test_cancel_before_first_check(self) -> None:
        ledger = FakeLedger(pending_checks=3)
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(PollCancelledError) as exc_info:
            _engine(ledger, FakeClock()).confirm(TX_HASH, cancel=cancel)

        assert exc_info.value.tx_hash == TX_HASH
        assert "get_receipt" not in ledger.call_names()

    def test_cancel_while_waiting(self) -> None:
        ledger = FakeLedger(pending_checks=100)
        cancel = threading.Event()
        engine = _engine(ledger, FakeClock(), interval=0.01)
        timer = threading.Timer(0.05, cancel.set)
        timer.start()

        try:
            with pytest.raises(PollCancelledError):
                engine.confirm(TX_HASH, cancel=cancel)
        finally:
            timer.cancel()

        assert "get_receipt" not in ledger.call_names()

    def test_missing_receipt_is_error(self) -> None:
        ledger = FakeLedger()
        ledger.missing_receipt = True
        with pytest.raises(ReceiptNotFoundError) as exc_info:
            _engine(ledger, FakeClock()).confirm(TX_HASH)
        assert exc_info.value.tx_hash == TX_HASH


# =============================================================================
# Receipt status
# =============================================================================


class TestReceiptStatus:
    @pytest.mark.parametrize(
        "raw,expected",
        [(1, ReceiptStatus.SUCCEEDED), (0, ReceiptStatus.FAILED), ("0x1", ReceiptStatus.SUCCEEDED), ("0x0", ReceiptStatus.FAILED)],
    )
    def test_mapping(self, raw, expected) -> None:
        assert ReceiptStatus.from_raw(raw) is expected

    @pytest.mark.parametrize("raw", [2, -1, None, "0x2", "ok", True])
    def test_unknown_status_surfaces(self, raw) -> None:
        with pytest.raises(UnknownReceiptStatusError):
            ReceiptStatus.from_raw(raw)

    def test_failed_execution_is_reported_not_raised(self) -> None:
        ledger = FakeLedger(receipt_status=0)
        receipt = _engine(ledger, FakeClock()).confirm(TX_HASH)

        assert receipt.status is ReceiptStatus.FAILED
        assert not receipt.succeeded
        assert receipt.block_number == 101

    def test_unknown_status_from_node(self) -> None:
        ledger = FakeLedger(receipt_status=7)
        with pytest.raises(UnknownReceiptStatusError) as exc_info:
            _engine(ledger, FakeClock()).confirm(TX_HASH)
        assert exc_info.value.tx_hash == TX_HASH


# =============================================================================
# Broadcast
# =============================================================================


class TestBroadcast:
    def test_submit_returns_receipt_for_signed_hash(self) -> None:
        ledger = FakeLedger()
        signed = _signed()

        receipt = _engine(ledger, FakeClock()).submit(signed)

        assert ledger.sent == [signed.raw]
        assert receipt.tx_hash == signed.tx_hash

    def test_rejection_carries_hash(self) -> None:
        ledger = FakeLedger()
        ledger.reject_broadcast = "nonce too low"
        signed = _signed()

        with pytest.raises(BroadcastError) as exc_info:
            _engine(ledger, FakeClock()).submit(signed)

        assert exc_info.value.tx_hash == signed.tx_hash
        assert "get_transaction" not in ledger.call_names()
