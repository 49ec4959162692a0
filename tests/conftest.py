"""
Shared fixtures: an in-memory ledger standing in for the RPC node.
"""

import threading
import time
from typing import Any, Dict, List, Optional, Tuple

import pytest
from eth_utils import keccak
from web3 import Web3

from ethclient_sdk import EthClient, PollConfig
from ethclient_sdk.errors import BroadcastError, ReceiptNotFoundError, RpcError, SessionClosedError

# =============================================================================
# Test Constants
# =============================================================================

# Well-known development key (DO NOT USE IN PRODUCTION)
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

CONTRACT_ADDRESS = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
OTHER_ADDRESS = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"
BLOCK_HASH = "0x" + "ab" * 32
CHAIN_ID = 1337
GAS_PRICE = 2_000_000_000
GAS_ESTIMATE = 45_000


class FakeLedger:
    """
    Scriptable stand-in for LedgerRpc.

    The pending nonce only advances when a transaction is accepted, the
    way a node's pending pool does. ``pending_checks`` sets how many
    lookups report a submitted transaction as pending. With
    ``pending_nonce_frozen`` the pending nonce ignores submissions, like a
    node behind a load balancer that has not seen them yet.
    """

    def __init__(
        self,
        pending_nonce: int = 0,
        pending_checks: int = 0,
        receipt_status: Any = 1,
        chain_id: int = CHAIN_ID,
        balances: Optional[Dict[str, int]] = None,
    ):
        self.base_nonce = pending_nonce
        self.pending_checks = pending_checks
        self.receipt_status = receipt_status
        self.chain_id = chain_id
        self.balances = {k.lower(): v for k, v in (balances or {}).items()}
        self.calls: List[Tuple[str, Any]] = []
        self.sent: List[bytes] = []
        self.tx_checks: Dict[str, int] = {}
        self.reject_broadcast: Optional[str] = None
        self.missing_receipt = False
        self.fail: Dict[str, Exception] = {}
        self.nonce_delay = 0.0
        self.pending_nonce_frozen = False
        self.closed = False
        self._lock = threading.Lock()

    def _record(self, name: str, *args: Any) -> None:
        if self.closed:
            raise SessionClosedError(f"{name} called on a closed connection")
        with self._lock:
            self.calls.append((name, args))
        if name in self.fail:
            raise self.fail[name]

    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def close(self) -> None:
        self.closed = True

    # Chain queries
    def block_number(self) -> int:
        self._record("block_number")
        return 100

    def get_block(self, block, full_transactions: bool = True) -> Dict[str, Any]:
        self._record("get_block", block, full_transactions)
        number = block if isinstance(block, int) else 100
        return {"number": number, "hash": BLOCK_HASH, "transactions": [] if full_transactions else None}

    def get_header(self, block) -> Dict[str, Any]:
        return self.get_block(block, full_transactions=False)

    def get_chain_id(self) -> int:
        self._record("get_chain_id")
        return self.chain_id

    def get_gas_price(self) -> int:
        self._record("get_gas_price")
        return GAS_PRICE

    # Account queries
    def get_pending_nonce(self, address: str) -> int:
        self._record("get_pending_nonce", address)
        if self.nonce_delay:
            time.sleep(self.nonce_delay)
        if self.pending_nonce_frozen:
            return self.base_nonce
        return self.base_nonce + len(self.sent)

    def get_balance(self, address: str) -> int:
        self._record("get_balance", address)
        return self.balances.get(address.lower(), 0)

    def get_code(self, address: str) -> str:
        self._record("get_code", address)
        return "6080604052"

    def estimate_gas(self, sender: str, to: Optional[str], data: bytes, value: int) -> int:
        self._record("estimate_gas", sender, to, data, value)
        return GAS_ESTIMATE

    # Transactions
    def send_raw_transaction(self, raw: bytes) -> str:
        self._record("send_raw_transaction", raw)
        if self.reject_broadcast:
            raise BroadcastError(f"send_raw_transaction failed: {self.reject_broadcast}")
        self.sent.append(raw)
        return Web3.to_hex(keccak(raw))

    def get_transaction(self, tx_hash: str) -> Tuple[Dict[str, Any], bool]:
        self._record("get_transaction", tx_hash)
        count = self.tx_checks.get(tx_hash, 0) + 1
        self.tx_checks[tx_hash] = count
        pending = count <= self.pending_checks
        return {"hash": tx_hash, "blockNumber": None if pending else 101}, pending

    def get_transaction_in_block(self, block_hash: str, index: int) -> Dict[str, Any]:
        self._record("get_transaction_in_block", block_hash, index)
        return {"blockHash": block_hash, "transactionIndex": index}

    def get_receipt(self, tx_hash: str) -> Dict[str, Any]:
        self._record("get_receipt", tx_hash)
        if self.missing_receipt:
            raise ReceiptNotFoundError(f"get_receipt failed: no receipt for {tx_hash}")
        return {
            "transactionHash": tx_hash,
            "status": self.receipt_status,
            "blockNumber": 101,
            "blockHash": BLOCK_HASH,
            "transactionIndex": 0,
            "gasUsed": 43_210,
            "contractAddress": None,
        }


@pytest.fixture()
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture()
def sleeps() -> List[float]:
    return []


@pytest.fixture()
def client(ledger, sleeps) -> EthClient:
    return EthClient(
        private_key=TEST_PRIVATE_KEY,
        rpc=ledger,
        poll_config=PollConfig(max_attempts=31, interval=1.0),
        sleep=sleeps.append,
    )


@pytest.fixture()
def rpc_failure() -> RpcError:
    return RpcError("node unavailable", details={"operation": "test"})
