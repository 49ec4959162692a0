"""
Per-address nonce serialization.

The node's "pending" nonce only moves once a transaction has been
broadcast, and a load-balanced endpoint may briefly answer from a node
that has not seen the latest submission. NonceTracker hands out
``max(remote_pending, last_broadcast + 1)`` and only records a nonce
once its transaction was accepted, so a build that is never sent leaves
no trace. Callers that build and broadcast hold :meth:`NonceTracker.lock`
across both steps so concurrent submissions never share a nonce.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator

from .utils.logging import get_logger

__all__ = ["NonceTracker"]

_logger = get_logger(__name__)


class NonceTracker:
    """
    Tracks the last broadcast nonce per address under a per-address lock.

    Example:
        ```python
        tracker = NonceTracker()
        with tracker.lock(address):
            nonce = tracker.next_nonce(address, lambda: rpc.get_pending_nonce(address))
            ...  # sign and broadcast
            tracker.commit(address, nonce)
        ```
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}
        self._last: Dict[str, int] = {}

    @staticmethod
    def _key(address: str) -> str:
        return address.lower()

    def _lock_for(self, address: str) -> threading.RLock:
        key = self._key(address)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    @contextmanager
    def lock(self, address: str) -> Iterator[None]:
        """Hold the build-and-broadcast lock for ``address``."""
        lock = self._lock_for(address)
        with lock:
            yield

    def next_nonce(self, address: str, fetch_pending: Callable[[], int]) -> int:
        """
        Nonce for the next transaction from ``address``.

        Does not change tracked state; call :meth:`commit` once the
        transaction has been accepted by the node.

        Args:
            address: Sender address
            fetch_pending: Returns the node's pending nonce for the address

        Returns:
            Nonce to use for the next transaction
        """
        with self._lock_for(address):
            remote = fetch_pending()
            last = self._last.get(self._key(address))
            if last is None or remote > last:
                return remote
            _logger.debug(
                "Pending nonce lags last broadcast",
                extra={"address": address, "remote": remote, "nonce": last + 1},
            )
            return last + 1

    def commit(self, address: str, nonce: int) -> None:
        """Record that a transaction with ``nonce`` was accepted by the node."""
        key = self._key(address)
        with self._lock_for(address):
            if nonce > self._last.get(key, -1):
                self._last[key] = nonce
                _logger.debug("Committed nonce", extra={"address": address, "nonce": nonce})

    def peek(self, address: str) -> int:
        """Last broadcast nonce for ``address``, or -1 if none."""
        return self._last.get(self._key(address), -1)
