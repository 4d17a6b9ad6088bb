"""
Per-product mutual exclusion for ledger writes and alert evaluation.
"""
import threading
from contextlib import contextmanager
from typing import Dict, Tuple

from stockledger.core.exceptions import ConflictException


class ProductLockRegistry:
    """
    Hands out one lock per (scope, product_id). Different products never share
    a lock, so they never contend. Waits are bounded by ``timeout`` seconds.
    """

    def __init__(self, timeout: float = 5.0):
        self._timeout = timeout
        self._guard = threading.Lock()
        self._locks: Dict[Tuple[str, int], threading.Lock] = {}

    def _lock_for(self, scope: str, product_id: int) -> threading.Lock:
        key = (scope, product_id)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, product_id: int, scope: str = "stock"):
        lock = self._lock_for(scope, product_id)
        if not lock.acquire(timeout=self._timeout):
            raise ConflictException(
                f"Timed out waiting for the {scope} lock of product {product_id}.",
                {"product_id": product_id, "scope": scope, "timeout_seconds": self._timeout},
            )
        try:
            yield
        finally:
            lock.release()
