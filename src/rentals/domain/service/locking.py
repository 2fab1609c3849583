"""Per-key serialization for the check-then-commit critical section.

Every write that can consume stock takes the locks of all the
product/variant keys it touches (plus the order itself) before it
re-checks availability and writes to the ledger.  Keys are always acquired
in sorted order so two operations over the same keys cannot deadlock.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from rentals.domain.exceptions import ConcurrencyConflictError

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT_SECONDS = 5.0


def stock_lock_key(product_id: str, variant_id: str | None) -> str:
    return f"stock:{product_id}:{variant_id or '-'}"


def order_lock_key(order_id: int) -> str:
    return f"order:{order_id}"


class LockRegistry:
    """Lazily created ``threading.Lock`` per key."""

    def __init__(self, timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS) -> None:
        self._timeout = timeout_seconds
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, keys: Iterable[str]) -> Iterator[None]:
        """Hold every lock in ``keys`` for the duration of the block.

        Raises ``ConcurrencyConflictError`` if any lock cannot be taken
        within the timeout; locks already taken are released first.
        """
        acquired: list[threading.Lock] = []
        try:
            for key in sorted(set(keys)):
                lock = self._lock_for(key)
                if not lock.acquire(timeout=self._timeout):
                    logger.warning("Timed out waiting for lock %s", key)
                    raise ConcurrencyConflictError(
                        f"Could not acquire lock for {key} within {self._timeout}s"
                    )
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
