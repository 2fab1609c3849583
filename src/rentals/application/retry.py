"""Bounded retry for check-then-commit operations.

Only ``ConcurrencyConflictError`` is retried, and always by re-running the
whole operation so availability is re-checked before any new write.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from rentals.domain.exceptions import ConcurrencyConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_seconds: float = 0.05
    max_backoff_seconds: float = 1.0
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def run(self, operation: Callable[[], T], description: str = "operation") -> T:
        """Run ``operation``, retrying on contention with exponential backoff."""
        attempt = 1
        while True:
            try:
                return operation()
            except ConcurrencyConflictError:
                if attempt >= self.max_attempts:
                    logger.error(
                        "%s still conflicting after %d attempts", description, attempt
                    )
                    raise
                delay = min(
                    self.backoff_seconds * (2 ** (attempt - 1)), self.max_backoff_seconds
                )
                logger.warning(
                    "%s hit a concurrency conflict (attempt %d/%d), retrying in %.2fs",
                    description,
                    attempt,
                    self.max_attempts,
                    delay,
                )
                self.sleep(delay)
                attempt += 1
