"""Unit tests for the retry policy."""

import pytest

from rentals.application.retry import RetryPolicy
from rentals.domain.exceptions import ConcurrencyConflictError, UnavailableError


class _Flaky:

    def __init__(self, failures: int, error: Exception | None = None) -> None:
        self.failures = failures
        self.calls = 0
        self.error = error or ConcurrencyConflictError("busy")

    def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "done"


class TestRetryPolicy:

    def test_success_first_time(self):
        delays = []
        assert RetryPolicy(sleep=delays.append).run(_Flaky(0)) == "done"
        assert delays == []

    def test_retries_conflicts_with_backoff(self):
        delays = []
        operation = _Flaky(2)
        policy = RetryPolicy(max_attempts=3, backoff_seconds=0.1, sleep=delays.append)

        assert policy.run(operation) == "done"
        assert operation.calls == 3
        assert delays == [0.1, 0.2]

    def test_backoff_is_capped(self):
        delays = []
        policy = RetryPolicy(
            max_attempts=4, backoff_seconds=1.0, max_backoff_seconds=1.5, sleep=delays.append
        )
        policy.run(_Flaky(3))
        assert delays == [1.0, 1.5, 1.5]

    def test_gives_up_after_max_attempts(self):
        operation = _Flaky(5)
        policy = RetryPolicy(max_attempts=3, sleep=lambda _: None)

        with pytest.raises(ConcurrencyConflictError):
            policy.run(operation)
        assert operation.calls == 3

    def test_other_errors_are_not_retried(self):
        operation = _Flaky(1, UnavailableError("sold out"))
        with pytest.raises(UnavailableError):
            RetryPolicy(sleep=lambda _: None).run(operation)
        assert operation.calls == 1

    def test_at_least_one_attempt(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)
