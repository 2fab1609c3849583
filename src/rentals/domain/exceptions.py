"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.

Only ``ConcurrencyConflictError`` is meant to be retried by callers, and only
by re-running the whole check-then-commit operation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rentals.domain.model.availability import AvailabilityResult
    from rentals.domain.model.order_status import OrderStatus


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class InvalidRangeError(ValidationError):
    """A rental window does not end strictly after it starts."""


class NotFoundError(DomainException):
    """A requested product, variant or order does not exist."""


class UnavailableError(DomainException):
    """Not enough free stock for one or more requested items."""

    def __init__(
        self,
        message: str,
        unavailable_items: list[AvailabilityResult] | None = None,
    ) -> None:
        super().__init__(message)
        self.unavailable_items = list(unavailable_items or [])

    @property
    def conflicts(self) -> list:
        return [c for item in self.unavailable_items for c in item.conflicts]


class IllegalTransitionError(DomainException):
    """The order state machine does not allow this transition."""

    def __init__(self, from_status: OrderStatus, to_status: OrderStatus) -> None:
        super().__init__(
            f"Illegal order transition {from_status.value} -> {to_status.value}"
        )
        self.from_status = from_status
        self.to_status = to_status


class InvalidStateError(DomainException):
    """An operation was attempted on an order in the wrong phase."""


class ConcurrencyConflictError(DomainException):
    """Lock or version contention detected at commit time."""
