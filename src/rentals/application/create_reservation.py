"""Application service: Create Reservation use case.

Places a soft hold for a priced draft.  The hold is retried as a whole
when another writer gets to the same stock first.
"""

from __future__ import annotations

from rentals.application.retry import RetryPolicy
from rentals.domain.model.reservation import ReservationDraft, ReservationHold
from rentals.domain.service.reservation_coordinator import ReservationCoordinator


class CreateReservationHandler:

    def __init__(
        self,
        coordinator: ReservationCoordinator,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._retry = retry or RetryPolicy()

    def handle(self, draft: ReservationDraft) -> ReservationHold:
        return self._retry.run(
            lambda: self._coordinator.create_reservation(draft),
            f"create reservation for customer {draft.customer_id}",
        )
