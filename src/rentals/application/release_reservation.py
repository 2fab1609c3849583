"""Application service: Release Reservation use case.

Cancels the order through the coordinator, then tells the customer.
The notification is best-effort and never undoes the cancellation.
"""

from __future__ import annotations

from rentals.application.notifier import CANCEL_EVENT, Notifier, notify_safely
from rentals.application.retry import RetryPolicy
from rentals.domain.model.stock_movement import StockMovement
from rentals.domain.service.reservation_coordinator import ReservationCoordinator


class ReleaseReservationHandler:

    def __init__(
        self,
        coordinator: ReservationCoordinator,
        notifier: Notifier | None = None,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._notifier = notifier
        self._retry = retry or RetryPolicy()

    def handle(self, order_id: int, reason: str) -> list[StockMovement]:
        movements = self._retry.run(
            lambda: self._coordinator.release_reservation(order_id, reason),
            f"release order #{order_id}",
        )
        if self._notifier is not None:
            notify_safely(self._notifier, CANCEL_EVENT, order_id, {"reason": reason})
        return movements
