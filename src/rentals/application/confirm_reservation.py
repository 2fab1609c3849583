"""Application service: Confirm Reservation use case."""

from __future__ import annotations

from rentals.application.retry import RetryPolicy
from rentals.domain.model.stock_movement import StockMovement
from rentals.domain.service.reservation_coordinator import ReservationCoordinator


class ConfirmReservationHandler:

    def __init__(
        self,
        coordinator: ReservationCoordinator,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._retry = retry or RetryPolicy()

    def handle(self, order_id: int) -> list[StockMovement]:
        """Hard-commit a draft: re-check availability and reserve its stock."""
        return self._retry.run(
            lambda: self._coordinator.confirm_reservation(order_id),
            f"confirm order #{order_id}",
        )
