"""Application service: Extend Rental use case."""

from __future__ import annotations

from datetime import datetime

from rentals.application.dto import OrderDTO, order_to_dto
from rentals.application.retry import RetryPolicy
from rentals.domain.service.reservation_coordinator import ReservationCoordinator


class ExtendRentalHandler:

    def __init__(
        self,
        coordinator: ReservationCoordinator,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._retry = retry or RetryPolicy()

    def handle(self, order_id: int, new_end: datetime) -> OrderDTO:
        order = self._retry.run(
            lambda: self._coordinator.extend_rental(order_id, new_end),
            f"extend order #{order_id}",
        )
        return order_to_dto(order)
