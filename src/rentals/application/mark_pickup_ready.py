"""Application service: Mark Pickup Ready use case."""

from __future__ import annotations

from rentals.application.retry import RetryPolicy
from rentals.domain.service.reservation_coordinator import ReservationCoordinator


class MarkPickupReadyHandler:

    def __init__(
        self,
        coordinator: ReservationCoordinator,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._retry = retry or RetryPolicy()

    def handle(self, order_id: int) -> None:
        self._retry.run(
            lambda: self._coordinator.mark_pickup_ready(order_id),
            f"mark order #{order_id} ready for pickup",
        )
