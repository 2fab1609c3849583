"""Application service: Process Pickup use case."""

from __future__ import annotations

from rentals.application.notifier import PICKUP_EVENT, Notifier, notify_safely
from rentals.application.retry import RetryPolicy
from rentals.domain.model.reservation import PickupInfo
from rentals.domain.model.stock_movement import StockMovement
from rentals.domain.service.reservation_coordinator import ReservationCoordinator


class ProcessPickupHandler:

    def __init__(
        self,
        coordinator: ReservationCoordinator,
        notifier: Notifier | None = None,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._notifier = notifier
        self._retry = retry or RetryPolicy()

    def handle(self, order_id: int, info: PickupInfo) -> list[StockMovement]:
        movements = self._retry.run(
            lambda: self._coordinator.process_pickup(order_id, info),
            f"pickup of order #{order_id}",
        )
        if self._notifier is not None:
            notify_safely(
                self._notifier,
                PICKUP_EVENT,
                order_id,
                {"picked_up_by": info.picked_up_by, "items": len(movements)},
            )
        return movements
