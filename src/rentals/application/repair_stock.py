"""Application service: return repaired units from maintenance to the warehouse."""

from __future__ import annotations

from rentals.application.retry import RetryPolicy
from rentals.domain.model.stock_movement import StockMovement
from rentals.domain.service.reservation_coordinator import ReservationCoordinator


class RepairStockHandler:

    def __init__(
        self,
        coordinator: ReservationCoordinator,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._retry = retry or RetryPolicy()

    def handle(
        self,
        product_id: str,
        quantity: int,
        variant_id: str | None = None,
        note: str = "",
    ) -> StockMovement:
        return self._retry.run(
            lambda: self._coordinator.release_from_maintenance(
                product_id, quantity, variant_id=variant_id, note=note
            ),
            f"repair of {quantity} x {product_id}",
        )
