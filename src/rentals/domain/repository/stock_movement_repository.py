"""Abstract repository for the append-only stock ledger."""

from __future__ import annotations

from abc import ABC, abstractmethod

from rentals.domain.model.stock_movement import StockMovement


class StockMovementRepository(ABC):

    @abstractmethod
    def append_all(self, movements: list[StockMovement]) -> None:
        """Append movements in one write; either all are stored or none."""

    @abstractmethod
    def list_for_order(self, order_id: int) -> list[StockMovement]:
        """Return an order's movements, oldest first."""

    @abstractmethod
    def list_for_product(
        self, product_id: str, variant_id: str | None
    ) -> list[StockMovement]:
        """Return every movement of one product/variant, oldest first."""
