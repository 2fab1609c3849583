"""Application service: Show Order use case (query).

Order status comes from the order; per-item status and the movement
history come from the stock ledger.
"""

from __future__ import annotations

from rentals.application.dto import OrderDTO, order_to_dto
from rentals.domain.exceptions import NotFoundError
from rentals.domain.repository.order_repository import OrderRepository
from rentals.domain.service.stock_ledger import StockLedger


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository, ledger: StockLedger) -> None:
        self._order_repo = order_repo
        self._ledger = ledger

    def handle(self, order_id: int) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order #{order_id} not found")

        statuses = [
            self._ledger.item_status(order_id, item.product_id, item.variant_id)
            for item in order.items
        ]
        return order_to_dto(
            order,
            item_statuses=statuses,
            movements=self._ledger.movements_for_order(order_id),
        )
