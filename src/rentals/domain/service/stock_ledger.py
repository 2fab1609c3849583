"""Domain service: Stock Ledger.

Append-only history of stock movements and the queries that rebuild
"where is every unit right now" from it.  Nothing here keeps a running
counter; every balance is summed from the movements on demand.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from rentals.domain.exceptions import ValidationError
from rentals.domain.model.stock_movement import Location, MovementType, StockMovement
from rentals.domain.repository.stock_movement_repository import (
    StockMovementRepository,
)

logger = logging.getLogger(__name__)

# Locations whose count starts at zero and may only hold what was moved in.
# The warehouse is shared across date windows and is guarded by the
# availability checker instead.
_TRACKED_LOCATIONS = (Location.RESERVED, Location.WITH_CUSTOMER, Location.MAINTENANCE)

_ITEM_STATUS_BY_MOVEMENT = {
    MovementType.RESERVED: "reserved",
    MovementType.PICKUP: "with_customer",
    MovementType.RETURN: "returned",
    MovementType.RELEASED: "cancelled",
}


class StockLedger:

    def __init__(self, movement_repo: StockMovementRepository) -> None:
        self._movement_repo = movement_repo

    # --- Writes ---------------------------------------------------------------

    def record(self, movements: list[StockMovement]) -> None:
        """Validate and append a batch of movements as one unit.

        Uses the same two-phase approach as every other write: first replay
        the balances of each touched product/variant with the new movements
        applied, then append.  A batch that would drive a tracked location
        negative is rejected before anything is written.
        """
        self.validate(movements)
        self.append(movements)

    def validate(self, movements: list[StockMovement]) -> None:
        """Raise ``ValidationError`` if appending would break a balance."""
        by_key: dict[tuple[str, str | None], list[StockMovement]] = defaultdict(list)
        for movement in movements:
            by_key[movement.stock_key].append(movement)

        for (product_id, variant_id), new_movements in by_key.items():
            history = self._movement_repo.list_for_product(product_id, variant_id)
            counts = self._location_counts(history)
            for movement in new_movements:
                counts[movement.from_location] -= movement.quantity
                counts[movement.to_location] += movement.quantity
                for location in _TRACKED_LOCATIONS:
                    if counts[location] < 0:
                        raise ValidationError(
                            f"Movement {movement.movement_type.value} of "
                            f"{movement.quantity} would leave {location.value} "
                            f"negative for product '{product_id}'"
                        )

    def append(self, movements: list[StockMovement]) -> None:
        """Append already-validated movements."""
        if not movements:
            return
        self._movement_repo.append_all(movements)
        for movement in movements:
            logger.info(
                "Ledger %s: product=%s variant=%s order=%s qty=%d %s -> %s",
                movement.movement_type.value,
                movement.product_id,
                movement.variant_id,
                movement.order_id,
                movement.quantity,
                movement.from_location.value,
                movement.to_location.value,
            )

    # --- Queries --------------------------------------------------------------

    def movements_for_order(self, order_id: int) -> list[StockMovement]:
        return self._movement_repo.list_for_order(order_id)

    def movements_for_product(
        self, product_id: str, variant_id: str | None = None
    ) -> list[StockMovement]:
        return self._movement_repo.list_for_product(product_id, variant_id)

    def balance(
        self,
        product_id: str,
        variant_id: str | None,
        location: Location,
        opening_warehouse: int = 0,
    ) -> int:
        """Units of one product/variant currently at ``location``.

        The warehouse opens at ``opening_warehouse`` (the owned quantity);
        every other location opens at zero.
        """
        counts = self._location_counts(
            self._movement_repo.list_for_product(product_id, variant_id)
        )
        if location == Location.WAREHOUSE:
            return opening_warehouse + counts[location]
        return counts[location]

    def net_delta_for_order(self, order_id: int) -> int:
        return sum(m.delta for m in self._movement_repo.list_for_order(order_id))

    def item_status(self, order_id: int, product_id: str, variant_id: str | None = None) -> str:
        """Physical status of one order line, read from its latest movement."""
        movements = [
            m for m in self._movement_repo.list_for_order(order_id)
            if m.product_id == product_id and m.variant_id == variant_id
        ]
        if not movements:
            return "pending"
        return _ITEM_STATUS_BY_MOVEMENT.get(movements[-1].movement_type, "unknown")

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _location_counts(movements: list[StockMovement]) -> dict[Location, int]:
        counts: dict[Location, int] = defaultdict(int)
        for movement in movements:
            counts[movement.from_location] -= movement.quantity
            counts[movement.to_location] += movement.quantity
        return counts
