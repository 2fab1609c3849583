"""Product aggregate.

Products live independently of orders and are owned by the catalog.  The
reservation engine only reads them: ``quantity_on_hand`` is the ceiling
for allocation, never a counter the engine mutates.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rentals.domain.exceptions import NotFoundError, ValidationError
from rentals.domain.model.value_objects import Money


@dataclass(frozen=True)
class Variant:
    """A rentable variant of a product (size, colour, ...) with its own stock."""

    id: str
    name: str
    quantity_on_hand: int


@dataclass
class Product:
    """A rentable product in the catalog.

    ``daily_rate`` is the per-unit, per-day price supplied by the pricing
    service.  It is copied onto order lines when a booking is made, so
    later catalog changes never touch existing orders.
    """

    id: str
    name: str
    quantity_on_hand: int
    daily_rate: Money
    is_rentable: bool = True
    variants: list[Variant] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.quantity_on_hand < 0:
            raise ValidationError("Quantity on hand cannot be negative")

    def quantity_for(self, variant_id: str | None) -> int:
        """Owned quantity for a variant, or for the base product."""
        if variant_id is None:
            return self.quantity_on_hand
        return self.variant(variant_id).quantity_on_hand

    def variant(self, variant_id: str) -> Variant:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        raise NotFoundError(
            f"Variant '{variant_id}' not found for product '{self.name}'"
        )

    def ensure_rentable(self) -> None:
        if not self.is_rentable:
            raise ValidationError(f"Product '{self.name}' is not available for rent")
