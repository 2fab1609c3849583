"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rentals.domain.model.order import Order
from rentals.domain.model.stock_movement import StockMovement

_TIME_FORMAT = "%Y-%m-%d %H:%M UTC"


@dataclass(frozen=True)
class OrderLineItemDTO:
    """Output: a single line item as displayed to the user."""

    product_id: str
    product_name: str
    variant_id: str | None
    quantity: int
    start: str
    end: str
    unit_price: str  # formatted, e.g. "$15.00"
    line_total: str
    status: str = "pending"  # physical status read from the ledger
    condition: str | None = None
    late_days: int = 0


@dataclass(frozen=True)
class StockMovementDTO:
    movement_type: str
    product_id: str
    variant_id: str | None
    quantity: int
    delta: int
    from_location: str
    to_location: str
    occurred_at: str
    note: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    customer_id: str
    vendor_id: str
    status: str
    items: list[OrderLineItemDTO]
    subtotal: str
    late_fee: str
    damage_fee: str
    total: str
    created_at: str
    hold_expires_at: str | None = None
    cancellation_reason: str | None = None
    movements: list[StockMovementDTO] = field(default_factory=list)


def movement_to_dto(movement: StockMovement) -> StockMovementDTO:
    return StockMovementDTO(
        movement_type=movement.movement_type.value,
        product_id=movement.product_id,
        variant_id=movement.variant_id,
        quantity=movement.quantity,
        delta=movement.delta,
        from_location=movement.from_location.value,
        to_location=movement.to_location.value,
        occurred_at=movement.occurred_at.strftime(_TIME_FORMAT),
        note=movement.note,
    )


def order_to_dto(
    order: Order,
    item_statuses: list[str] | None = None,
    movements: list[StockMovement] | None = None,
) -> OrderDTO:
    statuses = item_statuses or ["pending"] * len(order.items)
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        customer_id=order.customer_id,
        vendor_id=order.vendor_id,
        status=order.status.value,
        items=[
            OrderLineItemDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                variant_id=item.variant_id,
                quantity=item.quantity.value,
                start=item.rental_period.start.strftime(_TIME_FORMAT),
                end=item.rental_period.end.strftime(_TIME_FORMAT),
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
                status=status,
                condition=item.condition.value if item.condition else None,
                late_days=item.late_days,
            )
            for item, status in zip(order.items, statuses)
        ],
        subtotal=str(order.subtotal),
        late_fee=str(order.late_fee),
        damage_fee=str(order.damage_fee),
        total=str(order.total),
        created_at=order.created_at.strftime(_TIME_FORMAT),
        hold_expires_at=(
            order.hold_expires_at.strftime(_TIME_FORMAT) if order.hold_expires_at else None
        ),
        cancellation_reason=order.cancellation_reason,
        movements=[movement_to_dto(m) for m in movements or []],
    )
