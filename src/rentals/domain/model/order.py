"""Order aggregate — the core of the domain.

The Order is an aggregate root that owns its line items.  Status changes
go through ``transition_to`` which consults the state machine; only the
reservation coordinator calls it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from rentals.domain.exceptions import ValidationError
from rentals.domain.model.order_status import OrderStatus, ensure_transition
from rentals.domain.model.value_objects import DateRange, Money, Quantity


class ItemCondition(Enum):
    NEW = "new"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    DAMAGED = "damaged"


@dataclass
class OrderLineItem:
    """One rented product for one window.

    ``unit_price`` is the per-unit daily rate captured at booking time
    (price lock).  Apart from the rental window, which only changes on an
    extension, the mutable fields describe the physical item after return.
    """

    product_id: str
    product_name: str
    quantity: Quantity
    rental_period: DateRange
    unit_price: Money  # per unit per day, locked at booking time
    variant_id: str | None = None
    condition: ItemCondition | None = None
    late_days: int = 0
    damage_notes: str | None = None

    @property
    def line_total(self) -> Money:
        return self.unit_price * (self.quantity.value * self.rental_period.billable_days)

    @property
    def daily_rate(self) -> Money:
        """Daily cost of the whole line, the basis for late fees."""
        return self.unit_price * self.quantity.value

    @property
    def stock_key(self) -> tuple[str, str | None]:
        return (self.product_id, self.variant_id)


@dataclass(frozen=True)
class PickupRecord:
    picked_up_by: str
    picked_up_at: datetime
    condition: ItemCondition = ItemCondition.GOOD
    notes: str | None = None


@dataclass(frozen=True)
class ReturnRecord:
    returned_by: str
    returned_at: datetime
    late_days: int
    late_fee: Money
    damage_fee: Money
    notes: str | None = None


# ---------------------------------------------------------------------------
# Constants for business rules
# ---------------------------------------------------------------------------
MAX_LINE_ITEMS = 50

_TIMESTAMP_FIELDS = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.PICKUP_READY: "pickup_ready_at",
    OrderStatus.WITH_CUSTOMER: "picked_up_at",
    OrderStatus.RETURNED: "returned_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


@dataclass
class Order:
    """Aggregate root for rental orders.

    Use the ``Order.create()`` factory for new orders — it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.

    ``version`` is bumped by the repository on every save and is used for
    optimistic concurrency checks.
    """

    id: int | None
    customer_id: str
    vendor_id: str
    items: list[OrderLineItem]
    status: OrderStatus = OrderStatus.DRAFT
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    hold_expires_at: datetime | None = None
    confirmed_at: datetime | None = None
    pickup_ready_at: datetime | None = None
    picked_up_at: datetime | None = None
    returned_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    late_fee: Money = field(default_factory=Money.zero)
    damage_fee: Money = field(default_factory=Money.zero)
    pickup: PickupRecord | None = None
    return_record: ReturnRecord | None = None
    version: int = 0

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        customer_id: str,
        vendor_id: str,
        items: list[OrderLineItem],
        created_at: datetime | None = None,
        hold_expires_at: datetime | None = None,
    ) -> Order:
        """Create a new draft order, enforcing all invariants."""
        if not customer_id or not customer_id.strip():
            raise ValidationError("Customer is required")

        if not vendor_id or not vendor_id.strip():
            raise ValidationError("Vendor is required")

        if not items:
            raise ValidationError("Order must contain at least one item")

        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")

        order = Order(
            id=None,
            customer_id=customer_id.strip(),
            vendor_id=vendor_id.strip(),
            items=list(items),
            hold_expires_at=hold_expires_at,
        )
        if created_at is not None:
            order.created_at = created_at
        return order

    # --- State transitions ----------------------------------------------------

    def transition_to(self, new_status: OrderStatus, at: datetime) -> None:
        """Move to ``new_status`` and stamp the matching lifecycle timestamp.

        Raises ``IllegalTransitionError`` (leaving the order untouched) if
        the state machine forbids the move.
        """
        ensure_transition(self.status, new_status)
        self.status = new_status
        setattr(self, _TIMESTAMP_FIELDS[new_status], at)

    # --- Soft hold ------------------------------------------------------------

    def hold_expired(self, now: datetime) -> bool:
        return (
            self.status == OrderStatus.DRAFT
            and self.hold_expires_at is not None
            and self.hold_expires_at <= now
        )

    def is_holding(self, now: datetime) -> bool:
        """True while a draft's soft hold is still live."""
        return self.status == OrderStatus.DRAFT and not self.hold_expired(now)

    # --- Mutations used by the coordinator ------------------------------------

    def extend_to(self, new_end: datetime) -> None:
        """Push every item's end date out to ``new_end``."""
        for item in self.items:
            if new_end <= item.rental_period.end:
                raise ValidationError(
                    f"New end {new_end.isoformat()} must be after the current "
                    f"end of {item.product_name} "
                    f"({item.rental_period.end.isoformat()})"
                )
        for item in self.items:
            item.rental_period = item.rental_period.with_end(new_end)

    # --- Computed properties --------------------------------------------------

    @property
    def subtotal(self) -> Money:
        result = Money.zero()
        for item in self.items:
            result = result + item.line_total
        return result

    @property
    def total(self) -> Money:
        return self.subtotal + self.late_fee + self.damage_fee

    @property
    def rental_end(self) -> datetime:
        return max(item.rental_period.end for item in self.items)

    def items_for(self, product_id: str, variant_id: str | None) -> list[OrderLineItem]:
        return [
            item for item in self.items
            if item.product_id == product_id and item.variant_id == variant_id
        ]
