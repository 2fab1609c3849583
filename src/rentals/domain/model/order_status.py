"""Order state machine.

The legal lifecycle of a rental order::

    draft -> confirmed -> pickup_ready -> with_customer -> returned
      \\          \\             \\
       +----------+-------------+--> cancelled

``returned`` and ``cancelled`` are terminal.
"""

from __future__ import annotations

from enum import Enum

from rentals.domain.exceptions import IllegalTransitionError


class OrderStatus(Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    PICKUP_READY = "pickup_ready"
    WITH_CUSTOMER = "with_customer"
    RETURNED = "returned"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def commits_stock(self) -> bool:
        return self in STOCK_COMMITTING_STATUSES


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.DRAFT: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset(
        {OrderStatus.PICKUP_READY, OrderStatus.CANCELLED}
    ),
    OrderStatus.PICKUP_READY: frozenset(
        {OrderStatus.WITH_CUSTOMER, OrderStatus.CANCELLED}
    ),
    OrderStatus.WITH_CUSTOMER: frozenset({OrderStatus.RETURNED}),
    OrderStatus.RETURNED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset({OrderStatus.RETURNED, OrderStatus.CANCELLED})

# Orders in these states hold physical stock for their rental window.
STOCK_COMMITTING_STATUSES = frozenset(
    {OrderStatus.CONFIRMED, OrderStatus.PICKUP_READY, OrderStatus.WITH_CUSTOMER}
)

# States whose stock was written to the ledger as "reserved" and not yet
# handed over.
RESERVED_IN_LEDGER_STATUSES = frozenset(
    {OrderStatus.CONFIRMED, OrderStatus.PICKUP_READY}
)


def can_transition(from_status: OrderStatus, to_status: OrderStatus) -> bool:
    return to_status in ALLOWED_TRANSITIONS[from_status]


def ensure_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    """Raise ``IllegalTransitionError`` unless the move is in the table."""
    if not can_transition(from_status, to_status):
        raise IllegalTransitionError(from_status, to_status)
