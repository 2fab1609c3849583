"""Domain service: Reservation Coordinator.

The only writer of order status.  Each operation is scoped to one order
and follows the same shape:

  1. take the locks of every product/variant the order touches (and of
     the order itself), then re-load the order under them;
  2. validate: check the order's phase, re-check availability where the
     operation consumes stock, build the ledger movements and validate
     them against the current balances;
  3. commit: save the order (version-checked), then append the movements.

Nothing is written until step 2 has passed for every line item, so an
operation either moves the whole order or leaves it exactly as it was.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

from rentals.domain.exceptions import (
    ConcurrencyConflictError,
    InvalidStateError,
    NotFoundError,
    UnavailableError,
)
from rentals.domain.model.availability import AvailabilityRequest, BatchAvailability
from rentals.domain.model.order import (
    ItemCondition,
    Order,
    OrderLineItem,
    PickupRecord,
    ReturnRecord,
)
from rentals.domain.model.order_status import (
    RESERVED_IN_LEDGER_STATUSES,
    STOCK_COMMITTING_STATUSES,
    OrderStatus,
)
from rentals.domain.model.reservation import (
    DraftItem,
    PickupInfo,
    ReservationDraft,
    ReservationHold,
    ReturnInfo,
    ReturnOutcome,
    SoftHold,
)
from rentals.domain.model.stock_movement import (
    Location,
    MovementType,
    StockMovement,
)
from rentals.domain.model.value_objects import DateRange, Money, Quantity, as_aware
from rentals.domain.repository.order_repository import OrderRepository
from rentals.domain.repository.product_repository import ProductRepository
from rentals.domain.service.availability_checker import AvailabilityChecker
from rentals.domain.service.late_fee import LateFeePolicy, assess_late_fee
from rentals.domain.service.locking import LockRegistry, order_lock_key, stock_lock_key
from rentals.domain.service.stock_ledger import StockLedger

logger = logging.getLogger(__name__)

DEFAULT_HOLD_WINDOW = timedelta(minutes=30)
EXPIRED_HOLD_REASON = "expired - not confirmed in time"

_RELEASABLE_STATUSES = frozenset(
    {OrderStatus.DRAFT, OrderStatus.CONFIRMED, OrderStatus.PICKUP_READY}
)
_PICKUP_STATUSES = frozenset({OrderStatus.CONFIRMED, OrderStatus.PICKUP_READY})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReservationCoordinator:

    def __init__(
        self,
        product_repo: ProductRepository,
        order_repo: OrderRepository,
        ledger: StockLedger,
        checker: AvailabilityChecker,
        locks: LockRegistry | None = None,
        late_fee_policy: LateFeePolicy | None = None,
        hold_window: timedelta = DEFAULT_HOLD_WINDOW,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._product_repo = product_repo
        self._order_repo = order_repo
        self._ledger = ledger
        self._checker = checker
        self._locks = locks or LockRegistry()
        self._late_fee_policy = late_fee_policy or LateFeePolicy()
        self._hold_window = hold_window
        self._clock = clock

    # --- Soft hold ------------------------------------------------------------

    def create_reservation(self, draft: ReservationDraft) -> ReservationHold:
        """Validate a priced draft and place a time-boxed soft hold on it.

        The hold is the saved ``draft`` order itself; no ledger entries are
        written until the order is confirmed.
        """
        items = [self._build_line_item(item) for item in draft.items]
        keys = [stock_lock_key(item.product_id, item.variant_id) for item in items]

        with self._locks.hold(keys):
            batch = self._checker.check_multiple_availability(
                self._requests_for(items), include_holds=True
            )
            self._ensure_available(batch, "Requested items are not available")

            now = self._clock()
            expires_at = now + self._hold_window
            order = Order.create(
                customer_id=draft.customer_id,
                vendor_id=draft.vendor_id,
                items=items,
                created_at=now,
                hold_expires_at=expires_at,
            )
            self._order_repo.save(order)

        logger.info(
            "Soft hold placed: order #%s, %d item(s), expires %s",
            order.id,
            len(items),
            expires_at.isoformat(),
        )
        return ReservationHold(
            order_id=order.id,  # type: ignore[arg-type]
            reservations=[
                SoftHold(
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    quantity=item.quantity.value,
                    period=item.rental_period,
                    reserved_at=now,
                    expires_at=expires_at,
                )
                for item in items
            ],
            expires_at=expires_at,
        )

    # --- Hard commit ----------------------------------------------------------

    def confirm_reservation(self, order_id: int) -> list[StockMovement]:
        """Turn a draft into a confirmed order and reserve its stock.

        Availability is re-checked under the lock against committed orders
        only; a soft hold does not protect a draft that waited too long.
        Confirming an already confirmed order is a no-op.
        """
        with self._locked_order(order_id) as order:
            if order.status == OrderStatus.CONFIRMED:
                return self._ledger.movements_for_order(order_id)
            if order.status != OrderStatus.DRAFT:
                raise InvalidStateError(
                    f"Order #{order_id} cannot be confirmed, current status is "
                    f"{order.status.value}, expected draft or confirmed"
                )

            batch = self._checker.check_multiple_availability(
                self._requests_for(order.items),
                exclude_order_id=order_id,
                include_holds=False,
            )
            self._ensure_available(
                batch, f"Order #{order_id} can no longer be confirmed"
            )

            now = self._clock()
            movements = [
                StockMovement.reserve(item, order_id, now, f"Reserved for order #{order_id}")
                for item in order.items
            ]
            order.transition_to(OrderStatus.CONFIRMED, now)
            order.hold_expires_at = None
            self._commit(order, movements)

        logger.info("Order #%s confirmed", order_id)
        return movements

    def release_reservation(self, order_id: int, reason: str) -> list[StockMovement]:
        """Cancel an order and give back any stock it reserved.

        Drafts never reserved anything, so they are cancelled without ledger
        entries.  Releasing an order twice raises ``InvalidStateError``.
        """
        with self._locked_order(order_id) as order:
            movements = self._release(order, reason)

        logger.info("Order #%s released: %s", order_id, reason)
        return movements

    def cleanup_expired_reservations(self) -> list[int]:
        """Release every draft whose soft hold has run out.

        Returns the ids of the orders released.  Each draft is re-read under
        its lock; one confirmed or cancelled since the scan is skipped, and
        one whose lock or version is contended is left for the next sweep.
        """
        now = self._clock()
        expired = [
            order.id
            for order in self._order_repo.list_by_status([OrderStatus.DRAFT])
            if order.hold_expired(now)
        ]

        released: list[int] = []
        for order_id in expired:
            try:
                expired_now = self._expire_hold(order_id, now)  # type: ignore[arg-type]
            except ConcurrencyConflictError as exc:
                logger.warning("Order #%s skipped by expiry sweep: %s", order_id, exc)
                continue
            if not expired_now:
                logger.info("Order #%s changed state before expiry sweep; skipped", order_id)
                continue
            released.append(order_id)  # type: ignore[arg-type]

        if released:
            logger.info("Expiry sweep released %d draft order(s)", len(released))
        return released

    # --- Hand-off -------------------------------------------------------------

    def mark_pickup_ready(self, order_id: int) -> None:
        with self._locked_order(order_id) as order:
            if order.status != OrderStatus.CONFIRMED:
                raise InvalidStateError(
                    f"Order #{order_id} must be confirmed before it is ready "
                    f"for pickup, current status is {order.status.value}"
                )
            order.transition_to(OrderStatus.PICKUP_READY, self._clock())
            self._commit(order, [])

    def process_pickup(self, order_id: int, info: PickupInfo) -> list[StockMovement]:
        """Hand the reserved stock to the customer."""
        with self._locked_order(order_id) as order:
            if order.status not in _PICKUP_STATUSES:
                raise InvalidStateError(
                    f"Order #{order_id} must be confirmed before pickup, "
                    f"current status is {order.status.value}"
                )

            at = as_aware(info.picked_up_at) if info.picked_up_at else self._clock()
            if order.status == OrderStatus.CONFIRMED:
                order.transition_to(OrderStatus.PICKUP_READY, at)
            order.transition_to(OrderStatus.WITH_CUSTOMER, at)
            order.pickup = PickupRecord(
                picked_up_by=info.picked_up_by,
                picked_up_at=at,
                condition=info.condition,
                notes=info.notes,
            )
            movements = [
                StockMovement.pickup(item, order_id, at, f"Picked up by {info.picked_up_by}")
                for item in order.items
            ]
            self._commit(order, movements)

        logger.info("Order #%s picked up by %s", order_id, info.picked_up_by)
        return movements

    def process_return(self, order_id: int, info: ReturnInfo) -> ReturnOutcome:
        """Take the stock back, assess late and damage charges, close the order.

        Damaged items go to maintenance and stay out of availability until
        repaired; everything else goes straight back to the warehouse.
        """
        with self._locked_order(order_id) as order:
            if order.status != OrderStatus.WITH_CUSTOMER:
                raise InvalidStateError(
                    f"Order #{order_id} must be picked up before return, "
                    f"current status is {order.status.value}"
                )

            at = as_aware(info.returned_at) if info.returned_at else self._clock()
            damage_fee = info.damage_fee or Money.zero()
            late_fee = Money.zero()
            late_days = 0
            returns: list[tuple[OrderLineItem, Location, str]] = []

            for item in order.items:
                assessment = assess_late_fee(
                    expected_return=item.rental_period.end,
                    actual_return=at,
                    daily_rate=item.daily_rate,
                    policy=self._late_fee_policy,
                )
                condition = info.condition_for(item.product_id, item.variant_id)
                item.condition = condition
                item.late_days = assessment.late_days
                item.damage_notes = info.notes_for(item.product_id, item.variant_id)
                late_fee = late_fee + assessment.fee
                late_days = max(late_days, assessment.late_days)

                destination = (
                    Location.MAINTENANCE
                    if condition == ItemCondition.DAMAGED
                    else Location.WAREHOUSE
                )
                returns.append((item, destination, self._return_note(
                    condition, assessment.late_days, assessment.fee, damage_fee
                )))

            if info.late_fee_override is not None:
                late_fee = info.late_fee_override

            movements = [
                StockMovement.return_to(item, order_id, destination, at, note)
                for item, destination, note in returns
            ]
            order.late_fee = late_fee
            order.damage_fee = damage_fee
            order.return_record = ReturnRecord(
                returned_by=info.returned_by,
                returned_at=at,
                late_days=late_days,
                late_fee=late_fee,
                damage_fee=damage_fee,
                notes=info.notes,
            )
            order.transition_to(OrderStatus.RETURNED, at)
            self._commit(order, movements)

        logger.info(
            "Order #%s returned: late %d day(s), late fee %s, damage %s",
            order_id,
            late_days,
            late_fee,
            damage_fee,
        )
        return ReturnOutcome(
            movements=movements,
            late_days=late_days,
            late_fee=late_fee,
            damage_fee=damage_fee,
            total=order.total,
        )

    # --- Changes to a running rental ------------------------------------------

    def extend_rental(self, order_id: int, new_end: datetime) -> Order:
        """Move every item's end date out, if the extra days are free."""
        new_end = as_aware(new_end)
        with self._locked_order(order_id) as order:
            if order.status not in STOCK_COMMITTING_STATUSES:
                raise InvalidStateError(
                    f"Order #{order_id} cannot be extended, current status is "
                    f"{order.status.value}"
                )
            batch = self._checker.check_extension(order, new_end, include_holds=False)
            self._ensure_available(
                batch, f"Order #{order_id} cannot be extended to {new_end.isoformat()}"
            )
            order.extend_to(new_end)
            self._commit(order, [])

        logger.info("Order #%s extended to %s", order_id, new_end.isoformat())
        return order

    def release_from_maintenance(
        self,
        product_id: str,
        quantity: int,
        variant_id: str | None = None,
        note: str = "",
    ) -> StockMovement:
        """Put repaired units back into the warehouse."""
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise NotFoundError(f"Product '{product_id}' not found")
        product.quantity_for(variant_id)

        with self._locks.hold([stock_lock_key(product_id, variant_id)]):
            movement = StockMovement(
                product_id=product_id,
                variant_id=variant_id,
                order_id=None,
                movement_type=MovementType.REPAIRED,
                quantity=Quantity(quantity).value,
                from_location=Location.MAINTENANCE,
                to_location=Location.WAREHOUSE,
                occurred_at=self._clock(),
                note=note or "Repaired",
            )
            self._ledger.record([movement])
        return movement

    # --- Internal helpers -----------------------------------------------------

    @contextmanager
    def _locked_order(self, order_id: int) -> Iterator[Order]:
        """Lock the order and its stock keys, then yield a fresh copy."""
        order = self._load(order_id)
        keys = [order_lock_key(order_id)]
        keys.extend(stock_lock_key(item.product_id, item.variant_id) for item in order.items)
        with self._locks.hold(keys):
            yield self._load(order_id)

    def _load(self, order_id: int) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order #{order_id} not found")
        return order

    def _release(self, order: Order, reason: str) -> list[StockMovement]:
        if order.status not in _RELEASABLE_STATUSES:
            raise InvalidStateError(
                f"Order #{order.id} cannot be released, current status is "
                f"{order.status.value}"
            )

        now = self._clock()
        movements: list[StockMovement] = []
        if order.status in RESERVED_IN_LEDGER_STATUSES:
            movements = [
                StockMovement.release(item, order.id, now, reason)  # type: ignore[arg-type]
                for item in order.items
            ]
        order.transition_to(OrderStatus.CANCELLED, now)
        order.cancellation_reason = reason
        self._commit(order, movements)
        return movements

    def _expire_hold(self, order_id: int, now: datetime) -> bool:
        """Cancel one draft if its hold is still expired once locked."""
        with self._locked_order(order_id) as order:
            if not order.hold_expired(now):
                return False
            self._release(order, EXPIRED_HOLD_REASON)
        logger.info("Order #%s released: %s", order_id, EXPIRED_HOLD_REASON)
        return True

    def _commit(self, order: Order, movements: list[StockMovement]) -> None:
        """Validate, save the order (version-checked), then append.

        If the append fails the order is saved back as it was loaded, so
        the status never runs ahead of the ledger.
        """
        self._ledger.validate(movements)
        previous = self._load(order.id)  # type: ignore[arg-type]
        self._order_repo.save(order)
        try:
            self._ledger.append(movements)
        except Exception:
            logger.error(
                "Ledger append failed for order #%s; restoring status %s",
                order.id,
                previous.status.value,
            )
            previous.version = order.version
            self._order_repo.save(previous)
            raise

    def _build_line_item(self, draft_item: DraftItem) -> OrderLineItem:
        product = self._product_repo.get_by_id(draft_item.product_id)
        if product is None:
            raise NotFoundError(f"Product '{draft_item.product_id}' not found")
        product.ensure_rentable()
        name = product.name
        if draft_item.variant_id is not None:
            name = f"{product.name} ({product.variant(draft_item.variant_id).name})"

        return OrderLineItem(
            product_id=product.id,
            product_name=name,
            variant_id=draft_item.variant_id,
            quantity=Quantity(draft_item.quantity),
            rental_period=DateRange(draft_item.start, draft_item.end),
            unit_price=draft_item.unit_price or product.daily_rate,  # <-- price snapshot
        )

    @staticmethod
    def _requests_for(items: list[OrderLineItem]) -> list[AvailabilityRequest]:
        return [
            AvailabilityRequest(
                product_id=item.product_id,
                period=item.rental_period,
                quantity=item.quantity.value,
                variant_id=item.variant_id,
            )
            for item in items
        ]

    @staticmethod
    def _ensure_available(batch: BatchAvailability, message: str) -> None:
        if batch.available:
            return
        details = ", ".join(
            f"{r.product_id} (need {r.requested_quantity}, free {r.available_quantity})"
            for r in batch.unavailable
        )
        raise UnavailableError(f"{message}: {details}", batch.unavailable)

    @staticmethod
    def _return_note(
        condition: ItemCondition, late_days: int, late_fee: Money, damage_fee: Money
    ) -> str:
        note = f"Returned in {condition.value} condition"
        if late_days:
            note += f"; late {late_days} day(s), late fee {late_fee}"
        if not damage_fee.is_zero:
            note += f"; damage fee {damage_fee}"
        return note
