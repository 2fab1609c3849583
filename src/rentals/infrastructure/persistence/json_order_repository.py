"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

import json
import os
import threading
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from rentals.domain.exceptions import ConcurrencyConflictError
from rentals.domain.model.order import (
    ItemCondition,
    Order,
    OrderLineItem,
    PickupRecord,
    ReturnRecord,
)
from rentals.domain.model.order_status import OrderStatus
from rentals.domain.model.value_objects import DateRange, Money, Quantity
from rentals.domain.repository.order_repository import OrderRepository

_TIMESTAMPS = (
    "hold_expires_at",
    "confirmed_at",
    "pickup_ready_at",
    "picked_up_at",
    "returned_at",
    "cancelled_at",
)


class JsonOrderRepository(OrderRepository):
    """Orders stored as one JSON array.

    Every save is a read-modify-write under a process-wide lock and is
    rejected if the stored version moved on since the order was loaded.
    """

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = threading.RLock()
        self._ensure_file()

    # --- OrderRepository interface --------------------------------------------

    def next_id(self) -> int:
        with self._lock:
            orders = self._load_raw()
            if not orders:
                return 1
            return max(o["id"] for o in orders) + 1

    def get_by_id(self, order_id: int) -> Order | None:
        for raw in self._load_raw():
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def list_by_status(self, statuses: Iterable[OrderStatus]) -> list[Order]:
        wanted = {status.value for status in statuses}
        return [self._to_domain(raw) for raw in self._load_raw() if raw["status"] in wanted]

    def save(self, order: Order) -> None:
        with self._lock:
            orders = self._load_raw()

            if order.id is None:
                order.id = max((o["id"] for o in orders), default=0) + 1

            # Upsert: replace if exists, otherwise append
            index = next((i for i, raw in enumerate(orders) if raw["id"] == order.id), None)
            if index is not None and orders[index].get("version", 0) != order.version:
                raise ConcurrencyConflictError(
                    f"Order #{order.id} was modified concurrently "
                    f"(stored version {orders[index].get('version', 0)}, "
                    f"expected {order.version})"
                )

            order.version += 1
            if index is None:
                orders.append(self._to_raw(order))
            else:
                orders[index] = self._to_raw(order)
            self._persist_raw(orders)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        raw = {
            "id": order.id,
            "customer_id": order.customer_id,
            "vendor_id": order.vendor_id,
            "status": order.status.value,
            "version": order.version,
            "created_at": order.created_at.isoformat(),
            "cancellation_reason": order.cancellation_reason,
            "late_fee": str(order.late_fee.amount),
            "damage_fee": str(order.damage_fee.amount),
            "currency": order.late_fee.currency,
            "items": [
                {
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "variant_id": item.variant_id,
                    "quantity": item.quantity.value,
                    "start": item.rental_period.start.isoformat(),
                    "end": item.rental_period.end.isoformat(),
                    "unit_price": str(item.unit_price.amount),
                    "currency": item.unit_price.currency,
                    "condition": item.condition.value if item.condition else None,
                    "late_days": item.late_days,
                    "damage_notes": item.damage_notes,
                }
                for item in order.items
            ],
            "pickup": None,
            "return": None,
        }
        for name in _TIMESTAMPS:
            value = getattr(order, name)
            raw[name] = value.isoformat() if value else None

        if order.pickup is not None:
            raw["pickup"] = {
                "picked_up_by": order.pickup.picked_up_by,
                "picked_up_at": order.pickup.picked_up_at.isoformat(),
                "condition": order.pickup.condition.value,
                "notes": order.pickup.notes,
            }
        if order.return_record is not None:
            record = order.return_record
            raw["return"] = {
                "returned_by": record.returned_by,
                "returned_at": record.returned_at.isoformat(),
                "late_days": record.late_days,
                "late_fee": str(record.late_fee.amount),
                "damage_fee": str(record.damage_fee.amount),
                "notes": record.notes,
            }
        return raw

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        currency = raw.get("currency", "USD")
        items = [
            OrderLineItem(
                product_id=i["product_id"],
                product_name=i["product_name"],
                variant_id=i.get("variant_id"),
                quantity=Quantity(i["quantity"]),
                rental_period=DateRange(
                    datetime.fromisoformat(i["start"]), datetime.fromisoformat(i["end"])
                ),
                unit_price=Money(Decimal(i["unit_price"]), i.get("currency", "USD")),
                condition=ItemCondition(i["condition"]) if i.get("condition") else None,
                late_days=i.get("late_days", 0),
                damage_notes=i.get("damage_notes"),
            )
            for i in raw["items"]
        ]
        order = Order(
            id=raw["id"],
            customer_id=raw["customer_id"],
            vendor_id=raw["vendor_id"],
            items=items,
            status=OrderStatus(raw["status"]),
            created_at=datetime.fromisoformat(raw["created_at"]),
            cancellation_reason=raw.get("cancellation_reason"),
            late_fee=Money(Decimal(raw.get("late_fee", "0")), currency),
            damage_fee=Money(Decimal(raw.get("damage_fee", "0")), currency),
            version=raw.get("version", 0),
        )
        for name in _TIMESTAMPS:
            if raw.get(name):
                setattr(order, name, datetime.fromisoformat(raw[name]))

        if raw.get("pickup"):
            p = raw["pickup"]
            order.pickup = PickupRecord(
                picked_up_by=p["picked_up_by"],
                picked_up_at=datetime.fromisoformat(p["picked_up_at"]),
                condition=ItemCondition(p["condition"]),
                notes=p.get("notes"),
            )
        if raw.get("return"):
            r = raw["return"]
            order.return_record = ReturnRecord(
                returned_by=r["returned_by"],
                returned_at=datetime.fromisoformat(r["returned_at"]),
                late_days=r["late_days"],
                late_fee=Money(Decimal(r["late_fee"]), currency),
                damage_fee=Money(Decimal(r["damage_fee"]), currency),
                notes=r.get("notes"),
            )
        return order

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict]:
        with self._lock:
            return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, orders: list[dict]) -> None:
        # Write-then-rename so a reader never sees a half-written file.
        tmp_path = self._file_path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(orders, indent=2) + "\n", encoding="utf-8")
        os.replace(tmp_path, self._file_path)

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
