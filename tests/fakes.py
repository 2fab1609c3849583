"""In-memory fakes for testing.

These implement the same abstract interfaces as the JSON repositories
but keep everything in a dict. No file I/O, no side effects.

Like the JSON repositories they hand out copies, so a test only sees a
change once it has been saved, and they are safe to share between threads.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from copy import deepcopy
from datetime import datetime, timedelta, timezone
from typing import Any

from rentals.application.notifier import Notifier
from rentals.domain.exceptions import ConcurrencyConflictError
from rentals.domain.model.order import Order
from rentals.domain.model.order_status import OrderStatus
from rentals.domain.model.product import Product
from rentals.domain.model.stock_movement import StockMovement
from rentals.domain.repository.order_repository import OrderRepository
from rentals.domain.repository.product_repository import ProductRepository
from rentals.domain.repository.stock_movement_repository import (
    StockMovementRepository,
)


class FakeOrderRepository(OrderRepository):

    def __init__(self) -> None:
        self._store: dict[int, Order] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def next_id(self) -> int:
        return self._next_id

    def get_by_id(self, order_id: int) -> Order | None:
        with self._lock:
            order = self._store.get(order_id)
            return deepcopy(order) if order is not None else None

    def list_by_status(self, statuses: Iterable[OrderStatus]) -> list[Order]:
        wanted = set(statuses)
        with self._lock:
            return [deepcopy(o) for o in self._store.values() if o.status in wanted]

    def list_all(self) -> list[Order]:
        with self._lock:
            return [deepcopy(o) for o in self._store.values()]

    def save(self, order: Order) -> None:
        with self._lock:
            if order.id is None:
                order.id = self._next_id
                self._next_id += 1
            stored = self._store.get(order.id)
            if stored is not None and stored.version != order.version:
                raise ConcurrencyConflictError(
                    f"Order #{order.id} was modified concurrently"
                )
            order.version += 1
            self._store[order.id] = deepcopy(order)


class FakeProductRepository(ProductRepository):

    def __init__(self, products: list[Product] | None = None) -> None:
        self._store: dict[str, Product] = {}
        for p in products or []:
            self._store[p.id] = p

    def get_by_id(self, product_id: str) -> Product | None:
        product = self._store.get(product_id)
        return deepcopy(product) if product is not None else None

    def list_all(self) -> list[Product]:
        return [deepcopy(p) for p in self._store.values()]

    def save(self, product: Product) -> None:
        self._store[product.id] = deepcopy(product)


class FakeStockMovementRepository(StockMovementRepository):

    def __init__(self) -> None:
        self._movements: list[StockMovement] = []
        self._lock = threading.Lock()

    def append_all(self, movements: list[StockMovement]) -> None:
        with self._lock:
            self._movements.extend(movements)

    def list_for_order(self, order_id: int) -> list[StockMovement]:
        with self._lock:
            return [m for m in self._movements if m.order_id == order_id]

    def list_for_product(
        self, product_id: str, variant_id: str | None
    ) -> list[StockMovement]:
        with self._lock:
            return [
                m for m in self._movements
                if m.product_id == product_id and m.variant_id == variant_id
            ]

    def all(self) -> list[StockMovement]:
        with self._lock:
            return list(self._movements)


class RecordingNotifier(Notifier):

    def __init__(self) -> None:
        self.sent: list[tuple[str, int, dict[str, Any]]] = []

    def notify(self, event: str, order_id: int, details: dict[str, Any]) -> None:
        self.sent.append((event, order_id, details))

    @property
    def events(self) -> list[str]:
        return [event for event, _, _ in self.sent]


class FailingNotifier(Notifier):

    def notify(self, event: str, order_id: int, details: dict[str, Any]) -> None:
        raise ConnectionError("mail server unreachable")


class MutableClock:
    """A clock tests can move forward by hand."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class Engine:
    """Checker, ledger and coordinator wired to fresh fakes."""

    def __init__(
        self,
        products: list[Product],
        clock: MutableClock | None = None,
        **coordinator_kwargs: Any,
    ) -> None:
        # Imported here so the plain fakes above stay importable on their own.
        from rentals.domain.service.availability_checker import AvailabilityChecker
        from rentals.domain.service.reservation_coordinator import (
            ReservationCoordinator,
        )
        from rentals.domain.service.stock_ledger import StockLedger

        self.clock = clock or MutableClock()
        self.product_repo = FakeProductRepository(products)
        self.order_repo = FakeOrderRepository()
        self.movement_repo = FakeStockMovementRepository()
        self.ledger = StockLedger(self.movement_repo)
        self.checker = AvailabilityChecker(
            self.product_repo, self.order_repo, self.ledger, clock=self.clock
        )
        self.coordinator = ReservationCoordinator(
            self.product_repo,
            self.order_repo,
            self.ledger,
            self.checker,
            clock=self.clock,
            **coordinator_kwargs,
        )
