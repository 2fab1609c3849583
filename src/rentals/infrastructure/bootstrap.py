"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.

Repositories and the lock registry are cached per data directory so that
every service built in one process shares the same locks and files.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from rentals.application.retry import RetryPolicy
from rentals.domain.service.availability_checker import AvailabilityChecker
from rentals.domain.service.locking import LockRegistry
from rentals.domain.service.reservation_coordinator import ReservationCoordinator
from rentals.domain.service.stock_ledger import StockLedger
from rentals.infrastructure.config import Settings
from rentals.infrastructure.notifications import LoggingNotifier
from rentals.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from rentals.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from rentals.infrastructure.persistence.json_stock_movement_repository import (
    JsonStockMovementRepository,
)


@lru_cache(maxsize=None)
def _product_repository(data_dir: Path) -> JsonProductRepository:
    return JsonProductRepository(data_dir / "products.json")


@lru_cache(maxsize=None)
def _order_repository(data_dir: Path) -> JsonOrderRepository:
    return JsonOrderRepository(data_dir / "orders.json")


@lru_cache(maxsize=None)
def _stock_movement_repository(data_dir: Path) -> JsonStockMovementRepository:
    return JsonStockMovementRepository(data_dir / "stock_movements.json")


@lru_cache(maxsize=None)
def _lock_registry(data_dir: Path, timeout_seconds: float) -> LockRegistry:
    return LockRegistry(timeout_seconds=timeout_seconds)


def product_repository(settings: Settings) -> JsonProductRepository:
    return _product_repository(settings.data_dir)


def order_repository(settings: Settings) -> JsonOrderRepository:
    return _order_repository(settings.data_dir)


def stock_ledger(settings: Settings) -> StockLedger:
    return StockLedger(_stock_movement_repository(settings.data_dir))


def availability_checker(settings: Settings) -> AvailabilityChecker:
    return AvailabilityChecker(
        product_repo=product_repository(settings),
        order_repo=order_repository(settings),
        ledger=stock_ledger(settings),
    )


def reservation_coordinator(settings: Settings) -> ReservationCoordinator:
    ledger = stock_ledger(settings)
    return ReservationCoordinator(
        product_repo=product_repository(settings),
        order_repo=order_repository(settings),
        ledger=ledger,
        checker=AvailabilityChecker(
            product_repo=product_repository(settings),
            order_repo=order_repository(settings),
            ledger=ledger,
        ),
        locks=_lock_registry(settings.data_dir, settings.lock_timeout_seconds),
        late_fee_policy=settings.late_fee_policy,
        hold_window=settings.hold_window,
    )


def retry_policy(settings: Settings) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.max_retries,
        backoff_seconds=settings.retry_backoff_seconds,
    )


def notifier() -> LoggingNotifier:
    return LoggingNotifier()
