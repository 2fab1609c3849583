"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from rentals.domain.model.order import Order
from rentals.domain.model.order_status import OrderStatus


class OrderRepository(ABC):

    @abstractmethod
    def next_id(self) -> int:
        """Generate the next unique order ID."""

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def list_by_status(self, statuses: Iterable[OrderStatus]) -> list[Order]:
        """Return every order currently in one of ``statuses``."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order.

        Implementations must compare ``order.version`` with the stored
        version, raise ``ConcurrencyConflictError`` on mismatch, and bump
        the version on success.
        """
