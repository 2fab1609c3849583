"""Application service: remind customers of upcoming and overdue returns."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from rentals.application.notifier import REMINDER_EVENT, Notifier, notify_safely
from rentals.domain.model.order_status import OrderStatus
from rentals.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class ReturnReminder:
    order_id: int
    customer_id: str
    due_at: datetime
    overdue: bool


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SendReturnRemindersHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        notifier: Notifier,
        window: timedelta = DEFAULT_REMINDER_WINDOW,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._notifier = notifier
        self._window = window
        self._clock = clock

    def handle(self) -> list[ReturnReminder]:
        """Notify every rental due back within the window, or already late."""
        now = self._clock()
        reminders: list[ReturnReminder] = []

        for order in self._order_repo.list_by_status([OrderStatus.WITH_CUSTOMER]):
            due_at = order.rental_end
            if due_at > now + self._window:
                continue
            reminder = ReturnReminder(
                order_id=order.id,  # type: ignore[arg-type]
                customer_id=order.customer_id,
                due_at=due_at,
                overdue=due_at < now,
            )
            notify_safely(
                self._notifier,
                REMINDER_EVENT,
                reminder.order_id,
                {
                    "customer_id": reminder.customer_id,
                    "due_at": due_at.isoformat(),
                    "overdue": reminder.overdue,
                },
            )
            reminders.append(reminder)

        logger.info("Sent %d return reminder(s)", len(reminders))
        return reminders
