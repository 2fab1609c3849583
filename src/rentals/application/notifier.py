"""Notification port.

Notifications are fire-and-forget: they are sent after the order and
ledger writes have committed, and a failing notifier never undoes them.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)

PICKUP_EVENT = "order.picked_up"
RETURN_EVENT = "order.returned"
CANCEL_EVENT = "order.cancelled"
REMINDER_EVENT = "order.return_reminder"


class Notifier(ABC):

    @abstractmethod
    def notify(self, event: str, order_id: int, details: dict[str, Any]) -> None:
        """Deliver one event about one order."""


def notify_safely(
    notifier: Notifier | None, event: str, order_id: int, details: dict[str, Any]
) -> bool:
    """Send a notification, logging and absorbing any delivery failure."""
    if notifier is None:
        return False
    try:
        notifier.notify(event, order_id, details)
    except Exception:
        logger.exception("Notification %s for order #%s failed", event, order_id)
        return False
    return True
