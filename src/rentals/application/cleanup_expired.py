"""Application service: expire soft holds that were never confirmed.

Meant to be run on a schedule (cron, or ``rentals order cleanup``).
"""

from __future__ import annotations

import logging

from rentals.application.notifier import CANCEL_EVENT, Notifier, notify_safely
from rentals.domain.service.reservation_coordinator import (
    EXPIRED_HOLD_REASON,
    ReservationCoordinator,
)

logger = logging.getLogger(__name__)


class CleanupExpiredHandler:

    def __init__(
        self,
        coordinator: ReservationCoordinator,
        notifier: Notifier | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._notifier = notifier

    def handle(self) -> list[int]:
        released = self._coordinator.cleanup_expired_reservations()
        if self._notifier is not None:
            for order_id in released:
                notify_safely(
                    self._notifier, CANCEL_EVENT, order_id, {"reason": EXPIRED_HOLD_REASON}
                )
        return released
