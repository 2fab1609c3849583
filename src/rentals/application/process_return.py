"""Application service: Process Return use case.

Late and damage charges are worked out by the coordinator while it
holds the order lock; this handler only adds retry and the customer
notification.
"""

from __future__ import annotations

from rentals.application.notifier import RETURN_EVENT, Notifier, notify_safely
from rentals.application.retry import RetryPolicy
from rentals.domain.model.reservation import ReturnInfo, ReturnOutcome
from rentals.domain.service.reservation_coordinator import ReservationCoordinator


class ProcessReturnHandler:

    def __init__(
        self,
        coordinator: ReservationCoordinator,
        notifier: Notifier | None = None,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._notifier = notifier
        self._retry = retry or RetryPolicy()

    def handle(self, order_id: int, info: ReturnInfo) -> ReturnOutcome:
        outcome = self._retry.run(
            lambda: self._coordinator.process_return(order_id, info),
            f"return of order #{order_id}",
        )
        if self._notifier is not None:
            notify_safely(
                self._notifier,
                RETURN_EVENT,
                order_id,
                {
                    "late_days": outcome.late_days,
                    "late_fee": str(outcome.late_fee),
                    "damage_fee": str(outcome.damage_fee),
                    "total": str(outcome.total),
                },
            )
        return outcome
