"""Notifier that writes events to the log.

Stands in for e-mail or push delivery; the events and payloads are the
ones a real channel would receive.
"""

from __future__ import annotations

import logging
from typing import Any

from rentals.application.notifier import Notifier

logger = logging.getLogger(__name__)


class LoggingNotifier(Notifier):

    def notify(self, event: str, order_id: int, details: dict[str, Any]) -> None:
        rendered = ", ".join(f"{key}={value}" for key, value in sorted(details.items()))
        logger.info("Notify %s for order #%s: %s", event, order_id, rendered)
