"""Notifier that writes notifications to the log.

Used when no messaging channel is configured, so relationship and
shared-expense events stay visible while running locally.
"""

from typing import Any

from loguru import logger

from bubu.domain.collaborators import NotificationEvent, Notifier


class LoggingNotifier(Notifier):
    """Logs every notification instead of delivering it."""

    def notify(self, phone: str, event: NotificationEvent, payload: dict[str, Any]) -> None:
        logger.info("Notify {} of {}: {}", phone, event.value, payload)
