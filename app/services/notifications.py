"""Outcome reporting for profile operations.

Operations report success or failure through a ``Notifier``.  The core
never renders anything: ``LoggingNotifier`` only logs, ``QueueNotifier``
buffers notifications until the presentation layer drains them.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Protocol

from app.core.constants import MESSAGES_PT
from app.models.enums import NotificationVariant
from app.models.notification import Notification

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class LoggingNotifier:
    """Notifier that writes each notification to the log."""

    def notify(self, notification: Notification) -> None:
        level = (
            logging.WARNING
            if notification.variant == NotificationVariant.destructive
            else logging.INFO
        )
        logger.log(
            level,
            "notification",
            extra={"event": notification.event, "title": notification.title},
        )


class QueueNotifier(LoggingNotifier):
    """Notifier that keeps the most recent notifications for later display."""

    def __init__(self, maxlen: int = 50) -> None:
        self._pending: deque[Notification] = deque(maxlen=maxlen)

    def notify(self, notification: Notification) -> None:
        super().notify(notification)
        self._pending.append(notification)

    def drain(self) -> list[Notification]:
        """Return and forget all pending notifications, oldest first."""
        drained = list(self._pending)
        self._pending.clear()
        return drained


def build_notification(event: str, **params: Any) -> Notification:
    """Build the PT-BR notification registered for *event* in ``MESSAGES_PT``."""
    title, description = MESSAGES_PT[event]
    failed = event.endswith("_failed") or event in {
        "not_authenticated",
        "record_required",
        "code_required",
        "busy",
        "invalid_profile",
        "invalid_document_type",
    }
    return Notification(
        event=event,
        title=title,
        description=description.format(**params),
        variant=NotificationVariant.destructive if failed else NotificationVariant.default,
    )
