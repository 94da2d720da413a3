"""Notification emitter for order lifecycle outcomes."""

import logging
from typing import Callable, List

from orderdesk.replenishment.models import Notification, NotificationLevel

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    NotificationLevel.SUCCESS: logging.INFO,
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


class NotificationEmitter:
    """Broadcasts user-facing notifications to subscribed listeners.

    Presentation code subscribes to show toasts; every notification is also
    logged.
    """

    def __init__(self) -> None:
        self._listeners: List[Callable[[Notification], None]] = []

    def subscribe(self, listener: Callable[[Notification], None]) -> None:
        """Subscribe a listener.

        Raises:
            ValueError: If the listener is already subscribed.
        """
        if listener in self._listeners:
            raise ValueError("Listener is already subscribed")
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[Notification], None]) -> None:
        """Unsubscribe a listener.

        Raises:
            ValueError: If the listener is not subscribed.
        """
        try:
            self._listeners.remove(listener)
        except ValueError:
            raise ValueError("Listener is not subscribed") from None

    def emit(self, notification: Notification) -> None:
        logger.log(
            _LOG_LEVELS[notification.level],
            f"[{notification.operation}] {notification.message}",
        )
        for listener in self._listeners:
            listener(notification)
