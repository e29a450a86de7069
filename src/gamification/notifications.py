"""
Notification sinks

The engine hands progression events (achievement unlocked, level up,
combo bonus) to a sink; rendering them is the display layer's job.
"""

import logging
from typing import List, Protocol

from src.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Receives progression events for display"""

    def notify(self, notification: Notification) -> None:
        ...


class LoggingNotificationSink:
    """Default sink: logs each event"""

    def notify(self, notification: Notification) -> None:
        logger.info(
            f"[{notification.kind.value}] {notification.user_key}: {notification.message}"
        )


class CollectingNotificationSink:
    """Buffers events so a UI can poll and drain them"""

    def __init__(self):
        self.notifications: List[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    def drain(self) -> List[Notification]:
        """Return and clear buffered events"""
        drained, self.notifications = self.notifications, []
        return drained
