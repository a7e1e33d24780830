"""Transient toast notifications"""

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


LOG_LEVELS = {
    NotificationLevel.SUCCESS: logging.INFO,
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


@dataclass
class Notification:
    id: int
    message: str
    level: NotificationLevel
    created_at: datetime = field(default_factory=datetime.now)
    expiry: Optional[asyncio.TimerHandle] = field(default=None, repr=False, compare=False)


class Notifier:
    """Shows status messages that expire on their own

    Each notification has its own expiry timer, so several can be visible
    at once and a user dismissal only removes the one clicked.
    """

    def __init__(self, duration: float = 4.0):
        self.duration = duration
        self._ids = itertools.count(1)
        self._active: Dict[int, Notification] = {}

    @property
    def active(self) -> List[Notification]:
        return list(self._active.values())

    def notify(self, message: str, level=NotificationLevel.INFO) -> Notification:
        level = NotificationLevel(level)
        notification = Notification(id=next(self._ids), message=message, level=level)
        notification.expiry = asyncio.get_running_loop().call_later(
            self.duration, self._expire, notification.id
        )
        self._active[notification.id] = notification
        logger.log(LOG_LEVELS[level], f"[{level.value}] {message}")
        return notification

    def dismiss(self, notification_id: int) -> bool:
        """Remove one notification before it expires"""
        notification = self._active.pop(notification_id, None)
        if notification is None:
            return False
        if notification.expiry is not None:
            notification.expiry.cancel()
        return True

    def clear(self):
        for notification_id in list(self._active):
            self.dismiss(notification_id)

    def _expire(self, notification_id: int):
        self._active.pop(notification_id, None)
