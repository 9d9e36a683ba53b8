"""
User-facing notifications (stand-in for toast messages)
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, List, Optional

logger = logging.getLogger(__name__)


class NotificationLevel(Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    title: str
    message: str = ""
    tx_hash: Optional[str] = None


_LOG_LEVELS = {
    NotificationLevel.SUCCESS: logging.INFO,
    NotificationLevel.ERROR: logging.WARNING,
    NotificationLevel.INFO: logging.INFO,
}


class Notifier:
    """
    Records notifications, logs them and forwards them to an optional sink

    Args:
        sink: Callable receiving each Notification (e.g. a UI toast adapter)
        history_size: Number of recent notifications kept in ``history``
    """

    def __init__(self, sink: Optional[Callable[[Notification], None]] = None, history_size: int = 50):
        self._sink = sink
        self._history: Deque[Notification] = deque(maxlen=history_size)

    @property
    def history(self) -> List[Notification]:
        return list(self._history)

    @property
    def last(self) -> Optional[Notification]:
        return self._history[-1] if self._history else None

    def notify(self, notification: Notification) -> None:
        self._history.append(notification)
        logger.log(_LOG_LEVELS[notification.level], f"{notification.title}: {notification.message}")
        if self._sink is not None:
            self._sink(notification)

    def success(self, title: str, message: str = "", tx_hash: Optional[str] = None) -> None:
        self.notify(Notification(NotificationLevel.SUCCESS, title, message, tx_hash))

    def error(self, title: str, message: str = "", tx_hash: Optional[str] = None) -> None:
        self.notify(Notification(NotificationLevel.ERROR, title, message, tx_hash))

    def info(self, title: str, message: str = "") -> None:
        self.notify(Notification(NotificationLevel.INFO, title, message))
