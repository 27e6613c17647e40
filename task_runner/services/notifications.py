"""Transient user-visible notifications."""

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

logger = logging.getLogger(__name__)


class NotificationLevel(StrEnum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    id: int
    level: NotificationLevel
    message: str


class NotificationCenter:
    """Collects notifications until they are dismissed.

    An optional listener is called for every new notification so a front end
    can render it immediately.
    """

    def __init__(self, listener: Callable[[Notification], None] | None = None):
        self._listener = listener
        self._ids = itertools.count(1)
        self._active: dict[int, Notification] = {}

    @property
    def active(self) -> list[Notification]:
        return list(self._active.values())

    def publish(self, level: NotificationLevel, message: str) -> Notification:
        notification = Notification(id=next(self._ids), level=level, message=message)
        self._active[notification.id] = notification
        if self._listener is not None:
            self._listener(notification)
        return notification

    def success(self, message: str) -> Notification:
        return self.publish(NotificationLevel.SUCCESS, message)

    def info(self, message: str) -> Notification:
        return self.publish(NotificationLevel.INFO, message)

    def error(self, message: str) -> Notification:
        logger.debug(f"Error notification: {message}")
        return self.publish(NotificationLevel.ERROR, message)

    def dismiss(self, notification_id: int) -> bool:
        return self._active.pop(notification_id, None) is not None

    def clear(self) -> None:
        self._active.clear()
