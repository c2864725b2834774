"""Domain events and the bus that fans them out to subscribers."""

from .bus import (
    EventStream,
    InMemoryNotificationBus,
    NotificationBus,
    RedisNotificationBus,
    create_notification_bus,
)
from .models import BOOK_ADDED, AuthorSnapshot, BookAdded, BookSnapshot

__all__ = [
    "BOOK_ADDED",
    "AuthorSnapshot",
    "BookAdded",
    "BookSnapshot",
    "EventStream",
    "InMemoryNotificationBus",
    "NotificationBus",
    "RedisNotificationBus",
    "create_notification_bus",
]
