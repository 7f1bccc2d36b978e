"""Real-time notifications module.

Provides:
- NotificationHub: connection registry, rooms and ordered fan-out
- Event vocabulary for the notification socket

Note: Router is imported directly in main.py to avoid circular imports.
"""

from app_reviews.notifications.events import ClientEvent, Event, EventName
from app_reviews.notifications.hub import (
    ADMIN_ROOM,
    Connection,
    NotificationHub,
    UnauthenticatedError,
    user_room,
)


__all__ = [
    "ADMIN_ROOM",
    "ClientEvent",
    "Connection",
    "Event",
    "EventName",
    "NotificationHub",
    "UnauthenticatedError",
    "user_room",
]
