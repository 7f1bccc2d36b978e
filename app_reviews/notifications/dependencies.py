"""Dependencies for the notification hub."""

from typing import Annotated

from fastapi import Depends
from starlette.requests import HTTPConnection

from app_reviews.notifications.hub import NotificationHub


def get_notification_hub(connection: HTTPConnection) -> NotificationHub:
    """Get the hub from app state (works for HTTP and WebSocket)."""
    hub = getattr(connection.app.state, "notification_hub", None)
    if hub is None:
        msg = "NotificationHub not configured"
        raise RuntimeError(msg)
    return hub


NotificationHubDep = Annotated[NotificationHub, Depends(get_notification_hub)]
