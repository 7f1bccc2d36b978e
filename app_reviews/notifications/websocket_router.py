"""WebSocket API for real-time review notifications.

Provides:
- WS /ws/notifications - Moderation events and admin presence
"""

import asyncio
from typing import Any

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from app_reviews.auth.security import authenticate_token
from app_reviews.config import get_settings
from app_reviews.core.context import clear_context, set_connection_id, set_user_id
from app_reviews.core.logging import get_logger

from .dependencies import NotificationHubDep
from .events import (
    APPROVED_MESSAGE,
    DEFAULT_REJECTION_REASON,
    ClientEvent,
    Event,
    EventName,
    timestamp,
)
from .hub import Connection, NotificationHub, UnauthenticatedError


logger = get_logger(__name__)

router = APIRouter(tags=["notifications-ws"])

AUTH_FAILED_CLOSE_CODE = 4001


def _token_from_headers(websocket: WebSocket) -> str | None:
    auth_header = websocket.headers.get("authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return None


async def dispatch_client_event(
    hub: NotificationHub,
    connection: Connection,
    message: Any,
) -> None:
    """Handle one ``{"event", "data"}`` frame sent by a client.

    Admin-only events from non-admins are ignored without a reply.
    """
    if not isinstance(message, dict):
        await connection.send(Event(EventName.ERROR, {"message": "Invalid message"}))
        return

    name = message.get("event")
    data = message.get("data")
    if not isinstance(data, dict):
        data = {}

    try:
        event = ClientEvent(name)
    except ValueError:
        await connection.send(
            Event(EventName.ERROR, {"message": f"Unknown event: {name}"})
        )
        return

    identity = connection.identity

    if event is ClientEvent.SUBMIT_REVIEW:
        # Echo only; the REST endpoint is the authoritative submission path
        await hub.broadcast_new_submission(identity.id, identity.display_name, data)
        await connection.send(
            Event(
                EventName.REVIEW_SUBMITTED,
                {"success": True, "message": "Review submitted for moderation"},
            )
        )

    elif event is ClientEvent.APPROVE_REVIEW:
        if connection.is_admin and data.get("userId"):
            await hub.notify_decision(
                str(data["userId"]),
                Event(
                    EventName.REVIEW_APPROVED,
                    {
                        "reviewId": data.get("reviewId"),
                        "message": APPROVED_MESSAGE,
                        "timestamp": timestamp(),
                    },
                ),
            )

    elif event is ClientEvent.REJECT_REVIEW:
        if connection.is_admin and data.get("userId"):
            await hub.notify_decision(
                str(data["userId"]),
                Event(
                    EventName.REVIEW_REJECTED,
                    {
                        "reviewId": data.get("reviewId"),
                        "reason": data.get("reason") or DEFAULT_REJECTION_REASON,
                        "timestamp": timestamp(),
                    },
                ),
            )

    elif event is ClientEvent.TYPING_RESPONSE:
        await hub.relay_typing_indicator(
            connection, data.get("reviewId"), bool(data.get("isTyping"))
        )

    elif event is ClientEvent.USER_ONLINE:
        await hub.announce_presence(connection)

    elif event is ClientEvent.PING:
        await connection.send(Event(EventName.PONG))

    # PONG: client answered our keep-alive


@router.websocket("/ws/notifications")
async def notifications_websocket(
    websocket: WebSocket,
    hub: NotificationHubDep,
    token: str | None = Query(None, description="JWT access token"),
) -> None:
    """WebSocket endpoint for review notifications.

    Connect with: ws://host/ws/notifications?token=<jwt_token>
    (or an ``Authorization: Bearer`` header).

    Frames are ``{"event": <name>, "data": {...}}``. See ``events`` for the
    names in each direction.
    """
    identity = authenticate_token(token or _token_from_headers(websocket))
    if identity is None or not identity.is_active:
        await websocket.close(code=AUTH_FAILED_CLOSE_CODE, reason="Authentication failed")
        return

    await websocket.accept()
    try:
        connection = await hub.connect(identity, websocket, announce=False)
    except UnauthenticatedError as e:
        await websocket.close(code=AUTH_FAILED_CLOSE_CODE, reason=e.message)
        return

    set_connection_id(connection.connection_id)
    set_user_id(identity.id)

    ping_interval = get_settings().websocket_ping_interval_seconds

    try:
        await connection.send(
            Event(
                EventName.CONNECTED,
                {
                    "userId": identity.id,
                    "role": identity.role.value,
                    "rooms": sorted(connection.rooms),
                    "message": "Connected to notifications stream",
                },
            )
        )
        await hub.announce_presence(connection)

        while True:
            try:
                message = await asyncio.wait_for(
                    websocket.receive_json(),
                    timeout=ping_interval,
                )
            except TimeoutError:
                await connection.send(Event(EventName.PING))
                continue
            except ValueError:
                await connection.send(
                    Event(EventName.ERROR, {"message": "Invalid message"})
                )
                continue

            await dispatch_client_event(hub, connection, message)

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning("websocket_error", user_id=identity.id, error=str(e))
    finally:
        await hub.disconnect(connection)
        clear_context()
