"""Notification hub.

Owns the registry of live connections and their room memberships and
routes events to currently connected recipients. Delivery is best effort:
nothing is queued, persisted or retried, and a connection that joins after
a publish never sees it.

Ordering: deliveries to a room are serialised by a per-room lock and each
connection serialises its own sends, so every member receives a room's
events in the order ``publish`` was called for that room.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import uuid4

from app_reviews.auth.schemas import Identity
from app_reviews.core.logging import get_logger

from .events import Event, EventName, timestamp


logger = get_logger(__name__)

ADMIN_ROOM = "admin"
# Pseudo-room used to order process-wide broadcasts
_BROADCAST_KEY = "*"


def user_room(user_id: str) -> str:
    """Private room of a single user."""
    return f"user_{user_id}"


class MessageSink(Protocol):
    """Anything that can push a JSON frame to a client (e.g. a WebSocket)."""

    async def send_json(self, data: Any) -> None: ...


class UnauthenticatedError(Exception):
    """Connection attempted without a valid, active identity."""

    def __init__(self, message: str = "Authentication failed"):
        self.message = message
        super().__init__(message)


@dataclass(eq=False)
class Connection:
    """A live client channel bound to one identity."""

    identity: Identity
    sink: MessageSink
    connection_id: str = field(default_factory=lambda: str(uuid4()))
    rooms: frozenset[str] = frozenset()
    connected_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    closed: bool = False
    _send_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def user_id(self) -> str:
        return self.identity.id

    @property
    def is_admin(self) -> bool:
        return self.identity.is_admin

    async def send(self, event: Event) -> bool:
        """Deliver one event; returns False instead of raising on failure."""
        async with self._send_lock:
            if self.closed:
                return False
            try:
                await self.sink.send_json(event.to_message())
            except Exception as e:
                logger.warning(
                    "notification_delivery_failed",
                    connection_id=self.connection_id,
                    user_id=self.user_id,
                    notification_event=event.name.value,
                    error=str(e),
                )
                return False
            return True


class NotificationHub:
    """Registry of connections and rooms with ordered fan-out."""

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._rooms: dict[str, set[str]] = {}
        self._room_locks: dict[str, asyncio.Lock] = {}
        self._lock = asyncio.Lock()

    # ==========================================================================
    # Membership
    # ==========================================================================

    async def connect(
        self,
        identity: Identity | None,
        sink: MessageSink,
        announce: bool = True,
    ) -> Connection:
        """Register a connection and join its rooms.

        Admin connections broadcast adminOnline unless ``announce`` is False
        (the caller then announces via ``announce_presence``).

        Raises:
            UnauthenticatedError: If identity is missing or inactive
        """
        if identity is None:
            raise UnauthenticatedError
        if not identity.is_active:
            raise UnauthenticatedError("Account is deactivated")

        rooms = {user_room(identity.id)}
        if identity.is_admin:
            rooms.add(ADMIN_ROOM)

        connection = Connection(identity=identity, sink=sink, rooms=frozenset(rooms))
        async with self._lock:
            self._connections[connection.connection_id] = connection
            for room in rooms:
                self._rooms.setdefault(room, set()).add(connection.connection_id)

        logger.info(
            "hub_connected",
            connection_id=connection.connection_id,
            user_id=identity.id,
            role=identity.role.value,
            rooms=sorted(rooms),
        )

        if announce:
            await self.announce_presence(connection)
        return connection

    async def disconnect(self, connection: Connection) -> None:
        """Close the connection and remove it from every room."""
        # Closed before leaving rooms so no new send can start on it
        connection.closed = True
        async with self._lock:
            if self._connections.pop(connection.connection_id, None) is None:
                return
            for room in connection.rooms:
                members = self._rooms.get(room)
                if members is None:
                    continue
                members.discard(connection.connection_id)
                if not members:
                    del self._rooms[room]
                    lock = self._room_locks.get(room)
                    if lock is not None and not lock.locked():
                        del self._room_locks[room]

        logger.info(
            "hub_disconnected",
            connection_id=connection.connection_id,
            user_id=connection.user_id,
        )

        if connection.is_admin:
            await self.broadcast(
                Event(
                    EventName.ADMIN_OFFLINE,
                    {"adminId": connection.user_id, "timestamp": timestamp()},
                )
            )

    # ==========================================================================
    # Delivery
    # ==========================================================================

    async def _delivery_lock(self, key: str) -> asyncio.Lock:
        async with self._lock:
            lock = self._room_locks.get(key)
            if lock is None:
                lock = self._room_locks[key] = asyncio.Lock()
            return lock

    async def _deliver(self, key: str, event: Event, exclude: str | None) -> int:
        lock = await self._delivery_lock(key)
        async with lock:
            async with self._lock:
                if key == _BROADCAST_KEY:
                    ids = list(self._connections)
                else:
                    ids = list(self._rooms.get(key, ()))
                recipients = [
                    self._connections[cid]
                    for cid in ids
                    if cid != exclude and cid in self._connections
                ]
            if not recipients:
                return 0
            results = await asyncio.gather(*(c.send(event) for c in recipients))
        return sum(results)

    async def publish(
        self,
        room: str,
        event: Event,
        exclude: Connection | None = None,
    ) -> int:
        """Deliver an event to every current member of a room.

        Returns:
            Number of connections the event was delivered to
        """
        delivered = await self._deliver(
            room, event, exclude.connection_id if exclude else None
        )
        logger.debug(
            "hub_published",
            room=room,
            notification_event=event.name.value,
            delivered=delivered,
        )
        return delivered

    async def broadcast(self, event: Event, exclude: Connection | None = None) -> int:
        """Deliver an event to every connection regardless of room."""
        return await self._deliver(
            _BROADCAST_KEY, event, exclude.connection_id if exclude else None
        )

    # ==========================================================================
    # Domain events
    # ==========================================================================

    async def broadcast_new_submission(
        self,
        user_id: str,
        user_name: str,
        review_data: dict[str, Any],
    ) -> int:
        """Tell every connected moderator about a new review."""
        return await self.publish(
            ADMIN_ROOM,
            Event(
                EventName.NEW_REVIEW,
                {
                    "type": "new_review",
                    "userId": user_id,
                    "userName": user_name,
                    "reviewData": review_data,
                    "timestamp": timestamp(),
                },
            ),
        )

    async def notify_decision(self, submitter_id: str, event: Event) -> int:
        """Push a decision to the submitter's private room."""
        return await self.publish(user_room(submitter_id), event)

    async def relay_typing_indicator(
        self,
        connection: Connection,
        review_id: str | None,
        is_typing: bool,
    ) -> int:
        """Forward an admin's typing state to the other admins.

        Non-admin senders are ignored without error.
        """
        if not connection.is_admin:
            return 0
        return await self.publish(
            ADMIN_ROOM,
            Event(
                EventName.ADMIN_TYPING,
                {
                    "adminId": connection.user_id,
                    "adminName": connection.identity.display_name,
                    "reviewId": review_id,
                    "isTyping": is_typing,
                    "timestamp": timestamp(),
                },
            ),
            exclude=connection,
        )

    async def announce_presence(self, connection: Connection) -> int:
        """Broadcast adminOnline for an admin connection."""
        if not connection.is_admin:
            return 0
        return await self.broadcast(
            Event(
                EventName.ADMIN_ONLINE,
                {
                    "adminId": connection.user_id,
                    "adminName": connection.identity.display_name,
                    "timestamp": timestamp(),
                },
            )
        )

    # ==========================================================================
    # Introspection
    # ==========================================================================

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def room_members(self, room: str) -> list[Connection]:
        return [
            self._connections[cid]
            for cid in self._rooms.get(room, ())
            if cid in self._connections
        ]

    def is_online(self, user_id: str) -> bool:
        return bool(self._rooms.get(user_room(user_id)))
