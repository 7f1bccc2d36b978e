"""Real-time event vocabulary.

Every frame on the notification socket is ``{"event": <name>, "data": {...}}``.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class EventName(str, Enum):
    """Server to client events."""

    CONNECTED = "connected"
    NEW_REVIEW = "newReviewNotification"
    REVIEW_APPROVED = "reviewApproved"
    REVIEW_REJECTED = "reviewRejected"
    REVIEW_SUBMITTED = "reviewSubmitted"
    ADMIN_TYPING = "adminTyping"
    ADMIN_ONLINE = "adminOnline"
    ADMIN_OFFLINE = "adminOffline"
    ERROR = "error"
    PING = "ping"
    PONG = "pong"


class ClientEvent(str, Enum):
    """Client to server events."""

    SUBMIT_REVIEW = "submitReview"
    APPROVE_REVIEW = "approveReview"
    REJECT_REVIEW = "rejectReview"
    TYPING_RESPONSE = "typingResponse"
    USER_ONLINE = "userOnline"
    PING = "ping"
    PONG = "pong"


APPROVED_MESSAGE = "Your review has been approved and is now visible to the public"
DEFAULT_REJECTION_REASON = "Your review did not meet our guidelines"


def timestamp() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True)
class Event:
    """A named payload ready for delivery."""

    name: EventName
    data: dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> dict[str, Any]:
        return {"event": self.name.value, "data": self.data}
