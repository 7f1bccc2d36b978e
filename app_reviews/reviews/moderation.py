"""Moderation state machine.

Status is a tagged value (``ReviewStatus``) and an admin decision is a
``ModerationAction``. ``transition`` is total over every (status, action)
pair: any review may be re-decided any number of times, and there is no
illegal transition.
"""

from dataclasses import replace
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from app_reviews.auth.schemas import Identity
from app_reviews.core.logging import get_logger
from app_reviews.notifications.events import (
    APPROVED_MESSAGE,
    DEFAULT_REJECTION_REASON,
    Event,
    EventName,
    timestamp,
)
from app_reviews.notifications.hub import NotificationHub

from .exceptions import InvalidStatusError, ReviewNotFoundError
from .models import AdminResponse, Review, ReviewStatus
from .store import ReviewStore


logger = get_logger(__name__)


class ModerationAction(str, Enum):
    """Admin decision; the value is the status it leads to."""

    APPROVE = "approved"
    REJECT = "rejected"


def parse_action(value: str | ModerationAction | None) -> ModerationAction:
    """Map a requested target status to an action.

    Raises:
        InvalidStatusError: For anything other than approved/rejected
    """
    try:
        return ModerationAction(value)
    except ValueError:
        raise InvalidStatusError from None


_TRANSITIONS: dict[tuple[ReviewStatus, ModerationAction], ReviewStatus] = {
    (ReviewStatus.PENDING, ModerationAction.APPROVE): ReviewStatus.APPROVED,
    (ReviewStatus.PENDING, ModerationAction.REJECT): ReviewStatus.REJECTED,
    (ReviewStatus.APPROVED, ModerationAction.APPROVE): ReviewStatus.APPROVED,
    (ReviewStatus.APPROVED, ModerationAction.REJECT): ReviewStatus.REJECTED,
    (ReviewStatus.REJECTED, ModerationAction.APPROVE): ReviewStatus.APPROVED,
    (ReviewStatus.REJECTED, ModerationAction.REJECT): ReviewStatus.REJECTED,
}


def transition(current: ReviewStatus, action: ModerationAction) -> ReviewStatus:
    """Next status for a decision. Defined for every pair."""
    return _TRANSITIONS[(current, action)]


def apply_decision(
    review: Review,
    action: ModerationAction,
    decider_id: str,
    response_text: str | None = None,
    now: datetime | None = None,
) -> Review:
    """Return the review as it looks after the decision.

    - Approval always clears ``is_featured``.
    - A non-blank response replaces the previous one; a blank or missing
      response keeps whatever was there.
    """
    now = now or datetime.now(UTC)
    status = transition(review.status, action)

    admin_response = review.admin_response
    text = (response_text or "").strip()
    if text:
        admin_response = AdminResponse(
            text=text, responded_by=decider_id, responded_at=now
        )

    return replace(
        review,
        status=status,
        is_featured=False if status == ReviewStatus.APPROVED else review.is_featured,
        admin_response=admin_response,
        updated_at=now,
    )


def decision_event(review: Review) -> Event:
    """Event sent to the submitter after a decision."""
    approved = review.status == ReviewStatus.APPROVED
    data = {
        "reviewId": str(review.review_id),
        "status": review.status.value,
        "adminResponse": (
            review.admin_response.to_dict() if review.admin_response else None
        ),
        "timestamp": timestamp(),
    }
    if approved:
        data["message"] = APPROVED_MESSAGE
        return Event(EventName.REVIEW_APPROVED, data)

    data["reason"] = (
        review.admin_response.text
        if review.admin_response
        else DEFAULT_REJECTION_REASON
    )
    data["message"] = data["reason"]
    return Event(EventName.REVIEW_REJECTED, data)


class ModerationService:
    """Applies admin decisions and notifies submitters."""

    def __init__(self, store: ReviewStore, hub: NotificationHub):
        self.store = store
        self.hub = hub

    async def decide(
        self,
        review_id: UUID,
        target_status: str | ModerationAction,
        decider: Identity,
        response_text: str | None = None,
    ) -> Review:
        """Approve or reject a review.

        Raises:
            InvalidStatusError: Target is not approved/rejected (no mutation)
            ReviewNotFoundError: Review does not exist
        """
        action = parse_action(target_status)

        review = await self.store.get(review_id)
        if review is None:
            raise ReviewNotFoundError

        updated = apply_decision(review, action, decider.id, response_text)
        await self.store.save_decision(updated, previous_status=review.status)

        logger.info(
            "review_decided",
            review_id=str(review_id),
            previous_status=review.status.value,
            status=updated.status.value,
            decided_by=decider.id,
            has_response=updated.admin_response is not None,
        )

        # Fire-and-forget: an offline submitter simply misses the event
        await self.hub.notify_decision(updated.user_id, decision_event(updated))
        return updated
