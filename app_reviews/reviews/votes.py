"""Vote and report counters.

Every call increments by exactly one. Repeat votes from the same voter are
not de-duplicated.
"""

from datetime import UTC, datetime
from uuid import UUID

from app_reviews.core.logging import get_logger

from .exceptions import ReviewNotFoundError, SelfVoteError
from .models import Review, ReviewCounter, ReviewFlag
from .store import ReviewStore


logger = get_logger(__name__)


class VoteAggregator:
    """Helpful/unhelpful votes and user reports."""

    def __init__(self, store: ReviewStore):
        self.store = store

    async def _load_for_voter(
        self, review_id: UUID, voter_id: str, self_message: str | None = None
    ) -> Review:
        review = await self.store.get(review_id)
        if review is None:
            raise ReviewNotFoundError
        if review.user_id == voter_id:
            raise SelfVoteError(self_message) if self_message else SelfVoteError()
        return review

    async def _vote(
        self, review_id: UUID, voter_id: str, counter: ReviewCounter
    ) -> int:
        await self._load_for_voter(review_id, voter_id)
        value = await self.store.increment(review_id, counter)
        logger.info(
            "review_voted",
            review_id=str(review_id),
            voter_id=voter_id,
            counter=counter.value,
            value=value,
        )
        return value

    async def mark_helpful(self, review_id: UUID, voter_id: str) -> int:
        """Add a helpful vote and return the new count.

        Raises:
            ReviewNotFoundError: Review does not exist
            SelfVoteError: Voter is the review's author
        """
        return await self._vote(review_id, voter_id, ReviewCounter.HELPFUL)

    async def mark_unhelpful(self, review_id: UUID, voter_id: str) -> int:
        return await self._vote(review_id, voter_id, ReviewCounter.UNHELPFUL)

    async def report(
        self,
        review_id: UUID,
        reporter_id: str,
        reason: str | None = None,
    ) -> int:
        """Flag a review and return its new report count."""
        await self._load_for_voter(
            review_id, reporter_id, "You cannot report your own review"
        )
        flag = ReviewFlag(
            user_id=reporter_id,
            reason=(reason or "").strip(),
            created_at=datetime.now(UTC),
        )
        await self.store.append_flag(review_id, flag)
        value = await self.store.increment(review_id, ReviewCounter.REPORTS)
        logger.info(
            "review_reported",
            review_id=str(review_id),
            reporter_id=reporter_id,
            report_count=value,
        )
        return value
