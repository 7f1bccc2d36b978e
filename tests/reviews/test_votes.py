"""Tests for the vote/report aggregator."""

from uuid import uuid4

import pytest

from app_reviews.reviews.exceptions import ReviewNotFoundError, SelfVoteError
from app_reviews.reviews.models import Review, create_review
from app_reviews.reviews.store import InMemoryReviewStore
from app_reviews.reviews.votes import VoteAggregator


@pytest.fixture
def store() -> InMemoryReviewStore:
    return InMemoryReviewStore()


@pytest.fixture
def votes(store: InMemoryReviewStore) -> VoteAggregator:
    return VoteAggregator(store)


@pytest.fixture
async def review(store: InMemoryReviewStore) -> Review:
    review = create_review("author", "Author", "author@example.com", rating=5)
    await store.insert(review)
    return review


class TestMarkHelpful:
    """Tests for mark_helpful."""

    @pytest.mark.asyncio
    async def test_increments_by_one(
        self, votes: VoteAggregator, store: InMemoryReviewStore, review: Review
    ) -> None:
        assert await votes.mark_helpful(review.review_id, "voter-1") == 1
        assert (await store.get(review.review_id)).helpful_votes == 1

    @pytest.mark.asyncio
    async def test_repeat_votes_not_deduplicated(
        self, votes: VoteAggregator, review: Review
    ) -> None:
        await votes.mark_helpful(review.review_id, "voter-1")
        await votes.mark_helpful(review.review_id, "voter-1")
        assert await votes.mark_helpful(review.review_id, "voter-1") == 3

    @pytest.mark.asyncio
    async def test_self_vote_rejected_and_counter_unchanged(
        self, votes: VoteAggregator, store: InMemoryReviewStore, review: Review
    ) -> None:
        with pytest.raises(SelfVoteError) as exc_info:
            await votes.mark_helpful(review.review_id, "author")

        assert exc_info.value.message == "You cannot vote on your own review"
        assert (await store.get(review.review_id)).helpful_votes == 0

    @pytest.mark.asyncio
    async def test_missing_review(self, votes: VoteAggregator) -> None:
        with pytest.raises(ReviewNotFoundError):
            await votes.mark_helpful(uuid4(), "voter-1")


class TestMarkUnhelpful:
    """Tests for mark_unhelpful."""

    @pytest.mark.asyncio
    async def test_only_unhelpful_counter_moves(
        self, votes: VoteAggregator, store: InMemoryReviewStore, review: Review
    ) -> None:
        assert await votes.mark_unhelpful(review.review_id, "voter-1") == 1

        stored = await store.get(review.review_id)
        assert stored.unhelpful_votes == 1
        assert stored.helpful_votes == 0

    @pytest.mark.asyncio
    async def test_self_vote_rejected(
        self, votes: VoteAggregator, review: Review
    ) -> None:
        with pytest.raises(SelfVoteError):
            await votes.mark_unhelpful(review.review_id, "author")


class TestReport:
    """Tests for report."""

    @pytest.mark.asyncio
    async def test_appends_flag_and_counts(
        self, votes: VoteAggregator, store: InMemoryReviewStore, review: Review
    ) -> None:
        assert await votes.report(review.review_id, "r-1", "  spam ") == 1
        assert await votes.report(review.review_id, "r-2") == 2

        stored = await store.get(review.review_id)
        assert stored.report_count == 2
        assert [f.user_id for f in stored.flags] == ["r-1", "r-2"]
        assert stored.flags[0].reason == "spam"
        assert stored.flags[1].reason == ""

    @pytest.mark.asyncio
    async def test_self_report_rejected(
        self, votes: VoteAggregator, store: InMemoryReviewStore, review: Review
    ) -> None:
        with pytest.raises(SelfVoteError) as exc_info:
            await votes.report(review.review_id, "author", "mine")

        assert exc_info.value.message == "You cannot report your own review"
        assert (await store.get(review.review_id)).flags == ()
