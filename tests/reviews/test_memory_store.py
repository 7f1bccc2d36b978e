"""Tests for the in-memory review store."""

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from app_reviews.reviews.exceptions import ReviewNotFoundError
from app_reviews.reviews.models import (
    AdminResponse,
    ReviewCounter,
    ReviewFlag,
    ReviewStatus,
    create_review,
)
from app_reviews.reviews.store import InMemoryReviewStore


NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def store() -> InMemoryReviewStore:
    return InMemoryReviewStore()


class TestInMemoryReviewStore:
    """Tests for InMemoryReviewStore."""

    @pytest.mark.asyncio
    async def test_insert_and_get(self, store: InMemoryReviewStore) -> None:
        review = create_review("u-1", "U", "u@example.com", rating=3, review="  ok  ")
        await store.insert(review)

        stored = await store.get(review.review_id)

        assert stored == review
        assert stored.review == "ok"
        assert await store.get(uuid4()) is None

    @pytest.mark.asyncio
    async def test_save_decision_writes_only_decision_fields(
        self, store: InMemoryReviewStore
    ) -> None:
        review = create_review("u-1", "U", "u@example.com", rating=3, now=NOW)
        await store.insert(review)
        await store.increment(review.review_id, ReviewCounter.HELPFUL)

        stale = replace(
            review,
            status=ReviewStatus.APPROVED,
            admin_response=AdminResponse("ok", "admin", NOW),
            updated_at=NOW + timedelta(minutes=1),
        )
        await store.save_decision(stale, previous_status=ReviewStatus.PENDING)

        stored = await store.get(review.review_id)
        assert stored.status == ReviewStatus.APPROVED
        assert stored.admin_response.text == "ok"
        assert stored.helpful_votes == 1

    @pytest.mark.asyncio
    async def test_mutations_on_missing_review_raise(
        self, store: InMemoryReviewStore
    ) -> None:
        review = create_review("u-1", "U", "u@example.com", rating=3)
        with pytest.raises(ReviewNotFoundError):
            await store.save_decision(review, ReviewStatus.PENDING)
        with pytest.raises(ReviewNotFoundError):
            await store.increment(review.review_id, ReviewCounter.REPORTS)
        with pytest.raises(ReviewNotFoundError):
            await store.append_flag(review.review_id, ReviewFlag("x", "r", NOW))

    @pytest.mark.asyncio
    async def test_window_queries(self, store: InMemoryReviewStore) -> None:
        old = create_review(
            "u-1", "U", "u@example.com", rating=3, now=NOW - timedelta(days=2)
        )
        new = create_review("u-1", "U", "u@example.com", rating=3, now=NOW)
        await store.insert(replace(old, status=ReviewStatus.REJECTED))
        await store.insert(new)

        assert await store.has_pending("u-1") is True
        assert await store.has_pending("u-2") is False
        assert await store.count_created_since("u-1", NOW - timedelta(hours=24)) == 1
        assert await store.count_created_since("u-1", NOW - timedelta(days=3)) == 2

    @pytest.mark.asyncio
    async def test_listings_newest_first(self, store: InMemoryReviewStore) -> None:
        reviews = [
            create_review(
                f"u-{i}", "U", "u@example.com", rating=3, now=NOW + timedelta(minutes=i)
            )
            for i in range(3)
        ]
        for review in reviews:
            await store.insert(review)
        await store.save_decision(
            replace(reviews[1], status=ReviewStatus.APPROVED), ReviewStatus.PENDING
        )

        pending = await store.list_by_status(ReviewStatus.PENDING)
        everything = await store.list_all()

        assert [r.user_id for r in pending] == ["u-2", "u-0"]
        assert [r.user_id for r in everything] == ["u-2", "u-1", "u-0"]
