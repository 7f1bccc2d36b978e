"""Tests for the submission admission gate."""

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest

from app_reviews.reviews.admission import (
    AdmissionDecision,
    AdmissionGate,
    AdmissionRejection,
)
from app_reviews.reviews.exceptions import DuplicatePendingError, RateExceededError
from app_reviews.reviews.models import ReviewStatus, create_review
from app_reviews.reviews.store import InMemoryReviewStore


NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def store() -> InMemoryReviewStore:
    return InMemoryReviewStore()


@pytest.fixture
def gate(store: InMemoryReviewStore) -> AdmissionGate:
    return AdmissionGate(store, daily_limit=3, window=timedelta(hours=24))


async def add_review(
    store: InMemoryReviewStore,
    user_id: str,
    created_at: datetime,
    status: ReviewStatus = ReviewStatus.APPROVED,
) -> None:
    review = create_review(user_id, "Name", "n@example.com", rating=4, now=created_at)
    await store.insert(replace(review, status=status))


class TestAdmit:
    """Tests for AdmissionGate.admit."""

    @pytest.mark.asyncio
    async def test_new_submitter_allowed(self, gate: AdmissionGate) -> None:
        decision = await gate.admit("u-1", now=NOW)
        assert decision == AdmissionDecision(allowed=True)

    @pytest.mark.asyncio
    async def test_pending_review_rejects(
        self, gate: AdmissionGate, store: InMemoryReviewStore
    ) -> None:
        await add_review(store, "u-1", NOW - timedelta(days=10), ReviewStatus.PENDING)

        decision = await gate.admit("u-1", now=NOW)

        assert decision.allowed is False
        assert decision.reason == AdmissionRejection.DUPLICATE_PENDING

    @pytest.mark.asyncio
    async def test_duplicate_pending_checked_before_volume(
        self, gate: AdmissionGate, store: InMemoryReviewStore
    ) -> None:
        for hours in (1, 2, 3):
            await add_review(store, "u-1", NOW - timedelta(hours=hours))
        await add_review(store, "u-1", NOW - timedelta(minutes=5), ReviewStatus.PENDING)

        decision = await gate.admit("u-1", now=NOW)

        assert decision.reason == AdmissionRejection.DUPLICATE_PENDING

    @pytest.mark.asyncio
    async def test_two_recent_reviews_still_allowed(
        self, gate: AdmissionGate, store: InMemoryReviewStore
    ) -> None:
        await add_review(store, "u-1", NOW - timedelta(hours=1))
        await add_review(store, "u-1", NOW - timedelta(hours=2), ReviewStatus.REJECTED)

        assert (await gate.admit("u-1", now=NOW)).allowed is True

    @pytest.mark.asyncio
    async def test_fourth_within_window_rejected(
        self, gate: AdmissionGate, store: InMemoryReviewStore
    ) -> None:
        await add_review(store, "u-1", NOW - timedelta(hours=1))
        await add_review(store, "u-1", NOW - timedelta(hours=5), ReviewStatus.REJECTED)
        await add_review(store, "u-1", NOW - timedelta(hours=23))

        decision = await gate.admit("u-1", now=NOW)

        assert decision.allowed is False
        assert decision.reason == AdmissionRejection.RATE_EXCEEDED

    @pytest.mark.asyncio
    async def test_allowed_again_after_window_elapses(
        self, gate: AdmissionGate, store: InMemoryReviewStore
    ) -> None:
        oldest = NOW - timedelta(hours=23)
        await add_review(store, "u-1", oldest)
        await add_review(store, "u-1", NOW - timedelta(hours=2))
        await add_review(store, "u-1", NOW - timedelta(hours=1))

        assert (await gate.admit("u-1", now=NOW)).allowed is False

        later = oldest + timedelta(hours=24, seconds=1)
        assert (await gate.admit("u-1", now=later)).allowed is True

    @pytest.mark.asyncio
    async def test_other_users_do_not_count(
        self, gate: AdmissionGate, store: InMemoryReviewStore
    ) -> None:
        for hours in (1, 2, 3):
            await add_review(store, "u-2", NOW - timedelta(hours=hours))
        await add_review(store, "u-3", NOW, ReviewStatus.PENDING)

        assert (await gate.admit("u-1", now=NOW)).allowed is True

    @pytest.mark.asyncio
    async def test_uses_clock_when_now_omitted(
        self, store: InMemoryReviewStore
    ) -> None:
        gate = AdmissionGate(store, clock=lambda: NOW)
        for hours in (1, 2, 3):
            await add_review(store, "u-1", NOW - timedelta(hours=hours))

        assert (await gate.admit("u-1")).reason == AdmissionRejection.RATE_EXCEEDED


class TestCheck:
    """Tests for AdmissionGate.check."""

    @pytest.mark.asyncio
    async def test_duplicate_pending_raises(
        self, gate: AdmissionGate, store: InMemoryReviewStore
    ) -> None:
        await add_review(store, "u-1", NOW, ReviewStatus.PENDING)

        with pytest.raises(DuplicatePendingError) as exc_info:
            await gate.check("u-1", now=NOW)

        assert exc_info.value.code == "duplicate_pending"

    @pytest.mark.asyncio
    async def test_rate_exceeded_raises(
        self, gate: AdmissionGate, store: InMemoryReviewStore
    ) -> None:
        for hours in (1, 2, 3):
            await add_review(store, "u-1", NOW - timedelta(hours=hours))

        with pytest.raises(RateExceededError) as exc_info:
            await gate.check("u-1", now=NOW)

        assert exc_info.value.code == "rate_exceeded"

    @pytest.mark.asyncio
    async def test_allowed_returns_none(self, gate: AdmissionGate) -> None:
        assert await gate.check("u-1", now=NOW) is None
