"""Review store adapter.

The store is the single source of truth for review records. Writes for the
same review are last-write-wins; counter bumps are atomic per call.
"""

from dataclasses import replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from .exceptions import ReviewNotFoundError
from .models import Review, ReviewCounter, ReviewFlag, ReviewStatus


class ReviewStore(Protocol):
    """Async persistence interface used by the review services."""

    async def insert(self, review: Review) -> None: ...

    async def get(self, review_id: UUID) -> Review | None: ...

    async def save_decision(
        self, review: Review, previous_status: ReviewStatus
    ) -> None: ...

    async def increment(
        self, review_id: UUID, counter: ReviewCounter, amount: int = 1
    ) -> int: ...

    async def append_flag(self, review_id: UUID, flag: ReviewFlag) -> None: ...

    async def has_pending(self, user_id: str) -> bool: ...

    async def count_created_since(self, user_id: str, since: datetime) -> int: ...

    async def list_by_status(self, status: ReviewStatus) -> list[Review]: ...

    async def list_all(self) -> list[Review]: ...


class InMemoryReviewStore:
    """Process-local review store.

    Every method completes without awaiting, so each call is atomic with
    respect to other tasks on the event loop.
    """

    def __init__(self) -> None:
        self._reviews: dict[UUID, Review] = {}

    async def insert(self, review: Review) -> None:
        self._reviews[review.review_id] = review

    async def get(self, review_id: UUID) -> Review | None:
        return self._reviews.get(review_id)

    async def save_decision(
        self, review: Review, previous_status: ReviewStatus
    ) -> None:
        current = self._reviews.get(review.review_id)
        if current is None:
            raise ReviewNotFoundError
        # Only decision fields are written; counters and flags keep their
        # latest values.
        self._reviews[review.review_id] = replace(
            current,
            status=review.status,
            is_featured=review.is_featured,
            admin_response=review.admin_response,
            updated_at=review.updated_at,
        )

    async def increment(
        self, review_id: UUID, counter: ReviewCounter, amount: int = 1
    ) -> int:
        current = self._reviews.get(review_id)
        if current is None:
            raise ReviewNotFoundError
        value = current.counter(counter) + amount
        self._reviews[review_id] = replace(
            current, **{counter.value: value}, updated_at=datetime.now(UTC)
        )
        return value

    async def append_flag(self, review_id: UUID, flag: ReviewFlag) -> None:
        current = self._reviews.get(review_id)
        if current is None:
            raise ReviewNotFoundError
        self._reviews[review_id] = replace(current, flags=(*current.flags, flag))

    async def has_pending(self, user_id: str) -> bool:
        return any(
            r.user_id == user_id and r.status == ReviewStatus.PENDING
            for r in self._reviews.values()
        )

    async def count_created_since(self, user_id: str, since: datetime) -> int:
        return sum(
            1
            for r in self._reviews.values()
            if r.user_id == user_id and r.created_at >= since
        )

    async def list_by_status(self, status: ReviewStatus) -> list[Review]:
        return sorted(
            (r for r in self._reviews.values() if r.status == status),
            key=lambda r: r.created_at,
            reverse=True,
        )

    async def list_all(self) -> list[Review]:
        return sorted(self._reviews.values(), key=lambda r: r.created_at, reverse=True)
