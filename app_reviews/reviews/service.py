"""Review service layer.

Business logic for:
- Submission (admission gate, persistence, moderator broadcast)
- Public listing with filters, sorting and rating stats
- Moderation queue listing
- Aggregate statistics
"""

from collections import Counter

from app_reviews.auth.schemas import Identity
from app_reviews.core.logging import get_logger
from app_reviews.core.schemas import PaginationInfo
from app_reviews.notifications.hub import NotificationHub

from .admission import AdmissionGate
from .models import AppStore, Review, ReviewMetadata, ReviewStatus, create_review
from .schemas import (
    ModerationReviewResponse,
    PendingReviewsResponse,
    PlatformCount,
    PublicReviewsResponse,
    RatingStats,
    ReviewResponse,
    SortField,
    SortOrder,
    StatisticsResponse,
    StatisticsSchema,
    SubmitReviewRequest,
    average_rating,
    rating_distribution,
)
from .store import ReviewStore


logger = get_logger(__name__)

TOP_ITEMS = 5

_SORT_KEYS = {
    SortField.CREATED_AT: lambda r: (r.created_at,),
    SortField.RATING: lambda r: (r.rating, r.created_at),
    SortField.HELPFUL_VOTES: lambda r: (r.helpful_votes, r.created_at),
}


class ReviewService:
    """Submission and read paths for app reviews."""

    def __init__(self, store: ReviewStore, gate: AdmissionGate, hub: NotificationHub):
        self.store = store
        self.gate = gate
        self.hub = hub

    async def submit(
        self,
        user: Identity,
        data: SubmitReviewRequest,
        ip_address: str | None = None,
        session_id: str | None = None,
    ) -> Review:
        """Admit and store a new pending review, then alert moderators.

        Raises:
            DuplicatePendingError: User already has a pending review
            RateExceededError: User hit the daily submission limit
        """
        await self.gate.check(user.id)

        review = create_review(
            user_id=user.id,
            user_name=user.display_name,
            user_email=user.email,
            rating=data.rating,
            review=data.review,
            app_store=data.app_store,
            device_info=data.device_info.to_domain() if data.device_info else None,
            metadata=ReviewMetadata(ip_address=ip_address, session_id=session_id),
        )
        await self.store.insert(review)

        logger.info(
            "review_submitted",
            review_id=str(review.review_id),
            user_id=user.id,
            rating=review.rating,
            app_store=review.app_store.value,
        )

        await self.hub.broadcast_new_submission(
            review.user_id, review.user_name, review.to_summary()
        )
        return review

    async def get_public_reviews(
        self,
        page: int = 1,
        limit: int = 10,
        rating: int | None = None,
        app_store: AppStore | None = None,
        sort_by: SortField = SortField.CREATED_AT,
        sort_order: SortOrder = SortOrder.DESC,
    ) -> PublicReviewsResponse:
        """Approved reviews plus rating stats over every approved review."""
        approved = await self.store.list_by_status(ReviewStatus.APPROVED)

        filtered = [
            r
            for r in approved
            if (rating is None or r.rating == rating)
            and (app_store is None or r.app_store == app_store)
        ]
        filtered.sort(key=_SORT_KEYS[sort_by], reverse=sort_order == SortOrder.DESC)

        offset = (page - 1) * limit
        return PublicReviewsResponse(
            reviews=[
                ReviewResponse.from_review(r) for r in filtered[offset : offset + limit]
            ],
            pagination=PaginationInfo.build(page, limit, len(filtered)),
            stats=RatingStats(
                average_rating=average_rating(approved, 1),
                total_reviews=len(approved),
                rating_distribution=rating_distribution(approved),
            ),
        )

    async def get_pending_reviews(
        self, page: int = 1, limit: int = 20
    ) -> PendingReviewsResponse:
        """Moderation queue, newest first."""
        pending = await self.store.list_by_status(ReviewStatus.PENDING)
        offset = (page - 1) * limit
        return PendingReviewsResponse(
            reviews=[
                ModerationReviewResponse.from_review(r)
                for r in pending[offset : offset + limit]
            ],
            pagination=PaginationInfo.build(page, limit, len(pending)),
        )

    async def get_statistics(self) -> StatisticsResponse:
        """Counts by status, rating stats and top items across all reviews."""
        reviews = await self.store.list_all()
        by_status = Counter(r.status for r in reviews)

        approved = [r for r in reviews if r.status == ReviewStatus.APPROVED]
        most_helpful = sorted(approved, key=lambda r: r.helpful_votes, reverse=True)

        platforms = Counter(r.app_store for r in reviews).most_common(TOP_ITEMS)

        return StatisticsResponse(
            statistics=StatisticsSchema(
                total_reviews=len(reviews),
                pending_reviews=by_status[ReviewStatus.PENDING],
                approved_reviews=by_status[ReviewStatus.APPROVED],
                rejected_reviews=by_status[ReviewStatus.REJECTED],
                average_rating=average_rating(reviews, 2),
                rating_distribution=rating_distribution(reviews),
                recent_reviews=[
                    ReviewResponse.from_review(r) for r in most_helpful[:TOP_ITEMS]
                ],
                top_platforms=[
                    PlatformCount(app_store=store, count=count)
                    for store, count in platforms
                ],
            )
        )
