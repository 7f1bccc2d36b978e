"""App review API endpoints.

Provides routes for:
- Review submission (rate limited)
- Public listing with rating stats
- Moderation queue and status decisions (admin)
- Helpful/unhelpful votes and reports
- Aggregate statistics
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app_reviews.auth.dependencies import AdminUser, ClientInfo, CurrentUser

from .dependencies import (
    ModerationServiceDep,
    ReviewServiceDep,
    VoteAggregatorDep,
    handle_review_error,
    review_rate_limit,
)
from .exceptions import ReviewError
from .models import MAX_RATING, MIN_RATING, AppStore
from .schemas import (
    HelpfulVoteResponse,
    ModerationReviewResponse,
    PendingReviewsResponse,
    PublicReviewsResponse,
    ReportResponse,
    ReportReviewRequest,
    ReviewDecisionResponse,
    SortField,
    SortOrder,
    StatisticsResponse,
    SubmitReviewRequest,
    SubmitReviewResponse,
    SubmittedReview,
    UnhelpfulVoteResponse,
    UpdateStatusRequest,
)


router = APIRouter(prefix="/api", tags=["reviews"])


@router.post(
    "/reviews/submit",
    response_model=SubmitReviewResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(review_rate_limit)],
    summary="Submit a review",
)
async def submit_review(
    data: SubmitReviewRequest,
    review_service: ReviewServiceDep,
    user: CurrentUser,
    client_info: ClientInfo,
) -> SubmitReviewResponse:
    """Submit a review for moderation.

    One pending review per user and at most 3 reviews per 24 hours.
    """
    _, ip_address, session_id = client_info
    try:
        review = await review_service.submit(
            user, data, ip_address=ip_address, session_id=session_id
        )
    except ReviewError as e:
        raise handle_review_error(e) from e

    return SubmitReviewResponse(
        message=(
            "Review submitted successfully. "
            "It will be visible after admin approval."
        ),
        review=SubmittedReview(
            id=review.review_id,
            rating=review.rating,
            review=review.review,
            status=review.status,
            created_at=review.created_at,
        ),
    )


@router.get(
    "/reviews/public",
    response_model=PublicReviewsResponse,
    summary="List approved reviews",
)
async def get_public_reviews(
    review_service: ReviewServiceDep,
    rating: Annotated[int | None, Query(ge=MIN_RATING, le=MAX_RATING)] = None,
    sort_by: Annotated[SortField, Query(alias="sortBy")] = SortField.CREATED_AT,
    sort_order: Annotated[SortOrder, Query(alias="sortOrder")] = SortOrder.DESC,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    app_store: Annotated[AppStore | None, Query(alias="appStore")] = None,
) -> PublicReviewsResponse:
    """Approved reviews with pagination, average rating and distribution."""
    try:
        return await review_service.get_public_reviews(
            page=page,
            limit=limit,
            rating=rating,
            app_store=app_store,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except ReviewError as e:
        raise handle_review_error(e) from e


@router.get(
    "/reviews/pending",
    response_model=PendingReviewsResponse,
    summary="List pending reviews (admin)",
)
async def get_pending_reviews(
    review_service: ReviewServiceDep,
    _admin: AdminUser,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> PendingReviewsResponse:
    try:
        return await review_service.get_pending_reviews(page=page, limit=limit)
    except ReviewError as e:
        raise handle_review_error(e) from e


@router.put(
    "/reviews/{review_id}/status",
    response_model=ReviewDecisionResponse,
    summary="Approve or reject a review (admin)",
)
async def update_review_status(
    review_id: UUID,
    data: UpdateStatusRequest,
    moderation_service: ModerationServiceDep,
    admin: AdminUser,
) -> ReviewDecisionResponse:
    """Decide a review; the submitter is notified if connected.

    Reviews can be re-decided any number of times.
    """
    try:
        review = await moderation_service.decide(
            review_id, data.status, admin, data.admin_response
        )
    except ReviewError as e:
        raise handle_review_error(e) from e

    return ReviewDecisionResponse(
        message=f"Review {review.status.value} successfully",
        review=ModerationReviewResponse.from_review(review),
    )


@router.post(
    "/reviews/{review_id}/helpful",
    response_model=HelpfulVoteResponse,
    summary="Mark review as helpful",
)
async def mark_helpful(
    review_id: UUID,
    votes: VoteAggregatorDep,
    user: CurrentUser,
) -> HelpfulVoteResponse:
    try:
        count = await votes.mark_helpful(review_id, user.id)
    except ReviewError as e:
        raise handle_review_error(e) from e
    return HelpfulVoteResponse(message="Review marked as helpful", helpful_votes=count)


@router.post(
    "/reviews/{review_id}/unhelpful",
    response_model=UnhelpfulVoteResponse,
    summary="Mark review as not helpful",
)
async def mark_unhelpful(
    review_id: UUID,
    votes: VoteAggregatorDep,
    user: CurrentUser,
) -> UnhelpfulVoteResponse:
    try:
        count = await votes.mark_unhelpful(review_id, user.id)
    except ReviewError as e:
        raise handle_review_error(e) from e
    return UnhelpfulVoteResponse(
        message="Review marked as not helpful", unhelpful_votes=count
    )


@router.post(
    "/reviews/{review_id}/report",
    response_model=ReportResponse,
    summary="Report a review",
)
async def report_review(
    review_id: UUID,
    votes: VoteAggregatorDep,
    user: CurrentUser,
    data: ReportReviewRequest | None = None,
) -> ReportResponse:
    try:
        count = await votes.report(
            review_id, user.id, data.reason if data else None
        )
    except ReviewError as e:
        raise handle_review_error(e) from e
    return ReportResponse(message="Review reported", report_count=count)


@router.get(
    "/stats",
    response_model=StatisticsResponse,
    summary="Review statistics",
)
async def get_statistics(review_service: ReviewServiceDep) -> StatisticsResponse:
    try:
        return await review_service.get_statistics()
    except ReviewError as e:
        raise handle_review_error(e) from e
