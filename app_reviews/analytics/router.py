"""Share analytics API endpoints.

Provides routes for:
- Share tracking (rate limited)
- Grouped share counts (admin)
"""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from app_reviews.auth.dependencies import AdminUser, ClientInfo, CurrentUser
from app_reviews.core.schemas import MessageResponse
from app_reviews.reviews.dependencies import handle_review_error
from app_reviews.reviews.exceptions import ReviewError

from .dependencies import ShareServiceDep, share_rate_limit
from .models import SharePlatform
from .schemas import GroupBy, ShareAnalyticsResponse, TrackShareRequest


router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.post(
    "/share",
    response_model=MessageResponse,
    dependencies=[Depends(share_rate_limit)],
    summary="Track a share",
)
async def track_share(
    request: Request,
    data: TrackShareRequest,
    share_service: ShareServiceDep,
    user: CurrentUser,
    client_info: ClientInfo,
) -> MessageResponse:
    """Record a share; the URL defaults to the Referer header."""
    user_agent, ip_address, session_id = client_info
    try:
        await share_service.track_share(
            user,
            data,
            user_agent=user_agent,
            ip_address=ip_address,
            session_id=session_id,
            referrer=request.headers.get("referer"),
        )
    except ReviewError as e:
        raise handle_review_error(e) from e
    return MessageResponse(message="Share tracked successfully")


@router.get(
    "/shares",
    response_model=ShareAnalyticsResponse,
    summary="Share analytics (admin)",
)
async def get_share_analytics(
    share_service: ShareServiceDep,
    _admin: AdminUser,
    start_date: Annotated[date | None, Query(alias="startDate")] = None,
    end_date: Annotated[date | None, Query(alias="endDate")] = None,
    platform: SharePlatform | None = None,
    group_by: Annotated[GroupBy, Query(alias="groupBy")] = GroupBy.DAY,
) -> ShareAnalyticsResponse:
    """Share counts grouped by period and platform, with a summary."""
    try:
        return await share_service.get_share_analytics(
            start_date=start_date,
            end_date=end_date,
            platform=platform,
            group_by=group_by,
        )
    except ReviewError as e:
        raise handle_review_error(e) from e
