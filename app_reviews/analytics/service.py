"""Share tracking and aggregation."""

from collections import defaultdict
from dataclasses import replace
from datetime import UTC, date, datetime, time

from app_reviews.auth.schemas import Identity
from app_reviews.core.logging import get_logger

from .models import (
    ShareDeviceInfo,
    ShareEvent,
    ShareLocation,
    SharePlatform,
    create_share_event,
)
from .schemas import (
    GROUP_FORMATS,
    GroupBy,
    ShareAnalyticsResponse,
    ShareGroup,
    ShareSummary,
    TrackShareRequest,
)
from .store import ShareStore


logger = get_logger(__name__)

OPEN_START = "Beginning"


class ShareAnalyticsService:
    """Records share events and reports grouped counts."""

    def __init__(self, store: ShareStore):
        self.store = store

    async def track_share(
        self,
        user: Identity,
        data: TrackShareRequest,
        user_agent: str | None = None,
        ip_address: str | None = None,
        session_id: str | None = None,
        referrer: str | None = None,
    ) -> ShareEvent:
        """Store a share event built from the request and its headers."""
        device = data.device_info.to_domain() if data.device_info else ShareDeviceInfo()
        if device.user_agent is None and user_agent:
            device = replace(device, user_agent=user_agent)

        location = ShareLocation(
            ip_address=ip_address,
            **(data.location.model_dump() if data.location else {}),
        )

        share = create_share_event(
            platform=data.platform,
            shared_url=data.shared_url,
            referrer=referrer,
            share_method=data.share_method,
            user_id=user.id,
            user_name=user.name or None,
            user_email=user.email or None,
            device_info=device,
            location=location,
            session_id=session_id,
            campaign=data.campaign,
            tags=tuple(data.tags),
            success=data.success,
            error=data.error,
        )
        await self.store.insert(share)

        logger.info(
            "share_tracked",
            share_id=str(share.share_id),
            user_id=user.id,
            platform=share.platform.value,
        )
        return share

    async def get_share_analytics(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        platform: SharePlatform | None = None,
        group_by: GroupBy = GroupBy.DAY,
    ) -> ShareAnalyticsResponse:
        """Counts and distinct sharers per (period, platform).

        Both dates are inclusive whole UTC days.
        """
        start = datetime.combine(start_date, time.min, UTC) if start_date else None
        end = datetime.combine(end_date, time.max, UTC) if end_date else None

        shares = await self.store.query(start, end, platform)

        fmt = GROUP_FORMATS[group_by]
        counts: dict[tuple[str, SharePlatform], int] = defaultdict(int)
        users: dict[tuple[str, SharePlatform], set[str]] = defaultdict(set)
        for share in shares:
            key = (share.created_at.astimezone(UTC).strftime(fmt), share.platform)
            counts[key] += 1
            if share.user_id:
                users[key].add(share.user_id)

        groups = [
            ShareGroup(
                date=period,
                platform=share_platform,
                count=count,
                unique_users=len(users[(period, share_platform)]),
            )
            for (period, share_platform), count in counts.items()
        ]
        groups.sort(key=lambda g: (g.date, g.count), reverse=True)

        return ShareAnalyticsResponse(
            analytics=groups,
            summary=ShareSummary(
                total_shares=len(shares),
                unique_users=len({s.user_id for s in shares if s.user_id}),
                start_date=start_date.isoformat() if start_date else OPEN_START,
                end_date=(end_date or datetime.now(UTC).date()).isoformat(),
            ),
        )
