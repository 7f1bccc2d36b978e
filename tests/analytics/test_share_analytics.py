"""Tests for share tracking and aggregation."""

from collections.abc import Callable
from datetime import UTC, date, datetime

import pytest
from fastapi.testclient import TestClient

from app_reviews.analytics.models import SharePlatform, create_share_event
from app_reviews.analytics.schemas import GroupBy, TrackShareRequest
from app_reviews.analytics.service import ShareAnalyticsService
from app_reviews.analytics.store import InMemoryShareStore
from app_reviews.auth.permissions import UserRole
from app_reviews.auth.schemas import Identity


def at(day: int, month: int = 3, hour: int = 12) -> datetime:
    return datetime(2025, month, day, hour, tzinfo=UTC)


@pytest.fixture
def store() -> InMemoryShareStore:
    return InMemoryShareStore()


@pytest.fixture
def service(store: InMemoryShareStore) -> ShareAnalyticsService:
    return ShareAnalyticsService(store)


@pytest.fixture
async def seeded(store: InMemoryShareStore) -> None:
    plan = [
        (SharePlatform.WHATSAPP, "u1", at(1)),
        (SharePlatform.WHATSAPP, "u1", at(1, hour=23)),
        (SharePlatform.WHATSAPP, "u2", at(1)),
        (SharePlatform.TWITTER, "u1", at(2)),
        (SharePlatform.TWITTER, None, at(2)),
        (SharePlatform.COPY, "u3", at(5, month=4)),
    ]
    for platform, user_id, created_at in plan:
        await store.insert(
            create_share_event(
                platform, "https://app/x", now=created_at, user_id=user_id
            )
        )


class TestCreateShareEvent:
    """URL fallback rules."""

    def test_explicit_url_wins(self) -> None:
        share = create_share_event(
            SharePlatform.EMAIL, "https://app/a", referrer="https://ref"
        )
        assert share.shared_url == "https://app/a"

    def test_referrer_then_unknown(self) -> None:
        assert (
            create_share_event(SharePlatform.EMAIL, referrer="https://ref").shared_url
            == "https://ref"
        )
        assert create_share_event(SharePlatform.EMAIL).shared_url == "Unknown"


class TestTrackShare:
    """Tests for track_share."""

    @pytest.mark.asyncio
    async def test_request_headers_fill_gaps(
        self,
        service: ShareAnalyticsService,
        store: InMemoryShareStore,
        student: Identity,
    ) -> None:
        data = TrackShareRequest(
            platform=SharePlatform.TELEGRAM, location={"country": "BR"}
        )

        share = await service.track_share(
            student,
            data,
            user_agent="Mozilla/5.0",
            ip_address="10.0.0.7",
            referrer="https://app/reviews",
        )

        assert share.user_id == "student-1"
        assert share.shared_url == "https://app/reviews"
        assert share.device_info.user_agent == "Mozilla/5.0"
        assert share.location.ip_address == "10.0.0.7"
        assert share.location.country == "BR"
        assert await store.query() == [share]

    @pytest.mark.asyncio
    async def test_client_user_agent_kept(
        self, service: ShareAnalyticsService, student: Identity
    ) -> None:
        data = TrackShareRequest(
            platform=SharePlatform.SMS, device_info={"userAgent": "MyApp/2.0"}
        )

        share = await service.track_share(student, data, user_agent="Mozilla/5.0")

        assert share.device_info.user_agent == "MyApp/2.0"


@pytest.mark.usefixtures("seeded")
class TestShareAnalytics:
    """Tests for get_share_analytics."""

    @pytest.mark.asyncio
    async def test_grouped_by_day(self, service: ShareAnalyticsService) -> None:
        result = await service.get_share_analytics()

        groups = [
            (g.date, g.platform, g.count, g.unique_users) for g in result.analytics
        ]
        assert groups == [
            ("2025-04-05", SharePlatform.COPY, 1, 1),
            ("2025-03-02", SharePlatform.TWITTER, 2, 1),
            ("2025-03-01", SharePlatform.WHATSAPP, 3, 2),
        ]
        assert result.summary.total_shares == 6
        assert result.summary.unique_users == 3
        assert result.summary.start_date == "Beginning"

    @pytest.mark.asyncio
    async def test_grouped_by_month(self, service: ShareAnalyticsService) -> None:
        result = await service.get_share_analytics(group_by=GroupBy.MONTH)

        groups = [(g.date, g.platform, g.count) for g in result.analytics]
        assert groups == [
            ("2025-04", SharePlatform.COPY, 1),
            ("2025-03", SharePlatform.WHATSAPP, 3),
            ("2025-03", SharePlatform.TWITTER, 2),
        ]

    @pytest.mark.asyncio
    async def test_end_date_includes_whole_day(
        self, service: ShareAnalyticsService
    ) -> None:
        result = await service.get_share_analytics(
            start_date=date(2025, 3, 1), end_date=date(2025, 3, 1)
        )

        assert result.summary.total_shares == 3
        assert result.summary.start_date == "2025-03-01"
        assert result.summary.end_date == "2025-03-01"

    @pytest.mark.asyncio
    async def test_platform_filter(self, service: ShareAnalyticsService) -> None:
        result = await service.get_share_analytics(platform=SharePlatform.TWITTER)

        assert result.summary.total_shares == 2
        assert result.summary.unique_users == 1


class TestShareRoutes:
    """POST /api/analytics/share and GET /api/analytics/shares"""

    def test_track_then_report(
        self, client: TestClient, auth_headers: Callable[..., dict[str, str]]
    ) -> None:
        user = auth_headers("user-a")
        admin = auth_headers("admin-1", UserRole.ADMIN)

        tracked = client.post(
            "/api/analytics/share",
            json={"platform": "whatsapp"},
            headers={**user, "Referer": "https://app/reviews"},
        )
        assert tracked.status_code == 200
        assert tracked.json() == {
            "success": True,
            "message": "Share tracked successfully",
        }

        report = client.get(
            "/api/analytics/shares", params={"groupBy": "year"}, headers=admin
        )
        assert report.status_code == 200
        body = report.json()
        assert body["summary"]["totalShares"] == 1
        assert body["analytics"][0]["platform"] == "whatsapp"
        assert body["analytics"][0]["uniqueUsers"] == 1
        assert len(body["analytics"][0]["date"]) == 4

    def test_unknown_platform_rejected(
        self, client: TestClient, auth_headers: Callable[..., dict[str, str]]
    ) -> None:
        response = client.post(
            "/api/analytics/share",
            json={"platform": "myspace"},
            headers=auth_headers("user-a"),
        )
        assert response.status_code == 400

    def test_report_requires_admin(
        self, client: TestClient, auth_headers: Callable[..., dict[str, str]]
    ) -> None:
        response = client.get("/api/analytics/shares", headers=auth_headers("user-a"))
        assert response.status_code == 403

    def test_bad_date(
        self, client: TestClient, auth_headers: Callable[..., dict[str, str]]
    ) -> None:
        response = client.get(
            "/api/analytics/shares",
            params={"startDate": "yesterday"},
            headers=auth_headers("admin-1", UserRole.ADMIN),
        )
        assert response.status_code == 400
