# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Share event stores.

``query`` bounds are inclusive datetimes; either may be None for an open
range.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from app_reviews.core.logging import get_logger
from app_reviews.reviews.exceptions import StoreUnavailableError

from .models import DAY_FORMAT, DAYS_BUCKET, ShareEvent, SharePlatform


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class ShareStore(Protocol):
    async def insert(self, share: ShareEvent) -> None: ...

    async def query(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        platform: SharePlatform | None = None,
    ) -> list[ShareEvent]: ...


def _matches(
    share: ShareEvent,
    start: datetime | None,
    end: datetime | None,
    platform: SharePlatform | None,
) -> bool:
    if start is not None and share.created_at < start:
        return False
    if end is not None and share.created_at > end:
        return False
    return platform is None or share.platform == platform


class InMemoryShareStore:
    """Process-local append-only share log."""

    def __init__(self) -> None:
        self._shares: list[ShareEvent] = []

    async def insert(self, share: ShareEvent) -> None:
        self._shares.append(share)

    async def query(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        platform: SharePlatform | None = None,
    ) -> list[ShareEvent]:
        return [s for s in self._shares if _matches(s, start, end, platform)]


class CassandraShareStore:
    """Share log over day-partitioned ``share_analytics``."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_share = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.share_analytics
            (day, created_at, share_id, user_id, user_name, user_email, platform,
             share_method, shared_url, device_info, location, session_id,
             referrer, campaign, tags, success, error)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._insert_day = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.share_analytics_days (bucket, day)
            VALUES (?, ?)
        """)

        self._get_days = self.session.prepare(f"""
            SELECT day FROM {self.keyspace}.share_analytics_days
            WHERE bucket = ?
        """)

        self._get_day_shares = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.share_analytics
            WHERE day = ?
        """)

    async def _execute(self, statement: Any, params: list[Any]) -> Any:
        try:
            return await self.session.aexecute(statement, params)
        except Exception as e:
            logger.error(
                "share_store_query_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StoreUnavailableError from e

    async def insert(self, share: ShareEvent) -> None:
        await self._execute(
            self._insert_share,
            [
                share.day,
                share.created_at,
                share.share_id,
                share.user_id,
                share.user_name,
                share.user_email,
                share.platform.value,
                share.share_method.value,
                share.shared_url,
                share.device_info.to_map(),
                share.location.to_map(),
                share.session_id,
                share.referrer,
                share.campaign,
                list(share.tags),
                share.success,
                share.error,
            ],
        )
        await self._execute(self._insert_day, [DAYS_BUCKET, share.day])

    async def query(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        platform: SharePlatform | None = None,
    ) -> list[ShareEvent]:
        first_day = start.strftime(DAY_FORMAT) if start else None
        last_day = end.strftime(DAY_FORMAT) if end else None

        day_rows = await self._execute(self._get_days, [DAYS_BUCKET])
        days = [
            row.day
            for row in day_rows
            if (first_day is None or row.day >= first_day)
            and (last_day is None or row.day <= last_day)
        ]

        shares: list[ShareEvent] = []
        for day in days:
            rows = await self._execute(self._get_day_shares, [day])
            shares.extend(
                share
                for share in (ShareEvent.from_row(row) for row in rows)
                if _matches(share, start, end, platform)
            )
        return shares
