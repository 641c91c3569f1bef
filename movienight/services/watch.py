# movienight/services/watch.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models import WatchHistory, WeekResult
from movienight.database.repo.week_results_repo import list_results
from movienight.database.tx import transactional, upsert
from movienight.services.errors import MovieNightError, NotFound
from movienight.utils.dates import to_utc_naive, utc_now


class WatchService:
    MIN_RATING = 1
    MAX_RATING = 5

    @staticmethod
    async def latest_winner(session: AsyncSession) -> WeekResult | None:
        """Most recent archived week that had a winner."""
        for result in await list_results(session, limit=12):
            if result.first_place is not None:
                return result
        return None

    @staticmethod
    async def mark_watched(
        session: AsyncSession,
        *,
        user_id: int,
        tmdb_id: int,
        title: str | None = None,
        week: str | None = None,
        rating: int | None = None,
        now: datetime | None = None,
    ) -> WatchHistory:
        """
        Records that the user watched a movie.
        Marking it again refreshes `watched_at`; the previous rating is kept
        unless a new one is given.
        """
        if rating is not None and not (WatchService.MIN_RATING <= rating <= WatchService.MAX_RATING):
            raise MovieNightError(f"❌ Rating must be {WatchService.MIN_RATING}-{WatchService.MAX_RATING}.")

        watched_at = to_utc_naive(now or utc_now())

        await session.commit()
        async with transactional(session):
            stmt = upsert(
                session,
                WatchHistory,
                index_elements=["user_id", "tmdb_id"],
                set_={
                    "watched_at": watched_at,
                    "rating": rating if rating is not None else WatchHistory.rating,
                    "title": title if title is not None else WatchHistory.title,
                    "week": week if week is not None else WatchHistory.week,
                },
                user_id=user_id,
                tmdb_id=tmdb_id,
                title=title,
                week=week,
                rating=rating,
                watched_at=watched_at,
            )
            await session.execute(stmt)

        res = await session.execute(
            select(WatchHistory)
            .where(WatchHistory.user_id == user_id, WatchHistory.tmdb_id == tmdb_id)
            .execution_options(populate_existing=True)
        )
        row = res.scalar_one_or_none()
        if row is None:
            raise NotFound()
        await session.commit()
        return row

    @staticmethod
    async def history(session: AsyncSession, *, user_id: int, limit: int = 20) -> list[WatchHistory]:
        res = await session.execute(
            select(WatchHistory)
            .where(WatchHistory.user_id == user_id)
            .order_by(WatchHistory.watched_at.desc(), WatchHistory.id.desc())
            .limit(limit)
        )
        return list(res.scalars().all())
