# movienight/database/repo/week_results_repo.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models import Placement, WeekResult
from movienight.database.tx import insert_ignore


async def get_result(session: AsyncSession, week: str) -> WeekResult | None:
    res = await session.execute(select(WeekResult).where(WeekResult.week == week))
    return res.scalar_one_or_none()


async def save_result_if_absent(
    session: AsyncSession,
    *,
    week: str,
    first: Placement | None,
    second: Placement | None,
    nomination_count: int,
    finalized_at: datetime,
) -> bool:
    """
    Inserts the archive row for `week` unless one exists.
    Returns True only for the call that actually wrote it.
    """
    values = dict(
        week=week,
        first_place_tmdb=first.tmdb_id if first else None,
        first_place_imdb=first.imdb_id if first else None,
        first_place_title=first.title if first else None,
        first_place_votes=first.votes if first else None,
        second_place_tmdb=second.tmdb_id if second else None,
        second_place_imdb=second.imdb_id if second else None,
        second_place_title=second.title if second else None,
        second_place_votes=second.votes if second else None,
        nomination_count=nomination_count,
        finalized_at=finalized_at,
    )
    stmt = insert_ignore(session, WeekResult, **values).returning(WeekResult.id)
    res = await session.execute(stmt)
    return res.scalar_one_or_none() is not None


async def list_results(session: AsyncSession, *, limit: int = 12) -> list[WeekResult]:
    res = await session.execute(
        select(WeekResult).order_by(WeekResult.week.desc()).limit(limit)
    )
    return list(res.scalars().all())
