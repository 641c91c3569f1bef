# movienight/services/archive.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models import Placement, WeekResult
from movienight.database.repo.week_results_repo import get_result, list_results, save_result_if_absent
from movienight.services.votes import RankedNomination, VoteService
from movienight.utils.dates import to_utc_naive

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ArchiveOutcome:
    result: WeekResult
    created: bool  # False when the week had already been archived


def _placement(entry: RankedNomination | None) -> Placement | None:
    if entry is None:
        return None
    n = entry.nomination
    return Placement(tmdb_id=n.tmdb_id, imdb_id=n.imdb_id, title=n.title, votes=entry.votes)


class ArchiveService:
    @staticmethod
    async def archive(session: AsyncSession, week: str, now: datetime) -> ArchiveOutcome:
        """
        Freezes the ranking of `week` into a WeekResult.

        Safe to call any number of times: only the first call writes, later
        ones return the stored row unchanged. The caller owns the commit.
        """
        ranked = await VoteService.rank(session, week)
        first = _placement(ranked[0] if len(ranked) > 0 else None)
        second = _placement(ranked[1] if len(ranked) > 1 else None)

        created = await save_result_if_absent(
            session,
            week=week,
            first=first,
            second=second,
            nomination_count=len(ranked),
            finalized_at=to_utc_naive(now),
        )
        result = await get_result(session, week)
        if result is None:
            raise RuntimeError(f"week result for {week} vanished after insert")

        if created:
            log.info(
                "Archived %s: 1st=%s 2nd=%s (%d nominations)",
                week,
                first.title if first else "-",
                second.title if second else "-",
                len(ranked),
            )
        return ArchiveOutcome(result=result, created=created)

    @staticmethod
    async def history(session: AsyncSession, *, limit: int = 12) -> list[WeekResult]:
        return await list_results(session, limit=limit)

    @staticmethod
    async def get(session: AsyncSession, week: str) -> WeekResult | None:
        return await get_result(session, week)
