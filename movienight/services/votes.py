# movienight/services/votes.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Iterable

from sqlalchemy import delete, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models import Nomination, User, Vote
from movienight.database.repo.app_state_repo import is_active_week, lock_state
from movienight.database.tx import insert_ignore, transactional
from movienight.services.errors import NotFound, PhaseClosed, QuotaExceeded, SelfVote, UserNotFound
from movienight.utils.dates import to_utc_naive
from movienight.utils.phase_policy import Phase

if TYPE_CHECKING:
    from movienight.services.phase import PhaseMachine


@dataclass(frozen=True, slots=True)
class RankedNomination:
    rank: int
    nomination: Nomination
    votes: int

    @property
    def title(self) -> str:
        return self.nomination.title

    @property
    def proposer_name(self) -> str:
        return self.nomination.proposer.display_name


@dataclass(frozen=True, slots=True)
class CastResult:
    changed: bool
    active: bool  # vote state after the call
    votes_used: int
    votes_left: int


def rank_entries(entries: Iterable[tuple[Nomination, int]]) -> list[RankedNomination]:
    """
    Most votes first; ties go to the earlier nomination, then the lower id.
    """
    ordered = sorted(entries, key=lambda e: (-e[1], e[0].proposed_at, e[0].id))
    return [RankedNomination(rank=i, nomination=n, votes=v) for i, (n, v) in enumerate(ordered, start=1)]


class VoteService:
    MAX_VOTES_PER_USER = 2

    @staticmethod
    async def rank(session: AsyncSession, week: str) -> list[RankedNomination]:
        counts = (
            select(Vote.nomination_id, func.count(distinct(Vote.user_id)).label("votes"))
            .where(Vote.week == week)
            .group_by(Vote.nomination_id)
            .subquery()
        )
        stmt = (
            select(Nomination, func.coalesce(counts.c.votes, 0))
            .outerjoin(counts, counts.c.nomination_id == Nomination.id)
            .where(Nomination.week == week)
        )
        res = await session.execute(stmt)
        return rank_entries((n, int(v or 0)) for n, v in res.all())

    @staticmethod
    async def votes_of(session: AsyncSession, week: str, user_id: int) -> set[int]:
        """Nomination ids the user currently votes for."""
        res = await session.execute(
            select(Vote.nomination_id).where(Vote.week == week, Vote.user_id == user_id)
        )
        return {int(x) for x in res.scalars().all()}

    @staticmethod
    async def voters_for_week(session: AsyncSession, week: str) -> set[int]:
        res = await session.execute(select(distinct(Vote.user_id)).where(Vote.week == week))
        return {int(x) for x in res.scalars().all()}

    @staticmethod
    async def _count_other_votes(session: AsyncSession, *, week: str, voter_id: int, nomination_id: int) -> int:
        res = await session.execute(
            select(func.count(Vote.id)).where(
                Vote.week == week,
                Vote.user_id == voter_id,
                Vote.nomination_id != nomination_id,
            )
        )
        return int(res.scalar() or 0)

    @staticmethod
    async def cast(
        session: AsyncSession,
        *,
        machine: PhaseMachine,
        nomination_id: int,
        voter_id: int,
        desired: bool,
        now: datetime | None = None,
    ) -> CastResult:
        """
        Sets the voter's vote on a nomination to `desired`.
        Asking for the state the vote is already in changes nothing.
        """
        now = now or machine.clock()
        state = await machine.current_state(session, now)
        state.ensure_live()
        if state.phase != Phase.VOTING:
            raise PhaseClosed(f"⛔ Voting is not open (current phase: {state.phase.value}).")

        if await session.get(User, voter_id) is None:
            raise UserNotFound()

        nomination = await session.get(Nomination, nomination_id)
        if nomination is None or nomination.week != state.week:
            raise NotFound("ℹ️ That movie is not nominated this week.")
        if nomination.proposed_by == voter_id:
            raise SelfVote()

        limit = VoteService.MAX_VOTES_PER_USER
        changed = False
        over_quota = False
        archived = False

        # typed errors are raised after the block: a rollback would expire
        # every loaded object in the session
        await session.commit()
        async with transactional(session):
            await lock_state(session)

            # the week may have been archived since the state was read
            archived = not await is_active_week(session, state.week)

            res = await session.execute(
                select(Vote.id).where(Vote.nomination_id == nomination_id, Vote.user_id == voter_id)
            )
            has_vote = res.scalar_one_or_none() is not None
            others = await VoteService._count_other_votes(
                session, week=state.week, voter_id=voter_id, nomination_id=nomination_id
            )

            if not archived and desired and not has_vote:
                if others >= limit:
                    over_quota = True
                else:
                    res = await session.execute(
                        insert_ignore(
                            session,
                            Vote,
                            nomination_id=nomination_id,
                            user_id=voter_id,
                            week=state.week,
                            voted_at=to_utc_naive(now),
                        ).returning(Vote.id)
                    )
                    changed = res.scalar_one_or_none() is not None
            elif not archived and not desired and has_vote:
                await session.execute(
                    delete(Vote).where(Vote.nomination_id == nomination_id, Vote.user_id == voter_id)
                )
                changed = True

        if archived:
            raise PhaseClosed(f"⛔ Week {state.week} is already archived.")
        if over_quota:
            raise QuotaExceeded(f"❌ You can only vote for {limit} movies. Remove a vote first.")

        used = others + (1 if desired else 0)
        return CastResult(changed=changed, active=desired, votes_used=used, votes_left=max(0, limit - used))

    @staticmethod
    async def toggle(
        session: AsyncSession,
        *,
        machine: PhaseMachine,
        nomination_id: int,
        voter_id: int,
        now: datetime | None = None,
    ) -> CastResult:
        res = await session.execute(
            select(Vote.id).where(Vote.nomination_id == nomination_id, Vote.user_id == voter_id)
        )
        desired = res.scalar_one_or_none() is None
        return await VoteService.cast(
            session,
            machine=machine,
            nomination_id=nomination_id,
            voter_id=voter_id,
            desired=desired,
            now=now,
        )
