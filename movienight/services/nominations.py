# movienight/services/nominations.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models import Nomination, User, Vote
from movienight.database.repo.app_state_repo import is_active_week, lock_state
from movienight.database.tx import insert_ignore, transactional
from movienight.services.errors import (
    CapacityReached,
    DuplicateMovie,
    DuplicateUser,
    MovieNightError,
    NotFound,
    PhaseClosed,
    UserNotFound,
)
from movienight.services.metadata import MovieDetails
from movienight.utils.dates import to_utc_naive
from movienight.utils.phase_policy import Phase

if TYPE_CHECKING:
    from movienight.services.metadata import TmdbClient
    from movienight.services.phase import PhaseMachine

log = logging.getLogger(__name__)


class NominationService:
    @staticmethod
    async def list_for_week(session: AsyncSession, week: str) -> list[Nomination]:
        res = await session.execute(
            select(Nomination)
            .where(Nomination.week == week)
            .order_by(Nomination.proposed_at.asc(), Nomination.id.asc())
        )
        return list(res.scalars().all())

    @staticmethod
    async def get_by_id(session: AsyncSession, nomination_id: int) -> Nomination | None:
        return await session.get(Nomination, nomination_id)

    @staticmethod
    async def get_for_user(session: AsyncSession, week: str, user_id: int) -> Nomination | None:
        res = await session.execute(
            select(Nomination).where(Nomination.week == week, Nomination.proposed_by == user_id)
        )
        return res.scalar_one_or_none()

    @staticmethod
    async def get_for_movie(session: AsyncSession, week: str, tmdb_id: int) -> Nomination | None:
        res = await session.execute(
            select(Nomination).where(Nomination.week == week, Nomination.tmdb_id == tmdb_id)
        )
        return res.scalar_one_or_none()

    @staticmethod
    async def count_for_week(session: AsyncSession, week: str) -> int:
        res = await session.execute(select(func.count(Nomination.id)).where(Nomination.week == week))
        return int(res.scalar() or 0)

    @staticmethod
    async def _check_can_propose(
        session: AsyncSession,
        *,
        week: str,
        user_id: int,
        tmdb_id: int,
        capacity: int,
    ) -> None:
        existing = await NominationService.get_for_user(session, week, user_id)
        if existing is not None:
            raise DuplicateUser(f"❌ You already nominated “{existing.title}” this week.")

        if await NominationService.count_for_week(session, week) >= capacity:
            raise CapacityReached(f"❌ All {capacity} nomination slots for this week are taken.")

        if await NominationService.get_for_movie(session, week, tmdb_id) is not None:
            raise DuplicateMovie()

    @staticmethod
    async def _conflict_error(session: AsyncSession, *, week: str, user_id: int) -> MovieNightError:
        # the insert hit one of the two unique constraints, find out which
        if await NominationService.get_for_user(session, week, user_id) is not None:
            return DuplicateUser()
        return DuplicateMovie()

    @staticmethod
    async def propose(
        session: AsyncSession,
        *,
        machine: PhaseMachine,
        metadata: TmdbClient,
        user_id: int,
        tmdb_id: int,
        now: datetime | None = None,
    ) -> Nomination:
        state = await machine.current_state(session, now or machine.clock())
        state.ensure_live()
        if state.calendar_phase != Phase.NOMINATION:
            raise PhaseClosed(f"⛔ Nominations are closed (current phase: {state.phase.value}).")

        if await session.get(User, user_id) is None:
            raise UserNotFound()

        # cheap checks first, so doomed requests never hit the network
        await NominationService._check_can_propose(
            session, week=state.week, user_id=user_id, tmdb_id=tmdb_id, capacity=machine.capacity
        )

        # release the read transaction before the network call
        await session.commit()
        movie = await metadata.get_movie(tmdb_id)

        nomination_id, count_after = await NominationService._insert(
            session,
            machine=machine,
            week=state.week,
            user_id=user_id,
            movie=movie,
            now=now,
        )
        await session.commit()

        nomination = await session.get(Nomination, nomination_id)
        if nomination is None:
            raise NotFound()
        log.info("Nomination week=%s user=%s tmdb=%s (%d/%d)",
                 state.week, user_id, movie.tmdb_id, count_after, machine.capacity)

        if count_after == machine.capacity:
            await machine.capacity_reached(session, now)

        return nomination

    @staticmethod
    async def _insert(
        session: AsyncSession,
        *,
        machine: PhaseMachine,
        week: str,
        user_id: int,
        movie: MovieDetails,
        now: datetime | None,
    ) -> tuple[int, int]:
        """Returns (nomination id, nominations in the week after the insert)."""
        capacity = machine.capacity
        nomination_id = None
        count = 0
        error: MovieNightError | None = None

        # errors are raised once the block has committed, a rollback would
        # expire every object loaded in the session
        async with transactional(session):
            await lock_state(session)

            # re-checked under the lock: the window may have closed or the week
            # filled while we were on the network
            at = now or machine.clock()
            still_open = (
                machine.policy.phase_of(at) == Phase.NOMINATION
                and machine.week_of(at) == week
                and await is_active_week(session, week)
            )
            if not still_open:
                error = PhaseClosed("⛔ Nominations closed while the movie was being looked up.")
            else:
                count = await NominationService.count_for_week(session, week)
                if count >= capacity:
                    error = CapacityReached(f"❌ All {capacity} nomination slots for this week are taken.")
                else:
                    nomination_id = await NominationService._insert_row(
                        session, week=week, user_id=user_id, movie=movie, proposed_at=to_utc_naive(at)
                    )
                    if nomination_id is None:
                        error = await NominationService._conflict_error(session, week=week, user_id=user_id)
                    else:
                        count += 1

        if error is not None:
            raise error
        return int(nomination_id), count

    @staticmethod
    async def _insert_row(
        session: AsyncSession,
        *,
        week: str,
        user_id: int,
        movie: MovieDetails,
        proposed_at: datetime,
    ) -> int | None:
        res = await session.execute(
            insert_ignore(
                session,
                Nomination,
                week=week,
                tmdb_id=movie.tmdb_id,
                imdb_id=movie.imdb_id,
                title=movie.title,
                year=movie.year,
                poster_path=movie.poster_path,
                backdrop_path=movie.backdrop_path,
                overview=movie.overview,
                rating=movie.rating,
                proposed_by=user_id,
                proposed_at=proposed_at,
            ).returning(Nomination.id)
        )
        return res.scalar_one_or_none()

    @staticmethod
    async def withdraw(
        session: AsyncSession,
        *,
        machine: PhaseMachine,
        user_id: int,
        now: datetime | None = None,
    ) -> Nomination:
        """
        Removes the user's nomination for the current week together with every
        vote cast for it. Returns the removed nomination.
        """
        state = await machine.current_state(session, now or machine.clock())
        state.ensure_live()
        if state.calendar_phase != Phase.NOMINATION:
            raise PhaseClosed("⛔ Nominations can only be changed during the nomination phase.")

        await session.commit()
        async with transactional(session):
            await lock_state(session)

            nomination = None
            if await is_active_week(session, state.week):
                nomination = await NominationService.get_for_user(session, state.week, user_id)
            if nomination is not None:
                await session.execute(delete(Vote).where(Vote.nomination_id == nomination.id))
                await session.delete(nomination)
                await session.flush()

        if nomination is None:
            raise NotFound("ℹ️ You have no nomination this week.")
        log.info("Nomination withdrawn week=%s user=%s tmdb=%s", state.week, user_id, nomination.tmdb_id)
        return nomination
