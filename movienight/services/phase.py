# movienight/services/phase.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.repo.app_state_repo import advance_active_week, get_or_create_state, lock_state
from movienight.database.tx import transactional
from movienight.services.archive import ArchiveOutcome, ArchiveService
from movienight.services.errors import PhaseClosed
from movienight.services.votes import RankedNomination, VoteService
from movienight.utils.dates import utc_now, week_id_of
from movienight.utils.phase_policy import Phase, PhasePolicy

if TYPE_CHECKING:
    from movienight.services.notify import Notifier

log = logging.getLogger(__name__)

NOMINATION_CAPACITY = 4


@dataclass(frozen=True, slots=True)
class WeekState:
    week: str
    phase: Phase  # effective: calendar phase plus the capacity override
    calendar_phase: Phase
    voting_deadline: datetime
    nominations: tuple[RankedNomination, ...]
    capacity: int
    archived: bool = False  # the clock is behind an already archived week

    @property
    def count(self) -> int:
        return len(self.nominations)

    @property
    def is_full(self) -> bool:
        return self.count >= self.capacity

    @property
    def slots_left(self) -> int:
        return max(0, self.capacity - self.count)

    def ensure_live(self) -> None:
        """Writers call this before touching the week."""
        if self.archived:
            raise PhaseClosed(f"⛔ Week {self.week} is already archived.")


class PhaseMachine:
    """
    Single source of truth for "which week is it and what may happen now".

    Every read goes through `current_state`, which first rolls the week over
    when the clock has entered a new ISO week: the previously active week is
    archived and `app_state.active_week` advances, both in one transaction.
    Only the caller whose insert created the archive row notifies.
    """

    def __init__(
        self,
        policy: PhasePolicy,
        notifier: Notifier | None = None,
        *,
        capacity: int = NOMINATION_CAPACITY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.policy = policy
        self.notifier = notifier
        self.capacity = capacity
        self.clock = clock

    def week_of(self, now: datetime) -> str:
        return week_id_of(now, self.policy.timezone)

    @staticmethod
    def effective_phase(calendar: Phase, count: int, capacity: int = NOMINATION_CAPACITY) -> Phase:
        if calendar == Phase.NOMINATION and count >= capacity:
            return Phase.VOTING
        return calendar

    async def current_state(self, session: AsyncSession, now: datetime | None = None) -> WeekState:
        now = now or self.clock()
        week = self.week_of(now)
        await self.roll_over(session, now)
        active = (await get_or_create_state(session)).active_week
        return await self._build_state(session, week, now, archived=active is not None and active > week)

    async def phase_of(self, session: AsyncSession, now: datetime | None = None) -> Phase:
        return (await self.current_state(session, now)).phase

    async def _build_state(
        self, session: AsyncSession, week: str, now: datetime, *, archived: bool = False
    ) -> WeekState:
        ranked = await VoteService.rank(session, week)
        calendar = self.policy.phase_of(now)
        return WeekState(
            week=week,
            phase=self.effective_phase(calendar, len(ranked), self.capacity),
            calendar_phase=calendar,
            voting_deadline=self.policy.voting_deadline(now),
            nominations=tuple(ranked),
            capacity=self.capacity,
            archived=archived,
        )

    def _must_roll(self, active: str | None, week: str) -> bool:
        if active == week:
            return False
        if active is not None and active > week:
            log.warning("Clock is behind the active week (%s < %s), not rolling back", week, active)
            return False
        return True

    async def roll_over(self, session: AsyncSession, now: datetime | None = None) -> ArchiveOutcome | None:
        """
        Archives the active week when `now` is in a later one.
        Returns the archive outcome, or None when nothing had to be archived.
        """
        now = now or self.clock()
        week = self.week_of(now)

        state = await get_or_create_state(session)
        if not self._must_roll(state.active_week, week):
            return None

        # writers start from a fresh transaction
        await session.commit()

        outcome: ArchiveOutcome | None = None
        async with transactional(session):
            await lock_state(session)

            # another caller may have rolled while we waited for the lock
            state = await get_or_create_state(session)
            active = state.active_week
            if not self._must_roll(active, week):
                return None

            if active is not None:
                outcome = await ArchiveService.archive(session, active, now)

            if not await advance_active_week(session, expected=active, new_week=week):
                log.info("Active week already moved past %s", active)

        log.info("Week rolled over: %s -> %s", active or "-", week)

        if outcome is not None and outcome.created and self.notifier is not None:
            self.notifier.week_archived(outcome.result)
        return outcome

    async def capacity_reached(self, session: AsyncSession, now: datetime | None = None) -> WeekState:
        """
        Called after the nomination that filled the week was committed.
        Announces that voting is open when this moved the week out of the
        calendar nomination phase early.
        """
        now = now or self.clock()
        state = await self._build_state(session, self.week_of(now), now)
        if state.calendar_phase == Phase.NOMINATION and state.phase == Phase.VOTING:
            log.info("Week %s is full, voting opens early", state.week)
            if self.notifier is not None:
                self.notifier.voting_opened(state)
        return state
