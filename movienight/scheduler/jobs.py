from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from movienight.config.settings import Settings
from movienight.database.repo.users import list_users
from movienight.database.session import Database
from movienight.services.archive import ArchiveOutcome
from movienight.services.notify import Notifier
from movienight.services.phase import PhaseMachine, WeekState
from movienight.services.votes import VoteService
from movienight.utils import messages
from movienight.utils.phase_policy import Phase, PhasePolicy

log = logging.getLogger(__name__)


# -------------------------------------------------
# Jobs
# -------------------------------------------------

async def roll_over_week(db: Database, machine: PhaseMachine) -> ArchiveOutcome | None:
    """
    Archives last week as soon as the new one starts. Any bot update would
    trigger the same rollover; this job makes sure it happens without one.
    """
    async with db.session() as session:
        outcome = await machine.roll_over(session)

    if outcome is None:
        log.info("Rollover job: nothing to archive")
    elif not outcome.created:
        log.info("Rollover job: %s was already archived", outcome.result.week)
    return outcome


async def announce_nominations_open(db: Database, machine: PhaseMachine, notifier: Notifier) -> None:
    async with db.session() as session:
        state = await machine.current_state(session)

    if state.phase != Phase.NOMINATION:
        log.info("Skipping nominations-open post: week %s is in %s", state.week, state.phase.value)
        return
    notifier.fire(notifier.announce(messages.nomination_start_text(state)), what="nominations open post")


async def nudge_nominations(db: Database, machine: PhaseMachine, notifier: Notifier) -> None:
    async with db.session() as session:
        state = await machine.current_state(session)
        users = await list_users(session)

    if state.phase != Phase.NOMINATION or state.is_full:
        return

    nominated = {e.nomination.proposed_by for e in state.nominations}
    missing = [u for u in users if u.id not in nominated]
    notifier.fire(notifier.announce(messages.nudge_text(state, missing)), what="nomination nudge")


async def announce_voting_open(db: Database, machine: PhaseMachine, notifier: Notifier) -> None:
    async with db.session() as session:
        state = await machine.current_state(session)

    if state.phase != Phase.VOTING:
        return
    if state.is_full:
        # already announced when the last slot was taken
        return
    if not state.nominations:
        notifier.fire(
            notifier.announce(f"😴 No nominations for {messages.esc(state.week)}, nothing to vote on."),
            what="voting open post",
        )
        return
    notifier.fire(notifier.announce(messages.voting_open_text(state)), what="voting open post")


async def last_hour_warning(db: Database, machine: PhaseMachine, notifier: Notifier) -> None:
    async with db.session() as session:
        state = await machine.current_state(session)
        if state.phase != Phase.VOTING or not state.nominations:
            return
        voters = await VoteService.voters_for_week(session, state.week)
        users = await list_users(session)

    missing = [u for u in users if u.id not in voters]
    notifier.fire(notifier.announce(messages.last_hour_text(state, missing)), what="last hour warning")


async def post_results(db: Database, machine: PhaseMachine, notifier: Notifier) -> WeekState:
    """Posts the final standings of the current week once voting has closed."""
    async with db.session() as session:
        state = await machine.current_state(session)

    if state.phase != Phase.RESULTS:
        log.info("Skipping results post: week %s is still in %s", state.week, state.phase.value)
        return state
    notifier.fire(notifier.announce(messages.standings_text(state)), what=f"results post for {state.week}")
    return state


async def sunday_summary(db: Database, machine: PhaseMachine, notifier: Notifier) -> None:
    async with db.session() as session:
        state = await machine.current_state(session)
    notifier.fire(notifier.announce(messages.sunday_summary_text(state)), what="sunday summary")


# -------------------------------------------------
# Scheduler setup
# -------------------------------------------------

def _shift_hour(weekday: int, hour: int, delta: int) -> tuple[int, int]:
    total = (weekday * 24 + hour + delta) % (7 * 24)
    return total // 24, total % 24


def build_scheduler(db: Database, settings: Settings, machine: PhaseMachine, notifier: Notifier) -> AsyncIOScheduler:
    """
    Creates and returns an AsyncIOScheduler with the weekly reminder jobs.
    Days and hours follow the configured PhasePolicy, in its timezone.
    """
    policy: PhasePolicy = machine.policy
    tz = settings.timezone
    scheduler = AsyncIOScheduler(timezone=tz)

    nudge_day = max(0, policy.nomination_days - 1)
    warn_day, warn_hour = _shift_hour(policy.voting_close_weekday, policy.voting_close_hour, -1)

    jobs = [
        ("roll_over_week", roll_over_week, CronTrigger(day_of_week="mon", hour=0, minute=5, timezone=tz)),
        (
            "announce_nominations_open",
            announce_nominations_open,
            CronTrigger(day_of_week="mon", hour=9, minute=0, timezone=tz),
        ),
        (
            "nudge_nominations",
            nudge_nominations,
            CronTrigger(day_of_week=policy.cron_day(nudge_day), hour=20, minute=0, timezone=tz),
        ),
        (
            "announce_voting_open",
            announce_voting_open,
            CronTrigger(day_of_week=policy.cron_day(policy.voting_opens_weekday), hour=9, minute=0, timezone=tz),
        ),
        (
            "last_hour_warning",
            last_hour_warning,
            CronTrigger(day_of_week=policy.cron_day(warn_day), hour=warn_hour, minute=0, timezone=tz),
        ),
        (
            "post_results",
            post_results,
            CronTrigger(
                day_of_week=policy.cron_day(policy.voting_close_weekday),
                hour=policy.voting_close_hour,
                minute=5,
                timezone=tz,
            ),
        ),
        ("sunday_summary", sunday_summary, CronTrigger(day_of_week="sun", hour=20, minute=0, timezone=tz)),
    ]

    for job_id, func, trigger in jobs:
        kwargs = {"db": db, "machine": machine}
        if func is not roll_over_week:
            kwargs["notifier"] = notifier
        scheduler.add_job(
            func,
            trigger=trigger,
            kwargs=kwargs,
            id=job_id,
            replace_existing=True,
            coalesce=True,
            misfire_grace_time=300,
        )

    return scheduler
