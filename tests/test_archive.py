"""Tests for week archival and rollover."""

import asyncio
from datetime import timedelta

import pytest
from conftest import NEXT_WEEK_TIME, NOMINATION_TIME, RESULTS_TIME, VOTING_TIME, WEEK
from sqlalchemy import func, select

from movienight.database.models import AppState, WeekResult
from movienight.services.archive import ArchiveService
from movienight.services.phase import PhaseMachine
from movienight.utils.phase_policy import Phase


async def _stored_results(db):
    """Reads every archive row through a fresh session."""
    async with db.session() as s:
        rows = (await s.execute(select(WeekResult).order_by(WeekResult.week))).scalars().all()
        return [
            (
                r.week,
                r.first_place_tmdb,
                r.first_place_imdb,
                r.first_place_title,
                r.first_place_votes,
                r.second_place_tmdb,
                r.second_place_imdb,
                r.second_place_title,
                r.second_place_votes,
                r.nomination_count,
                r.finalized_at,
            )
            for r in rows
        ]


@pytest.fixture
async def scored_week(family, propose, vote):
    """A(user1), B(user2), C(user3), D(user4) with votes A:2, B:1, C:1, D:0."""
    alice, bob, carol, dave = family
    a, b, c, d = [
        await propose(user, 100 + i, now=NOMINATION_TIME + timedelta(minutes=i)) for i, user in enumerate(family)
    ]
    await vote(bob, a)
    await vote(carol, a)
    await vote(dave, b)
    await vote(dave, c)
    return a, b, c, d


class TestArchive:
    async def test_top_two_are_recorded(self, session, scored_week):
        a, b, _, _ = scored_week
        outcome = await ArchiveService.archive(session, WEEK, RESULTS_TIME)
        await session.commit()

        assert outcome.created
        first, second = outcome.result.first_place, outcome.result.second_place
        assert (first.tmdb_id, first.title, first.votes) == (a.tmdb_id, a.title, 2)
        assert (second.tmdb_id, second.title, second.votes) == (b.tmdb_id, b.title, 1)
        assert first.external_id == "tt0000100"
        assert outcome.result.nomination_count == 4

    async def test_archiving_twice_keeps_one_identical_row(self, db, session, scored_week, vote, family):
        first = await ArchiveService.archive(session, WEEK, RESULTS_TIME)
        await session.commit()
        before = await _stored_results(db)

        # the tally changes, but the archive is already written
        await vote(family[0], scored_week[3], now=VOTING_TIME)
        second = await ArchiveService.archive(session, WEEK, RESULTS_TIME + timedelta(hours=5))
        await session.commit()

        assert first.created
        assert not second.created
        assert second.result.id == first.result.id
        assert await _stored_results(db) == before
        assert len(before) == 1

    async def test_empty_week_archives_with_no_places(self, session):
        outcome = await ArchiveService.archive(session, WEEK, RESULTS_TIME)
        await session.commit()

        assert outcome.created
        assert outcome.result.first_place is None
        assert outcome.result.second_place is None
        assert outcome.result.nomination_count == 0

    async def test_get_and_history(self, session):
        assert await ArchiveService.get(session, WEEK) is None
        await ArchiveService.archive(session, WEEK, RESULTS_TIME)
        await session.commit()

        stored = await ArchiveService.get(session, WEEK)
        assert stored is not None and stored.week == WEEK
        assert [r.week for r in await ArchiveService.history(session)] == [WEEK]

    async def test_single_nomination_has_no_runner_up(self, session, family, propose):
        await propose(family[0], 7)
        outcome = await ArchiveService.archive(session, WEEK, RESULTS_TIME)
        await session.commit()

        assert outcome.result.first_place.tmdb_id == 7
        assert outcome.result.first_place.votes == 0
        assert outcome.result.second_place is None


class TestRollover:
    async def test_new_week_archives_previous_once(self, db, session, machine, notifier, scored_week):
        state = await machine.current_state(session, NEXT_WEEK_TIME)

        assert state.week == "2026-W44"
        assert state.phase == Phase.NOMINATION
        assert state.nominations == ()
        assert notifier.archived == [WEEK]

        rows = await _stored_results(db)
        assert [(r[0], r[1], r[5]) for r in rows] == [(WEEK, 100, 101)]

        # later reads in the same week do nothing
        await machine.current_state(session, NEXT_WEEK_TIME + timedelta(hours=1))
        await machine.phase_of(session, NEXT_WEEK_TIME + timedelta(days=1))
        assert notifier.archived == [WEEK]

        async with db.session() as other:
            active = (await other.execute(select(AppState.active_week))).scalar_one()
        assert active == "2026-W44"

    async def test_racing_readers_archive_exactly_once(self, db, session, machine, notifier, scored_week):
        async def read():
            async with db.session() as s:
                return await machine.current_state(s, NEXT_WEEK_TIME)

        states = await asyncio.gather(read(), read(), read())

        assert {s.week for s in states} == {"2026-W44"}
        assert notifier.archived == [WEEK]
        async with db.session() as s:
            assert (await s.execute(select(func.count(WeekResult.id)))).scalar_one() == 1

    async def test_clock_going_backwards_never_archives(self, db, session, machine, notifier, scored_week):
        await machine.current_state(session, NEXT_WEEK_TIME)
        assert notifier.archived == [WEEK]

        state = await machine.current_state(session, VOTING_TIME)
        assert state.week == WEEK
        assert notifier.archived == [WEEK]
        async with db.session() as s:
            active = (await s.execute(select(AppState.active_week))).scalar_one()
        assert active == "2026-W44"

    async def test_first_start_does_not_archive(self, db, session, machine, notifier):
        state = await machine.current_state(session, NOMINATION_TIME)
        assert state.week == WEEK
        assert notifier.archived == []
        assert await _stored_results(db) == []

    async def test_skipped_weeks_archive_the_active_one(self, db, session, machine, notifier, scored_week):
        await machine.current_state(session, NEXT_WEEK_TIME + timedelta(days=14))
        assert notifier.archived == [WEEK]
        assert [r[0] for r in await _stored_results(db)] == [WEEK]

    async def test_nominations_survive_rollover(self, session, machine, scored_week):
        await machine.current_state(session, NEXT_WEEK_TIME)
        ranked = (await machine.current_state(session, VOTING_TIME)).nominations
        assert [(e.nomination.tmdb_id, e.votes) for e in ranked] == [(100, 2), (101, 1), (102, 1), (103, 0)]

    async def test_works_without_notifier(self, db, session, policy, scored_week):
        quiet = PhaseMachine(policy)
        outcome = await quiet.roll_over(session, NOMINATION_TIME)
        assert outcome is None
        outcome = await quiet.roll_over(session, NEXT_WEEK_TIME)
        assert outcome.created
        assert outcome.result.week == WEEK
