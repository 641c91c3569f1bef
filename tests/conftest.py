"""Shared fixtures: a throwaway SQLite database and fakes for the outside world."""

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest
import pytest_asyncio

from movienight.database import Database
from movienight.database.repo.users import upsert_user
from movienight.services.errors import ExternalServiceUnavailable, NotFound
from movienight.services.metadata import MovieDetails
from movienight.services.nominations import NominationService
from movienight.services.phase import PhaseMachine
from movienight.services.votes import VoteService
from movienight.utils.phase_policy import PhasePolicy

# 2026-10-19 is the Monday of ISO week 2026-W43.
WEEK = "2026-W43"
MONDAY = datetime(2026, 10, 19, tzinfo=timezone.utc)
NOMINATION_TIME = MONDAY + timedelta(days=1, hours=12)  # Tue 12:00
VOTING_TIME = MONDAY + timedelta(days=4, hours=10)  # Fri 10:00
RESULTS_TIME = MONDAY + timedelta(days=4, hours=19)  # Fri 19:00
NEXT_WEEK_TIME = MONDAY + timedelta(days=7, hours=10)  # Mon 2026-W44


class FakeMetadata:
    """Stands in for TmdbClient.get_movie."""

    def __init__(self):
        self.calls = []
        self.unavailable = False
        self.unknown = set()

    async def get_movie(self, tmdb_id):
        self.calls.append(tmdb_id)
        if self.unavailable:
            raise ExternalServiceUnavailable()
        if tmdb_id in self.unknown:
            raise NotFound()
        return MovieDetails(
            tmdb_id=tmdb_id,
            title=f"Movie {tmdb_id}",
            year="2001",
            poster_path=f"/poster{tmdb_id}.jpg",
            backdrop_path=None,
            overview="A movie.",
            rating=7.5,
            imdb_id=f"tt{tmdb_id:07d}",
        )


class RecordingNotifier:
    """Records the hooks PhaseMachine calls instead of talking to Telegram."""

    def __init__(self):
        self.archived = []
        self.voting_opened_for = []

    def week_archived(self, result):
        self.archived.append(result.week)

    def voting_opened(self, state):
        self.voting_opened_for.append(state.week)


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'movienight.db'}")
    await database.init_models()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def session(db):
    async with db.session() as s:
        yield s


@pytest.fixture
def policy():
    return PhasePolicy(timezone="UTC")


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def machine(policy, notifier):
    return PhaseMachine(policy, notifier)


@pytest.fixture
def metadata():
    return FakeMetadata()


@pytest.fixture
def make_user(session):
    """Creates and commits users: `alice = await make_user("Alice")`."""
    telegram_ids = count(1000)

    async def _make(name):
        user = await upsert_user(
            session,
            telegram_id=next(telegram_ids),
            username=name.lower(),
            first_name=name,
            last_name=None,
        )
        user.name = name
        await session.commit()
        return user

    return _make


@pytest.fixture
def propose(session, machine, metadata):
    """`await propose(user, tmdb_id)`, nominating at NOMINATION_TIME unless `now` is given."""

    async def _propose(user, tmdb_id, now=NOMINATION_TIME):
        return await NominationService.propose(
            session,
            machine=machine,
            metadata=metadata,
            user_id=user.id,
            tmdb_id=tmdb_id,
            now=now,
        )

    return _propose


@pytest.fixture
def vote(session, machine):
    """`await vote(user, nomination)`; pass desired=False to retract."""

    async def _vote(user, nomination, desired=True, now=VOTING_TIME):
        return await VoteService.cast(
            session,
            machine=machine,
            nomination_id=nomination.id,
            voter_id=user.id,
            desired=desired,
            now=now,
        )

    return _vote


@pytest_asyncio.fixture
async def family(make_user):
    """Four users, enough to fill a week."""
    return [await make_user(name) for name in ("Alice", "Bob", "Carol", "Dave")]
