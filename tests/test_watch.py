"""Tests for watch history."""

from datetime import datetime, timedelta, timezone

import pytest
from conftest import RESULTS_TIME, WEEK

from movienight.services.archive import ArchiveService
from movienight.services.errors import MovieNightError
from movienight.services.watch import WatchService

T0 = datetime(2026, 10, 24, 21, tzinfo=timezone.utc)


class TestMarkWatched:
    async def test_rating_is_kept_when_marking_again(self, session, family):
        alice = family[0]
        first = await WatchService.mark_watched(
            session, user_id=alice.id, tmdb_id=603, title="The Matrix", week="2026-W43", rating=4, now=T0
        )
        assert first.rating == 4

        again = await WatchService.mark_watched(session, user_id=alice.id, tmdb_id=603, now=T0 + timedelta(days=1))
        assert again.rating == 4
        assert again.title == "The Matrix"
        assert again.watched_at == (T0 + timedelta(days=1)).replace(tzinfo=None)

    async def test_new_rating_replaces_old(self, session, family):
        alice = family[0]
        await WatchService.mark_watched(session, user_id=alice.id, tmdb_id=603, rating=2, now=T0)
        row = await WatchService.mark_watched(session, user_id=alice.id, tmdb_id=603, rating=5, now=T0)
        assert row.rating == 5

    @pytest.mark.parametrize("rating", [0, 6, -1])
    async def test_rating_out_of_range(self, session, family, rating):
        with pytest.raises(MovieNightError):
            await WatchService.mark_watched(session, user_id=family[0].id, tmdb_id=1, rating=rating)

    async def test_history_is_per_user_newest_first(self, session, family):
        alice, bob = family[:2]
        await WatchService.mark_watched(session, user_id=alice.id, tmdb_id=1, title="Old", now=T0)
        await WatchService.mark_watched(session, user_id=alice.id, tmdb_id=2, title="New", now=T0 + timedelta(days=7))
        await WatchService.mark_watched(session, user_id=bob.id, tmdb_id=3, title="Bob's", now=T0)

        rows = await WatchService.history(session, user_id=alice.id)
        assert [r.title for r in rows] == ["New", "Old"]

    async def test_latest_winner(self, session, family, propose):
        assert await WatchService.latest_winner(session) is None
        await propose(family[0], 603)
        await ArchiveService.archive(session, WEEK, RESULTS_TIME)
        await session.commit()

        result = await WatchService.latest_winner(session)
        assert result.week == WEEK
        assert result.first_place.tmdb_id == 603
