"""Tests for fire-and-forget notifications."""

import asyncio
from datetime import datetime

import pytest

from movienight.database.models import WeekResult
from movienight.services.errors import ExternalServiceUnavailable
from movienight.services.notify import Notifier


class FakeBot:
    def __init__(self, fail=False):
        self.fail = fail
        self.messages = []
        self.photos = []

    async def send_message(self, chat_id, text):
        if self.fail:
            raise RuntimeError("telegram is down")
        self.messages.append((chat_id, text))

    async def send_photo(self, chat_id, photo, caption):
        if self.fail:
            raise RuntimeError("telegram is down")
        self.photos.append((chat_id, photo.filename, caption))


class SlowBot(FakeBot):
    async def send_message(self, chat_id, text):
        await asyncio.sleep(1)


class FakeWatchlist:
    def __init__(self, fail=False):
        self.fail = fail
        self.added = []

    async def add(self, external_id, title):
        if self.fail:
            raise ExternalServiceUnavailable("MDBList HTTP 503")
        self.added.append(external_id)
        return True


def _result(**kwargs):
    values = dict(
        week="2026-W43",
        first_place_tmdb=603,
        first_place_imdb="tt0133093",
        first_place_title="The Matrix",
        first_place_votes=3,
        second_place_tmdb=604,
        second_place_imdb=None,
        second_place_title="The Matrix Reloaded",
        second_place_votes=1,
        nomination_count=4,
        finalized_at=datetime(2026, 10, 26, 0, 5),
    )
    values.update(kwargs)
    return WeekResult(**values)


class TestWeekArchived:
    async def test_posts_card_and_syncs_both_places(self):
        bot, watchlist = FakeBot(), FakeWatchlist()
        notifier = Notifier(bot, group_id=-100, watchlist=watchlist)

        notifier.week_archived(_result())
        await notifier.drain()

        assert sorted(watchlist.added) == ["tmdb:604", "tt0133093"]
        assert len(bot.photos) == 1
        chat_id, filename, caption = bot.photos[0]
        assert chat_id == -100
        assert filename == "results_2026-W43.png"
        assert "The Matrix" in caption

    async def test_empty_week_posts_text_only(self):
        bot, watchlist = FakeBot(), FakeWatchlist()
        notifier = Notifier(bot, group_id=-100, watchlist=watchlist)

        notifier.week_archived(
            _result(
                first_place_tmdb=None,
                first_place_imdb=None,
                first_place_title=None,
                first_place_votes=None,
                second_place_tmdb=None,
                second_place_imdb=None,
                second_place_title=None,
                second_place_votes=None,
                nomination_count=0,
            )
        )
        await notifier.drain()

        assert watchlist.added == []
        assert bot.photos == []
        assert len(bot.messages) == 1

    async def test_failures_are_logged_not_raised(self, caplog):
        notifier = Notifier(FakeBot(fail=True), group_id=-100, watchlist=FakeWatchlist(fail=True))

        notifier.week_archived(_result())
        await notifier.drain()

        assert "MDBList add" in caplog.text
        assert "results post for 2026-W43" in caplog.text

    async def test_no_group_configured(self):
        bot = FakeBot()
        notifier = Notifier(bot, group_id=None)

        notifier.week_archived(_result())
        await notifier.drain()

        assert bot.photos == []
        assert bot.messages == []


class TestAnnounce:
    async def test_announce_times_out(self):
        notifier = Notifier(SlowBot(), group_id=-100, timeout_seconds=0.01)
        with pytest.raises(ExternalServiceUnavailable):
            await notifier.announce("hi")

    async def test_fire_returns_tracked_task(self):
        bot = FakeBot()
        notifier = Notifier(bot, group_id=-100)
        task = notifier.fire(notifier.announce("hi"), what="test")
        await task
        assert bot.messages == [(-100, "hi")]
