"""Tests for the weekly job schedule."""

import pytest

from movienight.config.settings import Settings
from movienight.scheduler.jobs import _shift_hour, build_scheduler
from movienight.services.phase import PhaseMachine

JOB_IDS = {
    "roll_over_week",
    "announce_nominations_open",
    "nudge_nominations",
    "announce_voting_open",
    "last_hour_warning",
    "post_results",
    "sunday_summary",
}


def _jobs(settings):
    machine = PhaseMachine(settings.phase_policy())
    scheduler = build_scheduler(object(), settings, machine, object())
    return {job.id: job for job in scheduler.get_jobs()}


class TestShiftHour:
    @pytest.mark.parametrize(
        "weekday, hour, delta, expected",
        [
            (4, 18, -1, (4, 17)),
            (4, 0, -1, (3, 23)),
            (0, 0, -1, (6, 23)),
            (6, 23, 1, (0, 0)),
        ],
    )
    def test_wraps_days_and_week(self, weekday, hour, delta, expected):
        assert _shift_hour(weekday, hour, delta) == expected


class TestBuildScheduler:
    def test_default_week(self):
        jobs = _jobs(Settings(bot_token="x"))
        assert set(jobs) == JOB_IDS

        assert "day_of_week='fri'" in str(jobs["announce_voting_open"].trigger)
        assert "day_of_week='thu'" in str(jobs["nudge_nominations"].trigger)
        warning = str(jobs["last_hour_warning"].trigger)
        assert "day_of_week='fri'" in warning and "hour='17'" in warning
        assert "hour='18'" in str(jobs["post_results"].trigger)

    def test_follows_configured_week(self):
        settings = Settings(bot_token="x", nomination_days=2, voting_close_weekday=3, voting_close_hour=0)
        jobs = _jobs(settings)

        assert "day_of_week='wed'" in str(jobs["announce_voting_open"].trigger)
        assert "day_of_week='tue'" in str(jobs["nudge_nominations"].trigger)
        warning = str(jobs["last_hour_warning"].trigger)
        assert "day_of_week='wed'" in warning and "hour='23'" in warning

    def test_rollover_job_gets_no_notifier(self):
        jobs = _jobs(Settings(bot_token="x"))
        assert set(jobs["roll_over_week"].kwargs) == {"db", "machine"}
        assert set(jobs["post_results"].kwargs) == {"db", "machine", "notifier"}
