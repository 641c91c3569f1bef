# movienight/utils/phase_policy.py
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from movienight.utils.dates import to_local

WEEKDAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


class Phase(str, enum.Enum):
    NOMINATION = "nomination"
    VOTING = "voting"
    RESULTS = "results"


@dataclass(frozen=True, slots=True)
class PhasePolicy:
    """
    Calendar boundaries of a movie week, in local time of `timezone`.

    Monday 00:00 .. +nomination_days          -> nomination
    .. voting_close_weekday @ voting_close_hour -> voting
    .. Sunday 24:00                           -> results

    Weekdays are Monday=0 .. Sunday=6.
    """

    timezone: str = "UTC"
    nomination_days: int = 4
    voting_close_weekday: int = 4
    voting_close_hour: int = 18

    def __post_init__(self) -> None:
        ZoneInfo(self.timezone)  # raises for unknown zones

        if not (1 <= self.nomination_days <= 7):
            raise ValueError("nomination_days must be 1..7")
        if not (0 <= self.voting_close_weekday <= 6):
            raise ValueError("voting_close_weekday must be 0..6 (Monday=0)")
        if not (0 <= self.voting_close_hour <= 23):
            raise ValueError("voting_close_hour must be 0..23")
        if self._voting_close_hour_of_week < self._nomination_end_hour_of_week:
            raise ValueError("voting must close after the nomination window ends")

    @property
    def _nomination_end_hour_of_week(self) -> int:
        return self.nomination_days * 24

    @property
    def _voting_close_hour_of_week(self) -> int:
        return self.voting_close_weekday * 24 + self.voting_close_hour

    @property
    def voting_opens_weekday(self) -> int:
        return self.nomination_days

    def local(self, ts: datetime) -> datetime:
        return to_local(ts, self.timezone)

    def phase_of(self, ts: datetime) -> Phase:
        t = self.local(ts)
        hour_of_week = t.weekday() * 24 + t.hour

        if hour_of_week < self._nomination_end_hour_of_week:
            return Phase.NOMINATION
        if hour_of_week < self._voting_close_hour_of_week:
            return Phase.VOTING
        return Phase.RESULTS

    def voting_deadline(self, ts: datetime) -> datetime:
        """
        Next voting close at or after `ts`; a moment exactly at the close
        already points to the following week. Returned in local time.
        """
        t = self.local(ts)
        monday = (t - timedelta(days=t.weekday())).replace(hour=0, minute=0, second=0, microsecond=0)
        close = monday + timedelta(days=self.voting_close_weekday, hours=self.voting_close_hour)
        if t >= close:
            close += timedelta(days=7)
        return close

    def cron_day(self, weekday: int) -> str:
        return WEEKDAY_NAMES[weekday % 7]
