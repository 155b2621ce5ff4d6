"""Civil calendar for the daily cycle.

"Today" is always the date observed in one configured timezone, never the
server's local date.
"""

from datetime import date, datetime, timedelta
from typing import Callable, Optional

import pytz
from flask import current_app


class Calendar:
    def __init__(self, timezone_name: str, now: Optional[Callable[[], datetime]] = None):
        self.timezone = pytz.timezone(timezone_name)
        self._now = now or (lambda: datetime.now(pytz.utc))

    def now(self) -> datetime:
        moment = self._now()
        if moment.tzinfo is None:
            moment = pytz.utc.localize(moment)
        return moment.astimezone(self.timezone)

    def today(self) -> date:
        return self.now().date()

    def tomorrow(self) -> date:
        return self.today() + timedelta(days=1)

    @staticmethod
    def days_between(earlier: date, later: date) -> int:
        return (later - earlier).days

    @staticmethod
    def same_week(a: date, b: date) -> bool:
        return a.isocalendar()[:2] == b.isocalendar()[:2]


class FixedCalendar(Calendar):
    """Calendar pinned to a given civil date (tests, backfills)."""

    def __init__(self, timezone_name: str, today: date):
        self.fixed_date = today
        super().__init__(timezone_name, now=self._noon)

    def _noon(self) -> datetime:
        return self.timezone.localize(datetime(self.fixed_date.year, self.fixed_date.month, self.fixed_date.day, 12))

    def advance(self, days: int = 1) -> date:
        self.fixed_date = self.fixed_date + timedelta(days=days)
        return self.fixed_date


def get_calendar() -> Calendar:
    return current_app.extensions['debate_calendar']
