# utils/clock.py
"""
Club-local clock.

Everything that needs "now" (minimum bookable date, same-day session
filtering, the next-session resolver) asks the clock registered on the
application instead of calling datetime.now() directly, so tests can pin time.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

from flask import current_app


class ClubClock:
    """Wall clock in the club's civil timezone, returned as naive local datetimes."""

    def __init__(self, timezone_name='Australia/Brisbane'):
        self.timezone_name = timezone_name
        self._tz = None

    @property
    def tz(self):
        if self._tz is None:
            self._tz = ZoneInfo(self.timezone_name)
        return self._tz

    def now(self):
        return datetime.now(self.tz).replace(tzinfo=None)

    def today(self):
        return self.now().date()


class FixedClock:
    """Clock pinned to a given moment."""

    def __init__(self, moment):
        self.moment = moment

    def now(self):
        return self.moment

    def today(self):
        return self.moment.date()

    def set(self, moment):
        self.moment = moment


def get_clock():
    """Return the clock registered on the current application."""
    return current_app.extensions['club_clock']
