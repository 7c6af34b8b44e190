"""
Clock
=====

Time source for the monitor. Instants are timezone-aware UTC datetimes;
`localize` converts them to the wall clock used for window gating and the
trial-expiry calendar.
"""

from datetime import date, datetime, timezone

import pytz


class Clock:
    """System clock bound to a monitoring timezone."""

    def __init__(self, tz_name: str = "Asia/Tokyo"):
        self.tz = pytz.timezone(tz_name)

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def localize(self, instant: datetime) -> datetime:
        """Wall-clock reading of `instant` in the monitoring timezone."""
        return instant.astimezone(self.tz)

    def local_hour(self, instant: datetime) -> int:
        return self.localize(instant).hour

    def local_date(self, instant: datetime) -> date:
        return self.localize(instant).date()

    def local_midnight(self, day: date) -> datetime:
        """Start of `day` in the monitoring timezone, as an aware datetime."""
        return self.tz.localize(datetime(day.year, day.month, day.day))
