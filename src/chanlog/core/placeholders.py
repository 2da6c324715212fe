"""
Placeholder catalog and the clock sample that feeds it.

Every template token is a literal marker string such as ``%year`` or
``%prompt``. The catalog itself is a pure lookup table (`Placeholder`); the
values for the time-based markers come from a `ClockSample`, which freezes a
single wall-clock reading so that every marker expanded during one render
call observes the same instant.

Week conventions
----------------
- ``%woy``: ISO-8601 week of the week-based year.
- ``%wom``: week of month with Sunday-started weeks, week 1 being the week
  that contains the 1st.
- ``%dow`` / ``%ms``: ISO weekday numbers, Monday = 1 ... Sunday = 7.
- Elapsed counters (``%hiw``, ``%miw``, ``%siw`` ...) count from Monday 00:00
  for the week, the 1st 00:00 for the month and January 1st 00:00 for the year.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Placeholder(Enum):
    """Named template tokens, each bound to its literal marker."""

    YEAR = "%year"
    MONTH = "%month"
    MONTH_NAME = "%mn"
    MONTH_START = "%ms"
    MONTH_START_NAME = "%msn"
    WEEK_OF_YEAR = "%woy"
    WEEK_OF_MONTH = "%wom"
    DAY_OF_YEAR = "%doy"
    DAY_OF_MONTH = "%dom"
    DAY_OF_WEEK = "%dow"
    DAY_OF_WEEK_NAME = "%down"
    HOUR_AM_PM = "%ampm"
    HOUR12 = "%hour12"
    HOUR24 = "%hour24"
    HOURS_IN_YEAR = "%hiy"
    HOURS_IN_MONTH = "%him"
    HOURS_IN_WEEK = "%hiw"
    MINUTES_IN_YEAR = "%miy"
    MINUTES_IN_MONTH = "%mim"
    MINUTES_IN_WEEK = "%miw"
    SECONDS_IN_YEAR = "%siy"
    SECONDS_IN_MONTH = "%sim"
    SECONDS_IN_WEEK = "%siw"
    MINUTE = "%minute"
    SECOND = "%second"
    MILLISECOND = "%millis"
    NANOSECOND = "%nano"
    LEVEL = "%level"
    TITLE = "%title"
    PROMPT = "%prompt"

    @property
    def marker(self) -> str:
        """The literal text of this token inside a template."""
        return str(self.value)

    @classmethod
    def parse(cls, marker: str, ignore_case: bool = False) -> Placeholder | None:
        """Return the entry whose marker equals ``marker``, or ``None``."""
        for item in cls:
            if item.marker == marker:
                return item
            if ignore_case and item.marker.lower() == marker.lower():
                return item
        return None

    def __str__(self) -> str:
        return self.marker


# Longest markers first so "%down" wins over "%dow" and "%msn" over "%ms".
MARKER_PATTERN: re.Pattern[str] = re.compile(
    "|".join(
        re.escape(p.marker) for p in sorted(Placeholder, key=lambda p: len(p.marker), reverse=True)
    )
)


MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)  # fmt: skip
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def _pad(value: int) -> str:
    """Zero-pad values below 10 to two digits."""
    return f"{value:02d}"


@dataclass(frozen=True, slots=True)
class ClockSample:
    """
    One frozen wall-clock reading plus every calendar value derived from it.

    Attributes
    ----------
    moment : datetime
        The sampled instant (local time unless the caller supplied otherwise).
    """

    moment: datetime

    @classmethod
    def now(cls) -> ClockSample:
        """Sample the local wall clock."""
        return cls(datetime.now())

    # ------------------------------ derived ---------------------------------

    @property
    def iso_weekday(self) -> int:
        return self.moment.isoweekday()

    @property
    def day_of_year(self) -> int:
        return self.moment.timetuple().tm_yday

    @property
    def week_of_month(self) -> int:
        first = self.moment.replace(day=1)
        sunday_offset = first.isoweekday() % 7
        return (self.moment.day - 1 + sunday_offset) // 7 + 1

    @property
    def month_start(self) -> datetime:
        return self.moment.replace(day=1)

    @property
    def hour12(self) -> int:
        return self.moment.hour % 12 or 12

    @property
    def is_am(self) -> bool:
        return self.moment.hour < 12

    def seconds_since(self, days_elapsed: int) -> int:
        """Seconds elapsed since midnight ``days_elapsed`` days ago."""
        m = self.moment
        return days_elapsed * 86400 + m.hour * 3600 + m.minute * 60 + m.second

    # ------------------------------ values ----------------------------------

    def values(self) -> dict[Placeholder, str]:
        """Return the rendered text of every time-based placeholder."""
        m = self.moment
        in_week = self.iso_weekday - 1
        in_month = m.day - 1
        in_year = self.day_of_year - 1
        return {
            Placeholder.YEAR: _pad(m.year),
            Placeholder.MONTH: _pad(m.month),
            Placeholder.MONTH_NAME: MONTH_NAMES[m.month - 1],
            Placeholder.MONTH_START: str(self.month_start.isoweekday()),
            Placeholder.MONTH_START_NAME: DAY_NAMES[self.month_start.weekday()],
            Placeholder.WEEK_OF_YEAR: _pad(m.isocalendar()[1]),
            Placeholder.WEEK_OF_MONTH: _pad(self.week_of_month),
            Placeholder.DAY_OF_YEAR: _pad(self.day_of_year),
            Placeholder.DAY_OF_MONTH: _pad(m.day),
            Placeholder.DAY_OF_WEEK: _pad(self.iso_weekday),
            Placeholder.DAY_OF_WEEK_NAME: DAY_NAMES[m.weekday()],
            Placeholder.HOUR12: _pad(self.hour12),
            Placeholder.HOUR24: _pad(m.hour),
            Placeholder.HOURS_IN_YEAR: str(self.seconds_since(in_year) // 3600),
            Placeholder.HOURS_IN_MONTH: str(self.seconds_since(in_month) // 3600),
            Placeholder.HOURS_IN_WEEK: str(self.seconds_since(in_week) // 3600),
            Placeholder.MINUTES_IN_YEAR: str(self.seconds_since(in_year) // 60),
            Placeholder.MINUTES_IN_MONTH: str(self.seconds_since(in_month) // 60),
            Placeholder.MINUTES_IN_WEEK: str(self.seconds_since(in_week) // 60),
            Placeholder.SECONDS_IN_YEAR: str(self.seconds_since(in_year)),
            Placeholder.SECONDS_IN_MONTH: str(self.seconds_since(in_month)),
            Placeholder.SECONDS_IN_WEEK: str(self.seconds_since(in_week)),
            Placeholder.MINUTE: _pad(m.minute),
            Placeholder.SECOND: _pad(m.second),
            Placeholder.MILLISECOND: str(m.microsecond // 1000),
            Placeholder.NANOSECOND: str(m.microsecond * 1000),
        }


__all__ = ["MARKER_PATTERN", "ClockSample", "Placeholder"]
