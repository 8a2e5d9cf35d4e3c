"""
Date and night arithmetic for the booking calendar.

A stay is described by its arrival and departure days. The unit of occupancy is
the night: a ``DateRange(start, end)`` occupies the nights that begin on
``start`` up to, but not including, ``end``. The departure day is therefore free
for the next guest to arrive on (back-to-back stays).
"""
from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, List, Optional, Union

from chaletbook.exceptions import InvalidDateFormat, InvalidDateRange
from chaletbook.status import DayStatus

DATE_FORMAT = "%Y-%m-%d"
DEFAULT_HORIZON_YEARS = 2

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

DateLike = Union[date, datetime, str]


# ------------------------------------
# Parsing & formatting
# ------------------------------------
def parse_date(value: str) -> date:
    """Parses 'YYYY-MM-DD' into a calendar date without any timezone shift."""
    if not isinstance(value, str):
        raise InvalidDateFormat(value)
    match = _ISO_DATE_RE.match(value.strip())
    if not match:
        raise InvalidDateFormat(value)
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDateFormat(value) from e


def to_date(value: DateLike) -> date:
    """Normalizes a date, a datetime (local day) or an ISO string to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date(value)


def format_date(value: DateLike) -> str:
    return to_date(value).strftime(DATE_FORMAT)


def add_days(value: DateLike, days: int) -> date:
    return to_date(value) + timedelta(days=days)


def get_previous_day(value: DateLike) -> date:
    return add_days(value, -1)


def iter_days(start: DateLike, end: DateLike) -> Iterator[date]:
    """Yields every calendar day from start to end, both included."""
    current = to_date(start)
    last = to_date(end)
    while current <= last:
        yield current
        current += timedelta(days=1)


# ------------------------------------
# Night counting
# ------------------------------------
def get_days_between(start: DateLike, end: DateLike) -> int:
    """Number of nights between two days; the end day is exclusive."""
    return abs((to_date(end) - to_date(start)).days)


def get_days_inclusive(start: DateLike, end: DateLike) -> int:
    """Number of calendar days touched by a stay, used for display only."""
    return get_days_between(start, end) + 1


def is_night_occupied(night: DateLike, range_start: DateLike, range_end: DateLike) -> bool:
    return to_date(range_start) <= to_date(night) < to_date(range_end)


@dataclass(frozen=True)
class DateRange:
    """Arrival/departure pair. Occupies nights [start, end)."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidDateRange(
                f"Range start {format_date(self.start)} is after its end {format_date(self.end)}."
            )

    @classmethod
    def of(cls, start: DateLike, end: DateLike) -> "DateRange":
        return cls(to_date(start), to_date(end))

    @classmethod
    def spanning(cls, first: DateLike, second: DateLike) -> "DateRange":
        """Range between two days given in either order."""
        a, b = to_date(first), to_date(second)
        return cls(min(a, b), max(a, b))

    @property
    def nights(self) -> int:
        return get_days_between(self.start, self.end)

    @property
    def days_inclusive(self) -> int:
        return get_days_inclusive(self.start, self.end)

    def occupies(self, night: DateLike) -> bool:
        return is_night_occupied(night, self.start, self.end)

    def overlaps(self, other: "DateRange") -> bool:
        return self.start < other.end and other.start < self.end

    def contains_day(self, day: DateLike) -> bool:
        return self.start <= to_date(day) <= self.end

    def days(self) -> Iterator[date]:
        return iter_days(self.start, self.end)

    def to_dict(self) -> dict:
        return {"start_date": format_date(self.start), "end_date": format_date(self.end)}

    def __str__(self) -> str:
        return f"{format_date(self.start)}..{format_date(self.end)}"


def get_day_status(day: DateLike, ranges: Iterable[DateRange]) -> DayStatus:
    """
    Classifies a day by the two nights around it: the night ending on the day
    and the night starting on it.
    """
    night_after = to_date(day)
    night_before = get_previous_day(night_after)
    before = after = False
    for occupied in ranges:
        before = before or occupied.occupies(night_before)
        after = after or occupied.occupies(night_after)
        if before and after:
            return DayStatus.OCCUPIED
    if before or after:
        return DayStatus.EDGE
    return DayStatus.AVAILABLE


# ------------------------------------
# Booking date validation
# ------------------------------------
def is_past(day: DateLike, today: Optional[date] = None) -> bool:
    return to_date(day) < (today or date.today())


def _add_years(value: date, years: int) -> date:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # 29 February
        return value.replace(year=value.year + years, day=28)


def validate_date_range(
    start: DateLike,
    end: DateLike,
    is_admin: bool = False,
    allow_single_day: bool = False,
    today: Optional[date] = None,
    horizon_years: int = DEFAULT_HORIZON_YEARS,
) -> DateRange:
    """
    Checks that a requested stay can be booked and returns it as a DateRange.

    Guests cannot book in the past, must stay at least one night and cannot
    book further ahead than the booking horizon. Administrators may book past
    dates, and blockages may cover a single day (start == end).
    """
    start_day = to_date(start)
    end_day = to_date(end)
    today = today or date.today()

    if not is_admin and start_day < today:
        raise InvalidDateRange("Cannot book in the past.")

    if allow_single_day:
        if start_day > end_day:
            raise InvalidDateRange("The period must end on or after its first day.")
    elif start_day >= end_day:
        raise InvalidDateRange("Departure must be after arrival (at least 1 night).")

    if start_day > _add_years(today, horizon_years):
        raise InvalidDateRange(f"Bookings cannot be made more than {horizon_years} years ahead.")

    return DateRange(start_day, end_day)


# ------------------------------------
# Month grid
# ------------------------------------
@dataclass(frozen=True)
class CalendarDay:
    day: date
    is_other_month: bool

    @property
    def day_of_month(self) -> int:
        return self.day.day


def get_calendar_days(year: int, month: int) -> List[CalendarDay]:
    """Monday-first grid of a month, padded with neighbouring days to whole weeks."""
    first = date(year, month, 1)
    days_in_month = calendar.monthrange(year, month)[1]
    lead = first.weekday()

    grid = [CalendarDay(first - timedelta(days=lead - i), True) for i in range(lead)]
    grid.extend(CalendarDay(date(year, month, i), False) for i in range(1, days_in_month + 1))

    trailing = (7 - len(grid) % 7) % 7
    last = date(year, month, days_in_month)
    grid.extend(CalendarDay(last + timedelta(days=i), True) for i in range(1, trailing + 1))
    return grid


def first_of_month(value: DateLike) -> date:
    return to_date(value).replace(day=1)


def shift_month(value: DateLike, delta: int) -> date:
    """First day of the month ``delta`` months away from ``value``."""
    base = to_date(value)
    index = base.year * 12 + (base.month - 1) + delta
    return date(index // 12, index % 12 + 1, 1)
