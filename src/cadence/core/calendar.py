"""Pure calendar primitives - no I/O dependencies.

Weekdays are numbered 1=Sunday .. 7=Saturday. Weeks start on FIRST_WEEKDAY,
a fixed constant shared by every weekly computation (week index,
week-of-month, start of week). It is not derived from the locale.
"""

import calendar as _stdcal
from datetime import date, datetime, timedelta
from typing import Iterator

SUNDAY = 1
MONDAY = 2
TUESDAY = 3
WEDNESDAY = 4
THURSDAY = 5
FRIDAY = 6
SATURDAY = 7

WEEKDAYS = range(SUNDAY, SATURDAY + 1)
WEEKDAY_NAMES = {
    SUNDAY: "Sunday",
    MONDAY: "Monday",
    TUESDAY: "Tuesday",
    WEDNESDAY: "Wednesday",
    THURSDAY: "Thursday",
    FRIDAY: "Friday",
    SATURDAY: "Saturday",
}

FIRST_WEEKDAY = SUNDAY

LAST = -1
ORDINALS = (1, 2, 3, 4, 5, LAST)

ONE_DAY = timedelta(days=1)


def as_date(value: date | datetime) -> date:
    """Strip the time component, if any."""
    if isinstance(value, datetime):
        return value.date()
    return value


def weekday_of(d: date) -> int:
    """Weekday number, 1=Sunday .. 7=Saturday."""
    return d.isoweekday() % 7 + 1


def days_in_month(year: int, month: int) -> int:
    return _stdcal.monthrange(year, month)[1]


def start_of_week(d: date) -> date:
    """First day of the week containing d, using FIRST_WEEKDAY."""
    offset = (weekday_of(d) - FIRST_WEEKDAY) % 7
    return d - timedelta(days=offset)


def start_of_month(d: date) -> date:
    return d.replace(day=1)


def end_of_month(d: date) -> date:
    return d.replace(day=days_in_month(d.year, d.month))


def start_of_year(d: date) -> date:
    return date(d.year, 1, 1)


def week_index(d: date) -> int:
    """
    Monotonic week counter since the proleptic Gregorian epoch.

    Only meaningful for subtraction and modulo; two dates in the same week
    (FIRST_WEEKDAY boundaries) share an index. Ordinal 7 (0001-01-07) is a
    Sunday. Works on ordinals so date.min and date.max are safe.
    """
    return (d.toordinal() - (FIRST_WEEKDAY - SUNDAY)) // 7


def month_index(d: date) -> int:
    """Monotonic month counter: year * 12 + (month - 1)."""
    return d.year * 12 + d.month - 1


def month_from_index(index: int) -> tuple[int, int]:
    """Inverse of month_index: (year, month)."""
    year, month0 = divmod(index, 12)
    return year, month0 + 1


def nth_weekday_of_month(year: int, month: int, weekday: int, ordinal: int) -> date | None:
    """
    Resolve the Nth (1-5) or last (-1) given weekday of a month.

    Returns None when that occurrence does not exist in the month (e.g. a
    5th Friday in a month with four) or when the arguments are out of range.
    """
    if weekday not in WEEKDAYS or ordinal not in ORDINALS:
        return None

    if ordinal == LAST:
        d = date(year, month, days_in_month(year, month))
        while weekday_of(d) != weekday:
            d -= ONE_DAY
        return d

    first = date(year, month, 1)
    d = first + timedelta(days=(weekday - weekday_of(first)) % 7)
    d += timedelta(weeks=ordinal - 1)
    if d.month != month:
        return None
    return d


def week_of_month_index(d: date) -> int:
    """
    1-based index of the week containing d within its month.

    Week 1 is the (possibly partial) week holding the 1st of the month.
    """
    lead = (weekday_of(d.replace(day=1)) - FIRST_WEEKDAY) % 7
    return (d.day + lead - 1) // 7 + 1


def weeks_in_month(year: int, month: int) -> int:
    """Week-of-month index of the month's final week."""
    return week_of_month_index(date(year, month, days_in_month(year, month)))


def is_last_week_of_month(d: date) -> bool:
    return week_of_month_index(d) == weeks_in_month(d.year, d.month)


def iter_days(start: date, stop: date) -> Iterator[date]:
    """Every date in the half-open range [start, stop)."""
    d = start
    while d < stop:
        yield d
        d += ONE_DAY
