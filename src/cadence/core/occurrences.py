"""Occurrence evaluator - pure functions of (rule, anchor, end date, query).

Two entry points:

- matches(): is a single date an occurrence?
- occurrences(): lazily list the occurrences in a half-open range.

occurrences() jumps straight to candidate periods (the next qualifying week,
month or year) instead of testing every day. scan_occurrences() is the
day-by-day reference it must agree with.

No function here raises for a rule built from the model's types: malformed
rules and empty sets simply produce no occurrences.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterator

from .calendar import (
    LAST,
    ONE_DAY,
    as_date,
    days_in_month,
    is_last_week_of_month,
    iter_days,
    month_from_index,
    month_index,
    nth_weekday_of_month,
    week_index,
    week_of_month_index,
    weekday_of,
)
from .rules import (
    Daily,
    EveryNMonths,
    EveryNWeeks,
    EveryNYears,
    FixedDate,
    MonthDays,
    MonthFilter,
    MonthlyDays,
    Monthly,
    MonthOrdinals,
    Rule,
    SelectedDays,
    SpecificMonths,
    SpecificWeeksOfMonth,
    Weekly,
    WeeklyModulo,
    Yearly,
    YearlyModulo,
    is_degenerate,
    validate_rule,
)

logger = logging.getLogger(__name__)

DateLike = date | datetime

DEFAULT_LOOKAHEAD = timedelta(days=366 * 10)


def _is_usable(rule: Rule) -> bool:
    problems = validate_rule(rule)
    if problems and not is_degenerate(rule):
        logger.debug(f"Treating malformed rule as never occurring: {'; '.join(problems)}")
    return not problems


# ============== Single-date predicate ==============


def _week_selected(ordinals: frozenset[int], d: date) -> bool:
    if week_of_month_index(d) in ordinals:
        return True
    return LAST in ordinals and is_last_week_of_month(d)


def _month_allowed(month_filter: MonthFilter, anchor: date, d: date) -> bool:
    match month_filter:
        case EveryNMonths(interval=interval):
            return (month_index(d) - month_index(anchor)) % interval == 0
        case SpecificMonths(months=months):
            return d.month in months
    return False


def _day_allowed(days_rule: MonthlyDays, d: date) -> bool:
    match days_rule:
        case MonthDays(days=days):
            return d.day in days
        case MonthOrdinals(patterns=patterns):
            return any(
                nth_weekday_of_month(d.year, d.month, p.weekday, p.ordinal) == d
                for p in patterns
            )
    return False


def _matches_shape(rule: Rule, anchor: date, d: date) -> bool:
    same_weekday = weekday_of(d) == weekday_of(anchor)
    same_day_of_year = (d.month, d.day) == (anchor.month, anchor.day)

    match rule:
        case Daily():
            return True
        case Weekly(mode=SelectedDays(days=days)):
            return weekday_of(d) in days
        case Weekly(mode=EveryNWeeks(interval=interval)):
            return same_weekday and (week_index(d) - week_index(anchor)) % interval == 0
        case Weekly(mode=SpecificWeeksOfMonth(ordinals=ordinals)):
            return same_weekday and _week_selected(ordinals, d)
        case Weekly(mode=WeeklyModulo(k=k, offset=offset)):
            return same_weekday and (week_index(d) - week_index(anchor)) % k == offset
        case Monthly(days=days_rule, months=month_filter):
            return _month_allowed(month_filter, anchor, d) and _day_allowed(days_rule, d)
        case Yearly(mode=FixedDate(month=month, day=day)):
            return (d.month, d.day) == (month, day)
        case Yearly(mode=EveryNYears(interval=interval)):
            return same_day_of_year and (d.year - anchor.year) % interval == 0
        case Yearly(mode=YearlyModulo(k=k, offset=offset)):
            return same_day_of_year and (d.year - anchor.year) % k == offset
    return False


def matches(
    rule: Rule,
    anchor: DateLike,
    end_date: DateLike | None,
    day: DateLike,
) -> bool:
    """
    Is `day` an occurrence of `rule` anchored at `anchor`?

    True iff anchor <= day <= end_date (when given) and day fits the rule's
    shape. Only the date component of each argument is considered.
    """
    anchor = as_date(anchor)
    day = as_date(day)
    if day < anchor:
        return False
    if end_date is not None and day > as_date(end_date):
        return False
    if not _is_usable(rule):
        return False
    return _matches_shape(rule, anchor, day)


# ============== Range generation ==============


def _bounds(
    anchor: date,
    end_date: DateLike | None,
    start: DateLike,
    stop: DateLike,
) -> tuple[date, date]:
    """Effective half-open window [lo, hi)."""
    lo = max(anchor, as_date(start))
    hi = as_date(stop)
    if end_date is not None:
        last = as_date(end_date)
        if last < hi:
            hi = last + ONE_DAY
    return lo, hi


def _weekly_stride(anchor: date, lo: date, hi: date, period: int, phase: int) -> Iterator[date]:
    """
    Anchor-weekday dates whose week distance from the anchor is phase mod period.

    Steps over ordinals, so a window touching date.min or date.max never
    builds an out-of-range date.
    """
    n = lo.toordinal() + (weekday_of(anchor) - weekday_of(lo)) % 7
    weeks = (n - anchor.toordinal()) // 7
    n += 7 * ((phase - weeks) % period)
    stop = hi.toordinal()
    while n < stop:
        yield date.fromordinal(n)
        n += 7 * period


def _months_in_window(month_filter: MonthFilter, anchor: date, lo: date, hi: date) -> Iterator[tuple[int, int]]:
    first = month_index(lo)
    last = month_index(hi - ONE_DAY)
    match month_filter:
        case EveryNMonths(interval=interval):
            m = first + (month_index(anchor) - first) % interval
            while m <= last:
                yield month_from_index(m)
                m += interval
        case SpecificMonths(months=months):
            for m in range(first, last + 1):
                year, month = month_from_index(m)
                if month in months:
                    yield year, month


def _days_in(days_rule: MonthlyDays, year: int, month: int) -> list[date]:
    """Resolved occurrence dates for one month, ascending."""
    match days_rule:
        case MonthDays(days=days):
            limit = days_in_month(year, month)
            return [date(year, month, d) for d in sorted(days) if d <= limit]
        case MonthOrdinals(patterns=patterns):
            resolved = {nth_weekday_of_month(year, month, p.weekday, p.ordinal) for p in patterns}
            return sorted(d for d in resolved if d is not None)
    return []


def _years_in_window(lo: date, hi: date, base_year: int, period: int, phase: int) -> Iterator[int]:
    year = lo.year + (base_year + phase - lo.year) % period
    last = (hi - ONE_DAY).year
    while year <= last:
        yield year
        year += period


def _on_day(year: int, month: int, day: int) -> date | None:
    if day > days_in_month(year, month):
        return None
    return date(year, month, day)


def _candidates(rule: Rule, anchor: date, lo: date, hi: date) -> Iterator[date]:
    match rule:
        case Daily():
            yield from iter_days(lo, hi)
        case Weekly(mode=SelectedDays(days=days)):
            for d in iter_days(lo, hi):
                if weekday_of(d) in days:
                    yield d
        case Weekly(mode=EveryNWeeks(interval=interval)):
            yield from _weekly_stride(anchor, lo, hi, interval, 0)
        case Weekly(mode=WeeklyModulo(k=k, offset=offset)):
            yield from _weekly_stride(anchor, lo, hi, k, offset)
        case Weekly(mode=SpecificWeeksOfMonth(ordinals=ordinals)):
            for d in _weekly_stride(anchor, lo, hi, 1, 0):
                if _week_selected(ordinals, d):
                    yield d
        case Monthly(days=days_rule, months=month_filter):
            for year, month in _months_in_window(month_filter, anchor, lo, hi):
                for d in _days_in(days_rule, year, month):
                    if lo <= d < hi:
                        yield d
        case Yearly(mode=mode):
            match mode:
                case FixedDate(month=month, day=day):
                    years = _years_in_window(lo, hi, anchor.year, 1, 0)
                case EveryNYears(interval=interval):
                    month, day = anchor.month, anchor.day
                    years = _years_in_window(lo, hi, anchor.year, interval, 0)
                case YearlyModulo(k=k, offset=offset):
                    month, day = anchor.month, anchor.day
                    years = _years_in_window(lo, hi, anchor.year, k, offset)
                case _:
                    return
            for year in years:
                d = _on_day(year, month, day)
                if d is not None and lo <= d < hi:
                    yield d


def occurrences(
    rule: Rule,
    anchor: DateLike,
    end_date: DateLike | None,
    start: DateLike,
    stop: DateLike,
) -> Iterator[date]:
    """
    Occurrences in [start, stop), ascending.

    The window is further clipped to [anchor, end_date]. The result is a
    generator: nothing past what the caller consumes is computed, and
    calling again with the same arguments yields the same dates.
    """
    anchor = as_date(anchor)
    lo, hi = _bounds(anchor, end_date, start, stop)
    if lo >= hi or not _is_usable(rule):
        return
    yield from _candidates(rule, anchor, lo, hi)


def scan_occurrences(
    rule: Rule,
    anchor: DateLike,
    end_date: DateLike | None,
    start: DateLike,
    stop: DateLike,
) -> Iterator[date]:
    """Day-by-day reference for occurrences(): test every date with matches()."""
    for d in iter_days(as_date(start), as_date(stop)):
        if matches(rule, anchor, end_date, d):
            yield d


def next_occurrence(
    rule: Rule,
    anchor: DateLike,
    end_date: DateLike | None,
    after: DateLike,
    within: timedelta = DEFAULT_LOOKAHEAD,
) -> date | None:
    """First occurrence on or after `after`, looking ahead at most `within`."""
    start = as_date(after)
    try:
        stop = start + within
    except OverflowError:
        stop = date.max
    return next(occurrences(rule, anchor, end_date, start, stop), None)
