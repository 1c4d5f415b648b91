"""Recurrence rule model - immutable values, no behavior beyond validation.

A rule describes the shape of a recurrence only. The anchor date comes from
the owning task at evaluation time; the optional end date travels with the
rule inside a Recurrence.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, time
from types import MappingProxyType

from .calendar import LAST, ORDINALS, WEEKDAY_NAMES, WEEKDAYS, days_in_month, weekday_of


class InvalidRuleError(ValueError):
    """Raised at the edit boundary when a rule fails validation."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("; ".join(problems))


def _freeze(obj, name: str, values: Iterable) -> None:
    object.__setattr__(obj, name, frozenset(values))


@dataclass(frozen=True)
class OrdinalPattern:
    """The Nth (1-5) or last (-1) given weekday of a month."""

    ordinal: int
    weekday: int


# ============== Weekly modes ==============


@dataclass(frozen=True)
class SelectedDays:
    """Any date whose weekday is in `days`, optionally with a time per weekday."""

    days: frozenset[int]
    times: Mapping[int, time] | None = field(default=None, hash=False)

    def __post_init__(self):
        _freeze(self, "days", self.days)
        if self.times is not None:
            object.__setattr__(self, "times", MappingProxyType(dict(self.times)))

    def time_for(self, weekday: int) -> time | None:
        if not self.times:
            return None
        return self.times.get(weekday)


@dataclass(frozen=True)
class EveryNWeeks:
    """The anchor's weekday, every `interval` weeks from the anchor's week."""

    interval: int


@dataclass(frozen=True)
class SpecificWeeksOfMonth:
    """The anchor's weekday, in the listed weeks of each month (-1 = last)."""

    ordinals: frozenset[int]

    def __post_init__(self):
        _freeze(self, "ordinals", self.ordinals)


@dataclass(frozen=True)
class WeeklyModulo:
    """The anchor's weekday, in weeks where (week - anchor week) mod k == offset."""

    k: int
    offset: int = 0


WeeklyMode = SelectedDays | EveryNWeeks | SpecificWeeksOfMonth | WeeklyModulo


# ============== Monthly parts ==============


@dataclass(frozen=True)
class MonthDays:
    """Days of the month; a day past the month's length is skipped."""

    days: frozenset[int]

    def __post_init__(self):
        _freeze(self, "days", self.days)


@dataclass(frozen=True)
class MonthOrdinals:
    patterns: frozenset[OrdinalPattern]

    def __post_init__(self):
        _freeze(self, "patterns", self.patterns)


@dataclass(frozen=True)
class EveryNMonths:
    """Every `interval` months counted from the anchor's month."""

    interval: int = 1


@dataclass(frozen=True)
class SpecificMonths:
    months: frozenset[int]

    def __post_init__(self):
        _freeze(self, "months", self.months)


MonthlyDays = MonthDays | MonthOrdinals
MonthFilter = EveryNMonths | SpecificMonths


# ============== Yearly modes ==============


@dataclass(frozen=True)
class FixedDate:
    month: int
    day: int


@dataclass(frozen=True)
class EveryNYears:
    """The anchor's month and day, every `interval` years."""

    interval: int


@dataclass(frozen=True)
class YearlyModulo:
    k: int
    offset: int = 0


YearlyMode = FixedDate | EveryNYears | YearlyModulo


# ============== Top-level rules ==============


@dataclass(frozen=True)
class Daily:
    pass


@dataclass(frozen=True)
class Weekly:
    mode: WeeklyMode


@dataclass(frozen=True)
class Monthly:
    days: MonthlyDays
    months: MonthFilter = EveryNMonths(1)


@dataclass(frozen=True)
class Yearly:
    mode: YearlyMode


Rule = Daily | Weekly | Monthly | Yearly


@dataclass(frozen=True)
class Recurrence:
    """A rule plus its optional inclusive end date, as embedded in a task."""

    rule: Rule
    end_date: date | None = None


# ============== Validation ==============


def _check_interval(problems: list[str], label: str, interval) -> None:
    if not isinstance(interval, int) or interval < 1:
        problems.append(f"{label} interval must be >= 1, got {interval!r}")


def _check_modulo(problems: list[str], label: str, k, offset) -> None:
    if not isinstance(k, int) or k < 2:
        problems.append(f"{label} modulo k must be >= 2, got {k!r}")
    elif not isinstance(offset, int) or not 0 <= offset < k:
        problems.append(f"{label} modulo offset must be in [0, {k}), got {offset!r}")


def _check_members(problems: list[str], label: str, values, allowed=None) -> None:
    if not values:
        problems.append(f"{label} must not be empty")
        return
    if allowed is None:
        return
    bad = sorted((v for v in values if v not in allowed), key=repr)
    if bad:
        problems.append(f"{label} has out-of-range values: {bad}")


def validate_rule(rule: Rule) -> list[str]:
    """
    List every problem with a rule. An empty list means the rule is valid.

    Empty required sets are reported here so the edit boundary can refuse
    them; the evaluator itself treats them as "never occurs".
    """
    problems: list[str] = []
    match rule:
        case Daily():
            pass
        case Weekly(mode=SelectedDays(days=days)):
            _check_members(problems, "weekly days", days, WEEKDAYS)
        case Weekly(mode=EveryNWeeks(interval=interval)):
            _check_interval(problems, "weekly", interval)
        case Weekly(mode=SpecificWeeksOfMonth(ordinals=ordinals)):
            _check_members(problems, "weeks of month", ordinals, ORDINALS)
        case Weekly(mode=WeeklyModulo(k=k, offset=offset)):
            _check_modulo(problems, "weekly", k, offset)
        case Monthly(days=days_rule, months=month_filter):
            match days_rule:
                case MonthDays(days=days):
                    _check_members(problems, "days of month", days, range(1, 32))
                case MonthOrdinals(patterns=patterns):
                    _check_members(problems, "ordinal patterns", patterns)
                    for p in patterns:
                        if p.ordinal not in ORDINALS or p.weekday not in WEEKDAYS:
                            problems.append(f"invalid ordinal pattern: {p}")
                case _:
                    problems.append(f"unknown monthly day rule: {days_rule!r}")
            match month_filter:
                case EveryNMonths(interval=interval):
                    _check_interval(problems, "monthly", interval)
                case SpecificMonths(months=months):
                    _check_members(problems, "months", months, range(1, 13))
                case _:
                    problems.append(f"unknown month filter: {month_filter!r}")
        case Yearly(mode=FixedDate(month=month, day=day)):
            if month not in range(1, 13):
                problems.append(f"yearly month must be 1-12, got {month!r}")
            elif day not in range(1, days_in_month(2000, month) + 1):
                problems.append(f"yearly day {day!r} does not exist in month {month}")
        case Yearly(mode=EveryNYears(interval=interval)):
            _check_interval(problems, "yearly", interval)
        case Yearly(mode=YearlyModulo(k=k, offset=offset)):
            _check_modulo(problems, "yearly", k, offset)
        case _:
            problems.append(f"unknown rule: {rule!r}")
    return problems


def is_degenerate(rule: Rule) -> bool:
    """True when a required set is empty: a valid rule that never occurs."""
    match rule:
        case Weekly(mode=SelectedDays(days=values)) | Weekly(mode=SpecificWeeksOfMonth(ordinals=values)):
            return not values
        case Monthly(days=days_rule, months=month_filter):
            if isinstance(days_rule, MonthDays) and not days_rule.days:
                return True
            if isinstance(days_rule, MonthOrdinals) and not days_rule.patterns:
                return True
            return isinstance(month_filter, SpecificMonths) and not month_filter.months
    return False


def ensure_valid(rule: Rule) -> Rule:
    """Return the rule unchanged, or raise InvalidRuleError."""
    problems = validate_rule(rule)
    if problems:
        raise InvalidRuleError(problems)
    return rule


# ============== Display ==============

_ORDINAL_WORDS = {1: "1st", 2: "2nd", 3: "3rd", 4: "4th", 5: "5th", LAST: "last"}
_MONTH_NAMES = [
    "", "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def _weekday_list(days: Iterable[int]) -> str:
    return ", ".join(WEEKDAY_NAMES.get(d, str(d)) for d in sorted(days))


def describe(rule: Rule, anchor: date | None = None) -> str:
    """Short human-readable summary, e.g. 'every 2 weeks on Monday'."""
    anchor_day = WEEKDAY_NAMES[weekday_of(anchor)] if anchor else "the start weekday"
    match rule:
        case Daily():
            return "every day"
        case Weekly(mode=SelectedDays(days=days)):
            return f"weekly on {_weekday_list(days) or 'no days'}"
        case Weekly(mode=EveryNWeeks(interval=1)):
            return f"every week on {anchor_day}"
        case Weekly(mode=EveryNWeeks(interval=n)):
            return f"every {n} weeks on {anchor_day}"
        case Weekly(mode=SpecificWeeksOfMonth(ordinals=ordinals)):
            weeks = ", ".join(_ORDINAL_WORDS.get(o, str(o)) for o in sorted(ordinals, key=lambda o: o if o > 0 else 99))
            return f"{anchor_day} in the {weeks or 'no'} week of the month"
        case Weekly(mode=WeeklyModulo(k=k, offset=offset)):
            return f"{anchor_day} in weeks {offset} mod {k}"
        case Monthly(days=days_rule, months=month_filter):
            if isinstance(days_rule, MonthDays):
                what = "day " + (", ".join(str(d) for d in sorted(days_rule.days)) or "none")
            else:
                what = ", ".join(
                    f"{_ORDINAL_WORDS.get(p.ordinal, p.ordinal)} {WEEKDAY_NAMES.get(p.weekday, p.weekday)}"
                    for p in sorted(days_rule.patterns, key=lambda p: (p.ordinal if p.ordinal > 0 else 99, p.weekday))
                ) or "none"
            if isinstance(month_filter, SpecificMonths):
                months = ", ".join(_MONTH_NAMES[m] if 1 <= m <= 12 else str(m) for m in sorted(month_filter.months))
                return f"{what} of {months or 'no months'}"
            if month_filter.interval == 1:
                return f"monthly on {what}"
            return f"every {month_filter.interval} months on {what}"
        case Yearly(mode=FixedDate(month=month, day=day)):
            name = _MONTH_NAMES[month] if 1 <= month <= 12 else str(month)
            return f"every year on {name} {day}"
        case Yearly(mode=EveryNYears(interval=n)):
            when = f"{_MONTH_NAMES[anchor.month]} {anchor.day}" if anchor else "the start date"
            return f"every {n} years on {when}" if n > 1 else f"every year on {when}"
        case Yearly(mode=YearlyModulo(k=k, offset=offset)):
            return f"yearly in years {offset} mod {k}"
    return repr(rule)
