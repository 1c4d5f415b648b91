"""RFC 5545 RRULE export for calendar sync.

Only shapes RFC 5545 can state exactly are exported; the rest raise
UnsupportedRuleError rather than silently approximating.
"""

from datetime import date

from .calendar import weekday_of
from .rules import (
    Daily,
    EveryNMonths,
    EveryNWeeks,
    EveryNYears,
    FixedDate,
    MonthDays,
    Monthly,
    MonthOrdinals,
    Recurrence,
    SelectedDays,
    SpecificMonths,
    SpecificWeeksOfMonth,
    Weekly,
    WeeklyModulo,
    Yearly,
    YearlyModulo,
    ensure_valid,
    is_degenerate,
)

BYDAY_CODES = {1: "SU", 2: "MO", 3: "TU", 4: "WE", 5: "TH", 6: "FR", 7: "SA"}


class UnsupportedRuleError(ValueError):
    """The rule has no exact RRULE equivalent."""


def _join(values) -> str:
    return ",".join(str(v) for v in sorted(values))


def _byday(days) -> str:
    return ",".join(BYDAY_CODES[d] for d in sorted(days))


def _parts(recurrence: Recurrence, anchor: date) -> list[str]:
    rule = recurrence.rule
    match rule:
        case Daily():
            return ["FREQ=DAILY"]
        case Weekly(mode=SelectedDays(days=days)):
            return ["FREQ=WEEKLY", "WKST=SU", f"BYDAY={_byday(days)}"]
        case Weekly(mode=EveryNWeeks(interval=interval)):
            parts = ["FREQ=WEEKLY", "WKST=SU"]
            if interval > 1:
                parts.append(f"INTERVAL={interval}")
            parts.append(f"BYDAY={BYDAY_CODES[weekday_of(anchor)]}")
            return parts
        case Weekly(mode=SpecificWeeksOfMonth() | WeeklyModulo()):
            raise UnsupportedRuleError("Week-of-month and modulo weekly rules have no RRULE form")
        case Monthly(days=days_rule, months=month_filter):
            parts = ["FREQ=MONTHLY"]
            match month_filter:
                case EveryNMonths(interval=interval) if interval > 1:
                    parts.append(f"INTERVAL={interval}")
                case SpecificMonths(months=months):
                    parts.append(f"BYMONTH={_join(months)}")
            match days_rule:
                case MonthDays(days=days):
                    parts.append(f"BYMONTHDAY={_join(days)}")
                case MonthOrdinals(patterns=patterns):
                    ordered = sorted(patterns, key=lambda p: (p.ordinal, p.weekday))
                    parts.append("BYDAY=" + ",".join(f"{p.ordinal}{BYDAY_CODES[p.weekday]}" for p in ordered))
            return parts
        case Yearly(mode=FixedDate(month=month, day=day)):
            return ["FREQ=YEARLY", f"BYMONTH={month}", f"BYMONTHDAY={day}"]
        case Yearly(mode=EveryNYears(interval=interval)):
            parts = ["FREQ=YEARLY"]
            if interval > 1:
                parts.append(f"INTERVAL={interval}")
            parts += [f"BYMONTH={anchor.month}", f"BYMONTHDAY={anchor.day}"]
            return parts
        case Yearly(mode=YearlyModulo()):
            raise UnsupportedRuleError("Modulo yearly rules have no RRULE form")
    raise UnsupportedRuleError(f"Unknown rule: {rule!r}")


def to_rrule(recurrence: Recurrence, anchor: date) -> str:
    """
    Render an 'RRULE:' line for a recurrence anchored at `anchor`.

    The anchor is the DTSTART the consumer must pair with the line. An end
    date becomes an inclusive UNTIL in DATE form.
    """
    if is_degenerate(recurrence.rule):
        raise UnsupportedRuleError("A rule with an empty set never occurs and has no RRULE form")
    ensure_valid(recurrence.rule)

    parts = _parts(recurrence, anchor)
    if recurrence.end_date is not None:
        parts.append(f"UNTIL={recurrence.end_date.strftime('%Y%m%d')}")
    return "RRULE:" + ";".join(parts)
