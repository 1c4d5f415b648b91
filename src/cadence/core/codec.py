"""Rule serialization to and from plain JSON-compatible dicts.

Round-trip is lossless: rule_from_dict(rule_to_dict(r)) == r for every rule,
including ones that would fail validation. Decoding only checks structure.
"""

from datetime import date, time
from typing import Any

from .rules import (
    Daily,
    EveryNMonths,
    EveryNWeeks,
    EveryNYears,
    FixedDate,
    MonthDays,
    Monthly,
    MonthOrdinals,
    OrdinalPattern,
    Recurrence,
    Rule,
    SelectedDays,
    SpecificMonths,
    SpecificWeeksOfMonth,
    Weekly,
    WeeklyModulo,
    Yearly,
    YearlyModulo,
)


class RuleDecodeError(ValueError):
    """Serialized rule data is structurally invalid."""


def _ints(values) -> list[int]:
    return sorted(values)


def time_to_str(t: time) -> str:
    """'HH:MM' when there are no seconds, full ISO otherwise."""
    if t.second or t.microsecond:
        return t.isoformat()
    return t.isoformat(timespec="minutes")


def _pattern_key(p: OrdinalPattern) -> tuple[int, int]:
    return (p.ordinal, p.weekday)


def rule_to_dict(rule: Rule) -> dict[str, Any]:
    """Encode a rule as a tagged dict."""
    match rule:
        case Daily():
            return {"type": "daily"}
        case Weekly(mode=SelectedDays(days=days, times=times)):
            data: dict[str, Any] = {"type": "weekly", "mode": "selected_days", "days": _ints(days)}
            if times is not None:
                data["times"] = {str(k): time_to_str(t) for k, t in sorted(times.items())}
            return data
        case Weekly(mode=EveryNWeeks(interval=interval)):
            return {"type": "weekly", "mode": "every_n_weeks", "interval": interval}
        case Weekly(mode=SpecificWeeksOfMonth(ordinals=ordinals)):
            return {"type": "weekly", "mode": "weeks_of_month", "ordinals": _ints(ordinals)}
        case Weekly(mode=WeeklyModulo(k=k, offset=offset)):
            return {"type": "weekly", "mode": "modulo", "k": k, "offset": offset}
        case Monthly(days=days_rule, months=month_filter):
            data = {"type": "monthly"}
            match days_rule:
                case MonthDays(days=days):
                    data["mode"] = "days"
                    data["days"] = _ints(days)
                case MonthOrdinals(patterns=patterns):
                    data["mode"] = "ordinal"
                    data["patterns"] = [
                        {"ordinal": p.ordinal, "weekday": p.weekday}
                        for p in sorted(patterns, key=_pattern_key)
                    ]
            match month_filter:
                case EveryNMonths(interval=interval):
                    data["every_n_months"] = interval
                case SpecificMonths(months=months):
                    data["months"] = _ints(months)
            return data
        case Yearly(mode=FixedDate(month=month, day=day)):
            return {"type": "yearly", "mode": "fixed_date", "month": month, "day": day}
        case Yearly(mode=EveryNYears(interval=interval)):
            return {"type": "yearly", "mode": "every_n_years", "interval": interval}
        case Yearly(mode=YearlyModulo(k=k, offset=offset)):
            return {"type": "yearly", "mode": "modulo", "k": k, "offset": offset}
    raise TypeError(f"Not a recurrence rule: {rule!r}")


def _int(data: dict, key: str) -> int:
    try:
        value = data[key]
    except KeyError:
        raise RuleDecodeError(f"Missing field '{key}'") from None
    if not isinstance(value, int) or isinstance(value, bool):
        raise RuleDecodeError(f"Field '{key}' must be an integer, got {value!r}")
    return value


def _int_list(data: dict, key: str) -> list[int]:
    try:
        values = data[key]
    except KeyError:
        raise RuleDecodeError(f"Missing field '{key}'") from None
    if not isinstance(values, list) or not all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        raise RuleDecodeError(f"Field '{key}' must be a list of integers, got {values!r}")
    return values


def _times(raw) -> dict[int, time]:
    if not isinstance(raw, dict):
        raise RuleDecodeError(f"Field 'times' must be an object, got {raw!r}")
    try:
        return {int(k): time.fromisoformat(v) for k, v in raw.items()}
    except (TypeError, ValueError) as e:
        raise RuleDecodeError(f"Invalid weekday time: {e}") from e


def _patterns(data: dict) -> frozenset[OrdinalPattern]:
    raw = data.get("patterns")
    if not isinstance(raw, list):
        raise RuleDecodeError(f"Field 'patterns' must be a list, got {raw!r}")
    patterns = []
    for item in raw:
        if not isinstance(item, dict):
            raise RuleDecodeError(f"Ordinal pattern must be an object, got {item!r}")
        patterns.append(OrdinalPattern(ordinal=_int(item, "ordinal"), weekday=_int(item, "weekday")))
    return frozenset(patterns)


def _month_filter(data: dict) -> EveryNMonths | SpecificMonths:
    if "months" in data:
        if "every_n_months" in data:
            raise RuleDecodeError("Use either 'months' or 'every_n_months', not both")
        return SpecificMonths(frozenset(_int_list(data, "months")))
    if "every_n_months" in data:
        return EveryNMonths(_int(data, "every_n_months"))
    return EveryNMonths(1)


def rule_from_dict(data: dict[str, Any]) -> Rule:
    """Decode a tagged dict produced by rule_to_dict."""
    if not isinstance(data, dict):
        raise RuleDecodeError(f"Rule must be an object, got {type(data).__name__}")

    kind = data.get("type")
    mode = data.get("mode")

    match kind, mode:
        case "daily", _:
            return Daily()
        case "weekly", "selected_days":
            times = _times(data["times"]) if data.get("times") is not None else None
            return Weekly(SelectedDays(frozenset(_int_list(data, "days")), times))
        case "weekly", "every_n_weeks":
            return Weekly(EveryNWeeks(_int(data, "interval")))
        case "weekly", "weeks_of_month":
            return Weekly(SpecificWeeksOfMonth(frozenset(_int_list(data, "ordinals"))))
        case "weekly", "modulo":
            return Weekly(WeeklyModulo(_int(data, "k"), _int(data, "offset")))
        case "monthly", "days":
            return Monthly(MonthDays(frozenset(_int_list(data, "days"))), _month_filter(data))
        case "monthly", "ordinal":
            return Monthly(MonthOrdinals(_patterns(data)), _month_filter(data))
        case "yearly", "fixed_date":
            return Yearly(FixedDate(_int(data, "month"), _int(data, "day")))
        case "yearly", "every_n_years":
            return Yearly(EveryNYears(_int(data, "interval")))
        case "yearly", "modulo":
            return Yearly(YearlyModulo(_int(data, "k"), _int(data, "offset")))

    raise RuleDecodeError(f"Unknown rule type/mode: {kind!r}/{mode!r}")


def recurrence_to_dict(recurrence: Recurrence) -> dict[str, Any]:
    data = rule_to_dict(recurrence.rule)
    if recurrence.end_date is not None:
        data["end_date"] = recurrence.end_date.isoformat()
    return data


def recurrence_from_dict(data: dict[str, Any]) -> Recurrence:
    rule = rule_from_dict(data)
    end_date = None
    if data.get("end_date"):
        try:
            end_date = date.fromisoformat(data["end_date"])
        except (TypeError, ValueError) as e:
            raise RuleDecodeError(f"Invalid end_date: {data['end_date']!r}") from e
    return Recurrence(rule=rule, end_date=end_date)
