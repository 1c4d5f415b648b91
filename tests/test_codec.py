"""Tests for rule serialization."""

import json
from datetime import date, time

import pytest

from cadence.core.calendar import FRIDAY, LAST, MONDAY, WEDNESDAY
from cadence.core.codec import (
    RuleDecodeError,
    recurrence_from_dict,
    recurrence_to_dict,
    rule_from_dict,
    rule_to_dict,
)
from cadence.core.rules import (
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
    SelectedDays,
    SpecificMonths,
    SpecificWeeksOfMonth,
    Weekly,
    WeeklyModulo,
    Yearly,
    YearlyModulo,
)

RULES = [
    Daily(),
    Weekly(SelectedDays({MONDAY, WEDNESDAY})),
    Weekly(SelectedDays({MONDAY, WEDNESDAY}, times={MONDAY: time(8, 0), WEDNESDAY: time(18, 30, 15)})),
    Weekly(EveryNWeeks(2)),
    Weekly(SpecificWeeksOfMonth({1, 3, LAST})),
    Weekly(WeeklyModulo(3, 1)),
    Monthly(MonthDays({1, 15, 31})),
    Monthly(MonthDays({10}), EveryNMonths(3)),
    Monthly(MonthDays({10}), SpecificMonths({3, 6, 9, 12})),
    Monthly(MonthOrdinals({OrdinalPattern(LAST, FRIDAY), OrdinalPattern(1, MONDAY)})),
    Yearly(FixedDate(2, 29)),
    Yearly(EveryNYears(4)),
    Yearly(YearlyModulo(2, 1)),
    # Malformed values survive the round trip untouched
    Weekly(EveryNWeeks(0)),
    Weekly(SelectedDays(set())),
]


class TestRoundTrip:
    @pytest.mark.parametrize("rule", RULES)
    def test_decode_encode_is_identity(self, rule):
        assert rule_from_dict(rule_to_dict(rule)) == rule

    @pytest.mark.parametrize("rule", RULES)
    def test_survives_json(self, rule):
        encoded = json.dumps(rule_to_dict(rule))
        assert rule_from_dict(json.loads(encoded)) == rule

    def test_stable_encoding(self):
        rule = Monthly(MonthOrdinals({OrdinalPattern(LAST, FRIDAY), OrdinalPattern(1, MONDAY)}))
        assert rule_to_dict(rule_from_dict(rule_to_dict(rule))) == rule_to_dict(rule)

    def test_recurrence_with_end_date(self):
        recurrence = Recurrence(Weekly(EveryNWeeks(2)), end_date=date(2024, 12, 31))
        data = recurrence_to_dict(recurrence)
        assert data["end_date"] == "2024-12-31"
        assert recurrence_from_dict(data) == recurrence

    def test_recurrence_without_end_date(self):
        recurrence = Recurrence(Daily())
        data = recurrence_to_dict(recurrence)
        assert "end_date" not in data
        assert recurrence_from_dict(data) == recurrence


class TestEncoding:
    def test_every_n_weeks_shape(self):
        assert rule_to_dict(Weekly(EveryNWeeks(2))) == {
            "type": "weekly",
            "mode": "every_n_weeks",
            "interval": 2,
        }

    def test_sets_are_sorted_lists(self):
        data = rule_to_dict(Monthly(MonthDays({31, 1, 15})))
        assert data["days"] == [1, 15, 31]
        assert data["every_n_months"] == 1

    def test_times_as_hh_mm(self):
        data = rule_to_dict(Weekly(SelectedDays({MONDAY}, times={MONDAY: time(8, 0)})))
        assert data["times"] == {"2": "08:00"}

    def test_not_a_rule(self):
        with pytest.raises(TypeError):
            rule_to_dict("daily")


class TestDecoding:
    def test_monthly_without_filter_is_every_month(self):
        rule = rule_from_dict({"type": "monthly", "mode": "days", "days": [5]})
        assert rule == Monthly(MonthDays({5}), EveryNMonths(1))

    @pytest.mark.parametrize(
        "data,fragment",
        [
            ({"type": "hourly"}, "Unknown rule"),
            ({"type": "weekly", "mode": "fortnightly"}, "Unknown rule"),
            ({"type": "weekly", "mode": "every_n_weeks"}, "Missing field 'interval'"),
            ({"type": "weekly", "mode": "every_n_weeks", "interval": "2"}, "must be an integer"),
            ({"type": "weekly", "mode": "every_n_weeks", "interval": True}, "must be an integer"),
            ({"type": "weekly", "mode": "selected_days", "days": "MO"}, "list of integers"),
            ({"type": "weekly", "mode": "selected_days", "days": [2], "times": {"2": "noon"}}, "Invalid weekday time"),
            ({"type": "monthly", "mode": "ordinal", "patterns": [{"ordinal": 1}]}, "Missing field 'weekday'"),
            ({"type": "monthly", "mode": "ordinal"}, "'patterns' must be a list"),
            ({"type": "monthly", "mode": "days", "days": [1], "months": [1], "every_n_months": 2}, "not both"),
        ],
    )
    def test_structural_errors(self, data, fragment):
        with pytest.raises(RuleDecodeError, match=fragment):
            rule_from_dict(data)

    def test_not_a_dict(self):
        with pytest.raises(RuleDecodeError):
            rule_from_dict(["daily"])

    def test_bad_end_date(self):
        with pytest.raises(RuleDecodeError, match="end_date"):
            recurrence_from_dict({"type": "daily", "end_date": "tomorrow"})

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            rule_from_dict({"type": "nope"})
