"""Tests for core task logic."""

from datetime import date, time, timedelta

import pytest

from cadence.core.calendar import MONDAY, WEDNESDAY
from cadence.core.codec import RuleDecodeError
from cadence.core.rules import Daily, EveryNWeeks, Recurrence, SelectedDays, Weekly
from cadence.core.tasks import (
    Task,
    TaskDecodeError,
    filter_overdue,
    sort_by_priority,
    tasks_for_day,
)


# Fixtures
@pytest.fixture
def monday():
    return date(2024, 1, 1)


@pytest.fixture
def gym(monday):
    return Task(
        id="gym",
        title="Gym",
        start_date=monday,
        recurrence=Recurrence(
            Weekly(SelectedDays({MONDAY, WEDNESDAY}, times={MONDAY: time(7, 0)}))
        ),
        start_time=time(18, 0),
    )


@pytest.fixture
def dentist(monday):
    return Task(id="dentist", title="Dentist", start_date=monday + timedelta(days=3))


class TestOccursOn:
    def test_recurring(self, gym):
        assert gym.occurs_on(date(2024, 1, 3)) is True
        assert gym.occurs_on(date(2024, 1, 4)) is False

    def test_not_before_start(self, gym):
        assert gym.occurs_on(date(2023, 12, 27)) is False

    def test_one_off_only_on_start(self, dentist):
        assert dentist.occurs_on(date(2024, 1, 4)) is True
        assert dentist.occurs_on(date(2024, 1, 11)) is False

    def test_end_date(self, monday):
        task = Task(id="t", title="t", start_date=monday, recurrence=Recurrence(Daily(), end_date=date(2024, 1, 3)))
        assert task.end_date == date(2024, 1, 3)
        assert task.occurs_on(date(2024, 1, 3)) is True
        assert task.occurs_on(date(2024, 1, 4)) is False


class TestOccurrencesBetween:
    def test_recurring(self, gym):
        days = list(gym.occurrences_between(date(2024, 1, 1), date(2024, 1, 15)))
        assert days == [date(2024, 1, 1), date(2024, 1, 3), date(2024, 1, 8), date(2024, 1, 10)]

    def test_one_off_inside(self, dentist):
        assert list(dentist.occurrences_between(date(2024, 1, 1), date(2024, 2, 1))) == [date(2024, 1, 4)]

    def test_one_off_outside(self, dentist):
        assert list(dentist.occurrences_between(date(2024, 1, 5), date(2024, 2, 1))) == []


class TestNextOccurrence:
    def test_recurring(self, gym):
        assert gym.next_occurrence(date(2024, 1, 4)) == date(2024, 1, 8)

    def test_one_off_pending(self, dentist):
        assert dentist.next_occurrence(date(2024, 1, 2)) == date(2024, 1, 4)

    def test_one_off_passed(self, dentist):
        assert dentist.next_occurrence(date(2024, 1, 5)) is None


class TestTimeOn:
    def test_weekday_time_wins(self, gym):
        assert gym.time_on(date(2024, 1, 1)) == time(7, 0)

    def test_falls_back_to_start_time(self, gym):
        assert gym.time_on(date(2024, 1, 3)) == time(18, 0)

    def test_untimed(self, dentist):
        assert dentist.time_on(date(2024, 1, 4)) is None


class TestReanchor:
    @pytest.fixture
    def fortnightly(self, monday):
        return Task(id="f", title="Fortnightly", start_date=monday, recurrence=Recurrence(Weekly(EveryNWeeks(2))))

    def test_weekday_and_phase_follow_new_start(self, fortnightly):
        moved = fortnightly.reanchor(date(2024, 1, 9))
        days = list(moved.occurrences_between(date(2024, 1, 1), date(2024, 2, 1)))
        assert days == [date(2024, 1, 9), date(2024, 1, 23)]

    def test_original_untouched(self, fortnightly, monday):
        fortnightly.reanchor(date(2024, 1, 9))
        assert fortnightly.start_date == monday
        assert fortnightly.occurs_on(date(2024, 1, 15)) is True

    def test_completions_copied(self, fortnightly, monday):
        fortnightly.complete(monday)
        moved = fortnightly.reanchor(date(2024, 1, 9))
        moved.complete(date(2024, 1, 9))
        assert moved.completions == {monday, date(2024, 1, 9)}
        assert fortnightly.completions == {monday}


class TestCompletions:
    def test_complete_and_uncomplete(self, gym, monday):
        gym.complete(monday)
        assert gym.is_completed_on(monday) is True
        gym.uncomplete(monday)
        assert gym.is_completed_on(monday) is False

    def test_uncomplete_missing_is_noop(self, gym, monday):
        gym.uncomplete(monday)
        assert gym.completions == set()


class TestSerialization:
    def test_round_trip(self, gym, monday):
        gym.complete(monday)
        gym.priority = 3
        assert Task.from_dict(gym.to_dict()) == gym

    def test_one_off_round_trip(self, dentist):
        data = dentist.to_dict()
        assert data["recurrence"] is None
        assert data["start_time"] is None
        assert Task.from_dict(data) == dentist

    def test_dict_shape(self, gym, monday):
        gym.complete(date(2024, 1, 3))
        gym.complete(monday)
        data = gym.to_dict()
        assert data["start_date"] == "2024-01-01"
        assert data["start_time"] == "18:00"
        assert data["completions"] == ["2024-01-01", "2024-01-03"]
        assert data["recurrence"]["mode"] == "selected_days"

    def test_start_time_keeps_seconds(self, dentist):
        dentist.start_time = time(9, 30, 15)
        data = dentist.to_dict()
        assert data["start_time"] == "09:30:15"
        assert Task.from_dict(data).start_time == time(9, 30, 15)

    def test_missing_id(self):
        with pytest.raises(TaskDecodeError):
            Task.from_dict({"title": "x", "start_date": "2024-01-01"})

    def test_bad_date(self):
        with pytest.raises(TaskDecodeError, match="'t1'"):
            Task.from_dict({"id": "t1", "title": "x", "start_date": "soon"})

    def test_bad_recurrence(self):
        with pytest.raises(RuleDecodeError):
            Task.from_dict({"id": "t1", "title": "x", "start_date": "2024-01-01", "recurrence": {"type": "hourly"}})


class TestCorePackage:
    def test_recurring_task_after_importing_core(self):
        import cadence.core as core

        task = core.Task(id="t", title="t", start_date=date(2024, 1, 1), recurrence=core.Recurrence(core.Daily()))
        assert task.occurs_on(date(2024, 1, 5)) is True
        assert list(task.occurrences_between(date(2024, 1, 1), date(2024, 1, 3))) == [date(2024, 1, 1), date(2024, 1, 2)]
        assert task.next_occurrence(date(2024, 2, 1)) == date(2024, 2, 1)


class TestTasksForDay:
    def test_filters(self, gym, dentist):
        assert tasks_for_day([gym, dentist], date(2024, 1, 3)) == [gym]
        assert tasks_for_day([gym, dentist], date(2024, 1, 4)) == [dentist]
        assert tasks_for_day([gym, dentist], date(2024, 1, 5)) == []


class TestSortByPriority:
    def test_priority_first(self, monday):
        low = Task(id="1", title="Low", start_date=monday, priority=1)
        high = Task(id="2", title="High", start_date=monday, priority=5)
        assert sort_by_priority([low, high]) == [high, low]

    def test_time_then_title(self, monday):
        late = Task(id="1", title="A late", start_date=monday, start_time=time(17, 0))
        early = Task(id="2", title="Z early", start_date=monday, start_time=time(9, 0))
        untimed = Task(id="3", title="B untimed", start_date=monday)
        also_untimed = Task(id="4", title="a untimed", start_date=monday)
        result = sort_by_priority([untimed, late, also_untimed, early])
        assert [t.id for t in result] == ["2", "1", "4", "3"]

    def test_uses_weekday_time_for_day(self, gym, monday):
        other = Task(id="o", title="Other", start_date=monday, start_time=time(8, 0))
        # Monday gym is at 07:00, Wednesday gym at 18:00
        assert sort_by_priority([other, gym], monday) == [gym, other]
        assert sort_by_priority([gym, other], date(2024, 1, 3)) == [other, gym]


class TestFilterOverdue:
    def test_past_uncompleted_one_off(self, dentist):
        assert filter_overdue([dentist], date(2024, 1, 5)) == [dentist]

    def test_completed_is_not_overdue(self, dentist):
        dentist.complete(dentist.start_date)
        assert filter_overdue([dentist], date(2024, 1, 5)) == []

    def test_due_today_is_not_overdue(self, dentist):
        assert filter_overdue([dentist], date(2024, 1, 4)) == []

    def test_recurring_never_overdue(self, gym):
        assert filter_overdue([gym], date(2024, 6, 1)) == []
