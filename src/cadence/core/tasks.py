"""Pure task domain logic - no I/O dependencies."""

from dataclasses import dataclass, field, replace
from datetime import date, time
from typing import Iterator

from .occurrences import matches, next_occurrence, occurrences
from .calendar import weekday_of
from .codec import recurrence_from_dict, recurrence_to_dict, time_to_str
from .rules import Recurrence, SelectedDays, Weekly


class TaskDecodeError(ValueError):
    """A stored task record is malformed."""


@dataclass
class Task:
    """A task, optionally recurring. Its start date anchors the recurrence."""

    id: str
    title: str
    start_date: date
    recurrence: Recurrence | None = None
    priority: int = 0
    start_time: time | None = None
    completions: set[date] = field(default_factory=set)

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None

    @property
    def end_date(self) -> date | None:
        return self.recurrence.end_date if self.recurrence else None

    def occurs_on(self, day: date) -> bool:
        """Scheduled on `day`? A one-off task occurs on its start date only."""
        if self.recurrence is None:
            return day == self.start_date
        return matches(self.recurrence.rule, self.start_date, self.recurrence.end_date, day)

    def occurrences_between(self, start: date, stop: date) -> Iterator[date]:
        """Scheduled dates in [start, stop)."""
        if self.recurrence is None:
            if start <= self.start_date < stop:
                yield self.start_date
            return
        yield from occurrences(
            self.recurrence.rule, self.start_date, self.recurrence.end_date, start, stop
        )

    def next_occurrence(self, after: date) -> date | None:
        """First scheduled date on or after `after`."""
        if self.recurrence is None:
            return self.start_date if self.start_date >= after else None
        return next_occurrence(
            self.recurrence.rule, self.start_date, self.recurrence.end_date, after
        )

    def time_on(self, day: date) -> time | None:
        """Time of day for the occurrence on `day`: per-weekday time, else start time."""
        if self.recurrence and isinstance(self.recurrence.rule, Weekly):
            mode = self.recurrence.rule.mode
            if isinstance(mode, SelectedDays):
                per_day = mode.time_for(weekday_of(day))
                if per_day is not None:
                    return per_day
        return self.start_time

    def reanchor(self, new_start: date) -> "Task":
        """
        Copy of this task starting on `new_start`.

        Every anchored computation (weekday, week/month/year index) follows
        the new start date; completions are kept as recorded.
        """
        return replace(self, start_date=new_start, completions=set(self.completions))

    def is_completed_on(self, day: date) -> bool:
        return day in self.completions

    def complete(self, day: date) -> None:
        self.completions.add(day)

    def uncomplete(self, day: date) -> None:
        self.completions.discard(day)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "start_date": self.start_date.isoformat(),
            "start_time": time_to_str(self.start_time) if self.start_time else None,
            "priority": self.priority,
            "recurrence": recurrence_to_dict(self.recurrence) if self.recurrence else None,
            "completions": sorted(d.isoformat() for d in self.completions),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from its stored dict form."""
        try:
            task_id = data["id"]
            start = date.fromisoformat(data["start_date"])
            start_time = time.fromisoformat(data["start_time"]) if data.get("start_time") else None
            completions = {date.fromisoformat(d) for d in data.get("completions", [])}
        except (KeyError, TypeError, ValueError) as e:
            raise TaskDecodeError(f"Invalid task record {data.get('id')!r}: {e}") from e
        recurrence = recurrence_from_dict(data["recurrence"]) if data.get("recurrence") else None
        return cls(
            id=task_id,
            title=data.get("title", ""),
            start_date=start,
            recurrence=recurrence,
            priority=data.get("priority", 0) or 0,
            start_time=start_time,
            completions=completions,
        )


def tasks_for_day(tasks: list[Task], day: date) -> list[Task]:
    """
    Filter to tasks scheduled on `day`.

    Pure function - no I/O.
    """
    return [t for t in tasks if t.occurs_on(day)]


def sort_by_priority(tasks: list[Task], day: date | None = None) -> list[Task]:
    """
    Sort tasks by priority (descending), then time of day, then title.

    Pure function - no I/O.
    """

    def sort_key(t: Task) -> tuple[int, time, str]:
        # Untimed tasks go last within a priority
        at = t.time_on(day) if day else t.start_time
        return (-t.priority, at or time.max, t.title.lower())

    return sorted(tasks, key=sort_key)


def filter_overdue(tasks: list[Task], as_of: date) -> list[Task]:
    """One-off tasks whose start date has passed without completion."""
    return [
        t
        for t in tasks
        if not t.is_recurring and t.start_date < as_of and not t.is_completed_on(t.start_date)
    ]
