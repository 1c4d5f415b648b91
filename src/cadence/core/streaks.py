"""Pure streak and completion statistics - no I/O dependencies.

Everything is computed over the scheduled days the recurrence engine yields
for a task, so a weekly task is not penalised for the days it is off.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from .calendar import ONE_DAY, iter_days, start_of_week
from .tasks import Task


class HeatMapStatus(Enum):
    COMPLETED = "completed"
    MISSED = "missed"
    NO_TASK = "no_task"
    FUTURE = "future"


@dataclass
class HeatMapCell:
    day: date
    status: HeatMapStatus


@dataclass
class StreakSummary:
    """Streak statistics for one task as of a given day."""

    task_id: str
    as_of: date
    current: int
    best: int
    completion_rate: float | None
    scheduled: int
    completed: int


def scheduled_days(task: Task, start: date, stop: date) -> list[date]:
    """Scheduled dates in [start, stop)."""
    return list(task.occurrences_between(start, stop))


def current_streak(task: Task, as_of: date) -> int:
    """
    Consecutive completed occurrences ending at `as_of`.

    An occurrence on `as_of` itself that is not yet completed leaves the
    streak intact: the day is still open.
    """
    days = scheduled_days(task, task.start_date, as_of + ONE_DAY)
    if days and days[-1] == as_of and not task.is_completed_on(as_of):
        days.pop()

    streak = 0
    for d in reversed(days):
        if not task.is_completed_on(d):
            break
        streak += 1
    return streak


def best_streak(task: Task, start: date, stop: date) -> int:
    """Longest run of completed occurrences in [start, stop)."""
    best = run = 0
    for d in task.occurrences_between(start, stop):
        if task.is_completed_on(d):
            run += 1
            best = max(best, run)
        else:
            run = 0
    return best


def completion_rate(task: Task, start: date, stop: date) -> float | None:
    """Share of scheduled days in [start, stop) that were completed; None if none scheduled."""
    days = scheduled_days(task, start, stop)
    if not days:
        return None
    done = sum(1 for d in days if task.is_completed_on(d))
    return done / len(days)


def heat_map(task: Task, start: date, stop: date, today: date) -> list[HeatMapCell]:
    """One cell per day in [start, stop)."""
    scheduled = set(task.occurrences_between(start, stop))
    cells = []
    for d in iter_days(start, stop):
        if d > today:
            status = HeatMapStatus.FUTURE
        elif d not in scheduled:
            status = HeatMapStatus.NO_TASK
        elif task.is_completed_on(d):
            status = HeatMapStatus.COMPLETED
        else:
            status = HeatMapStatus.MISSED
        cells.append(HeatMapCell(day=d, status=status))
    return cells


def heat_map_window(today: date, weeks: int) -> tuple[date, date]:
    """[start, stop) covering `weeks` whole weeks, the last one containing today."""
    stop = start_of_week(today) + timedelta(weeks=1)
    return stop - timedelta(weeks=weeks), stop


def summarize(task: Task, as_of: date) -> StreakSummary:
    """Streaks and completion rate from the task's start through `as_of`."""
    stop = as_of + ONE_DAY
    days = scheduled_days(task, task.start_date, stop)
    completed = sum(1 for d in days if task.is_completed_on(d))
    return StreakSummary(
        task_id=task.id,
        as_of=as_of,
        current=current_streak(task, as_of),
        best=best_streak(task, task.start_date, stop),
        completion_rate=completed / len(days) if days else None,
        scheduled=len(days),
        completed=completed,
    )
