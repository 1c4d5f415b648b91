"""Pure reminder planning - no I/O dependencies.

Works out *when* reminders for a task's upcoming occurrences fall. Delivery
belongs to whatever consumes the plan.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from .tasks import Task

DEFAULT_HORIZON_DAYS = 30


@dataclass
class Reminder:
    task_id: str
    title: str
    occurs_at: datetime
    remind_at: datetime

    @property
    def key(self) -> str:
        """Stable identifier for one occurrence of one task."""
        return f"task_{self.task_id}_{self.occurs_at.date().isoformat()}"


def plan_reminders(
    task: Task,
    now: datetime,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    lead: timedelta = timedelta(0),
) -> list[Reminder]:
    """
    Reminders for occurrences in [today, today + horizon_days) still ahead of `now`.

    The occurrence time is the weekday's own time when the rule has one,
    otherwise the task's start time. Untimed tasks get no reminders.
    """
    today = now.date()
    stop = today + timedelta(days=horizon_days)
    reminders = []
    for day in task.occurrences_between(today, stop):
        at = task.time_on(day)
        if at is None:
            continue
        occurs_at = datetime.combine(day, at, tzinfo=now.tzinfo)
        remind_at = occurs_at - lead
        if remind_at <= now:
            continue
        reminders.append(
            Reminder(task_id=task.id, title=task.title, occurs_at=occurs_at, remind_at=remind_at)
        )
    return reminders


def plan_all(
    tasks: list[Task],
    now: datetime,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    lead: timedelta = timedelta(0),
) -> list[Reminder]:
    """Reminders for every task, ordered by reminder time."""
    planned = [r for t in tasks for r in plan_reminders(t, now, horizon_days, lead)]
    return sorted(planned, key=lambda r: (r.remind_at, r.title))
