"""Shared workflow layer between the CLI and the functional core.

Each function loads what it needs through the task store, applies core
logic, persists any change and returns plain results for display.
"""

import logging
import uuid
from datetime import date, datetime, time, timedelta

from .adapters.json_store import JsonTaskStore
from .config import Config
from .core import streaks
from .core.reminders import Reminder, plan_all
from .core.rules import Recurrence, ensure_valid
from .core.tasks import Task, sort_by_priority, tasks_for_day
from .ports.task_repo import TaskRepository

logger = logging.getLogger(__name__)


class NotScheduledError(ValueError):
    """A completion was recorded for a day the task is not scheduled on."""


def get_store(config: Config) -> TaskRepository:
    """Resolve the task store from config."""
    return JsonTaskStore(config.tasks_path)


def add_task(
    config: Config,
    title: str,
    start_date: date,
    recurrence: Recurrence | None = None,
    start_time: time | None = None,
    priority: int = 0,
) -> Task:
    """Validate the recurrence, create the task and save it."""
    if recurrence is not None:
        ensure_valid(recurrence.rule)
    task = Task(
        id=uuid.uuid4().hex[:8],
        title=title,
        start_date=start_date,
        recurrence=recurrence,
        priority=priority,
        start_time=start_time,
    )
    get_store(config).save(task)
    logger.info(f"Added task {task.id}: {title}")
    return task


def agenda(config: Config, day: date) -> list[Task]:
    """Tasks scheduled on `day`, highest priority and earliest first."""
    tasks = get_store(config).list_tasks()
    return sort_by_priority(tasks_for_day(tasks, day), day)


def complete_task(config: Config, task_id: str, day: date) -> Task:
    """Record a completion for a scheduled day."""
    store = get_store(config)
    task = store.get(task_id)
    if not task.occurs_on(day):
        raise NotScheduledError(f"'{task.title}' is not scheduled on {day.isoformat()}")
    task.complete(day)
    store.save(task)
    return task


def reanchor_task(config: Config, task_id: str, new_start: date) -> tuple[Task, Task]:
    """Move a task's start date. Returns (before, after)."""
    store = get_store(config)
    before = store.get(task_id)
    after = before.reanchor(new_start)
    store.save(after)
    logger.info(f"Re-anchored task {task_id}: {before.start_date} -> {new_start}")
    return before, after


def streak_report(
    config: Config, task_id: str, as_of: date
) -> tuple[Task, streaks.StreakSummary, list[streaks.HeatMapCell]]:
    """Streak summary plus a heat map of the last few weeks."""
    task = get_store(config).get(task_id)
    summary = streaks.summarize(task, as_of)
    start, stop = streaks.heat_map_window(as_of, config.heat_map_weeks)
    return task, summary, streaks.heat_map(task, start, stop, as_of)


def upcoming_reminders(config: Config, now: datetime | None = None) -> list[Reminder]:
    """Reminder plan for all tasks over the configured horizon."""
    now = now or datetime.now()
    tasks = get_store(config).list_tasks()
    return plan_all(
        tasks,
        now,
        horizon_days=config.reminder_horizon_days,
        lead=timedelta(minutes=config.reminder_lead_minutes),
    )
