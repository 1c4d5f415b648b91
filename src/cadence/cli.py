"""Cadence CLI - recurring task manager."""

import json
import logging
import sys
from dataclasses import replace
from datetime import date, time
from pathlib import Path

import click

from .adapters.json_store import StoreError, TaskNotFoundError
from .config import LOG_LEVELS, load_config
from .core.codec import RuleDecodeError, recurrence_from_dict
from .core.occurrences import matches, occurrences
from .core.rrule import UnsupportedRuleError, to_rrule
from .core.rules import InvalidRuleError, Recurrence, describe
from .core.streaks import HeatMapStatus
from .workflows import (
    NotScheduledError,
    add_task,
    agenda,
    complete_task,
    reanchor_task,
    streak_report,
    upcoming_reminders,
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

HEAT_MAP_GLYPHS = {
    HeatMapStatus.COMPLETED: "#",
    HeatMapStatus.MISSED: "x",
    HeatMapStatus.NO_TASK: ".",
    HeatMapStatus.FUTURE: " ",
}


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _log_level(name: str) -> int:
    """Numeric level for a configured level name; WARNING if unrecognised."""
    name = name.upper()
    if name not in LOG_LEVELS:
        return logging.WARNING
    return logging.getLevelName(name)


def _parse_date(ctx, param, value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}")


def _parse_time(ctx, param, value: str | None) -> time | None:
    if value is None:
        return None
    try:
        return time.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"expected HH:MM, got {value!r}")


def _load_recurrence(rule_json: str, end: date | None) -> Recurrence:
    """Parse RULE_JSON (inline JSON or @path) into a Recurrence."""
    try:
        if rule_json.startswith("@"):
            rule_json = Path(rule_json[1:]).expanduser().read_text()
        recurrence = recurrence_from_dict(json.loads(rule_json))
    except OSError as e:
        _fail(f"cannot read rule file: {e}")
    except json.JSONDecodeError as e:
        _fail(f"rule is not valid JSON: {e}")
    except RuleDecodeError as e:
        _fail(str(e))
    if end is not None:
        recurrence = replace(recurrence, end_date=end)
    return recurrence


date_option = click.option(
    "--date", "-d", "target_date", default=None, callback=_parse_date,
    help="Date (YYYY-MM-DD), defaults to today",
)
anchor_option = click.option(
    "--anchor", "-a", required=True, callback=_parse_date, help="Task start date (YYYY-MM-DD)"
)
end_option = click.option(
    "--end", default=None, callback=_parse_date, help="Last possible occurrence (YYYY-MM-DD)"
)


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Cadence - recurring task manager."""
    config = load_config()
    logging.basicConfig(
        format=LOG_FORMAT,
        level=logging.DEBUG if debug else _log_level(config.log_level),
    )


# ============== Rule commands ==============


@main.command()
@click.argument("rule_json")
@click.argument("day", callback=_parse_date)
@anchor_option
@end_option
def check(rule_json: str, day: date, anchor: date, end: date | None):
    """Is DAY an occurrence of RULE_JSON?"""
    recurrence = _load_recurrence(rule_json, end)
    hit = matches(recurrence.rule, anchor, recurrence.end_date, day)
    click.echo("yes" if hit else "no")


@main.command("occurrences")
@click.argument("rule_json")
@anchor_option
@end_option
@click.option("--from", "start", required=True, callback=_parse_date, help="Range start (inclusive)")
@click.option("--to", "stop", required=True, callback=_parse_date, help="Range end (exclusive)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def occurrences_cmd(rule_json: str, anchor: date, end: date | None, start: date, stop: date, as_json: bool):
    """List occurrences of RULE_JSON in [--from, --to)."""
    recurrence = _load_recurrence(rule_json, end)
    days = list(occurrences(recurrence.rule, anchor, recurrence.end_date, start, stop))

    if as_json:
        click.echo(json.dumps([d.isoformat() for d in days], indent=2))
        return

    if not days:
        click.echo("No occurrences.")
        return

    click.echo(f"{describe(recurrence.rule, anchor)}:")
    for d in days:
        click.echo(f"  {d.isoformat()}  {d.strftime('%A')}")


@main.command()
@click.argument("rule_json")
@anchor_option
@end_option
def rrule(rule_json: str, anchor: date, end: date | None):
    """Print RULE_JSON as an RFC 5545 RRULE."""
    recurrence = _load_recurrence(rule_json, end)
    try:
        line = to_rrule(recurrence, anchor)
    except (UnsupportedRuleError, InvalidRuleError) as e:
        _fail(str(e))
    click.echo(f"DTSTART;VALUE=DATE:{anchor.strftime('%Y%m%d')}")
    click.echo(line)


# ============== Task commands ==============


@main.command()
@click.argument("title")
@click.option("--start", "-s", "start", default=None, callback=_parse_date,
              help="Start date (YYYY-MM-DD), defaults to today")
@click.option("--rule", "rule_json", default=None, help="Recurrence rule as JSON or @file")
@end_option
@click.option("--time", "-t", "at", default=None, callback=_parse_time, help="Time of day (HH:MM)")
@click.option("--priority", "-p", default=0, type=click.IntRange(0, 5), help="Priority 0-5")
def add(title: str, start: date | None, rule_json: str | None, end: date | None, at: time | None, priority: int):
    """Add a task, optionally recurring."""
    if end is not None and rule_json is None:
        raise click.UsageError("--end needs --rule; a one-off task has no end date")
    config = load_config()
    start = start or date.today()
    recurrence = _load_recurrence(rule_json, end) if rule_json else None
    try:
        task = add_task(config, title, start, recurrence, at, priority)
    except InvalidRuleError as e:
        _fail(f"invalid rule: {e}")
    except StoreError as e:
        _fail(str(e))

    summary = describe(recurrence.rule, start) if recurrence else f"once on {start.isoformat()}"
    click.echo(f"✓ Added [{task.id}] {task.title} ({summary})")


@main.command()
@date_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def today(target_date: date | None, as_json: bool):
    """List tasks scheduled on a day."""
    config = load_config()
    day = target_date or date.today()
    try:
        tasks = agenda(config, day)
    except StoreError as e:
        _fail(str(e))

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "id": t.id,
                        "title": t.title,
                        "priority": t.priority,
                        "time": t.time_on(day).isoformat(timespec="minutes") if t.time_on(day) else None,
                        "done": t.is_completed_on(day),
                    }
                    for t in tasks
                ],
                indent=2,
            )
        )
        return

    if not tasks:
        click.echo(f"Nothing scheduled for {day.strftime('%A, %b %d')}.")
        return

    click.echo(f"### {day.strftime('%A, %B %d')}")
    for task in tasks:
        mark = "✓" if task.is_completed_on(day) else " "
        at = task.time_on(day)
        time_str = at.strftime("%H:%M") if at else ""
        priority_marker = "!" * task.priority
        click.echo(f"  [{mark}] {time_str:5} {task.title} {priority_marker}".rstrip() + f"  ({task.id})")


@main.command()
@click.argument("task_id")
@date_option
def done(task_id: str, target_date: date | None):
    """Mark a task done for a day."""
    config = load_config()
    day = target_date or date.today()
    try:
        task = complete_task(config, task_id, day)
    except TaskNotFoundError:
        _fail(f"no task with id {task_id}")
    except (NotScheduledError, StoreError) as e:
        _fail(str(e))
    click.echo(f"✓ {task.title} done for {day.isoformat()}")


@main.command()
@click.argument("task_id")
@click.option("--start", "-s", "start", required=True, callback=_parse_date, help="New start date (YYYY-MM-DD)")
def reanchor(task_id: str, start: date):
    """Move a task's start date; its recurrence follows."""
    config = load_config()
    try:
        before, after = reanchor_task(config, task_id, start)
    except TaskNotFoundError:
        _fail(f"no task with id {task_id}")
    except StoreError as e:
        _fail(str(e))

    today_ = date.today()
    for label, task in (("Before", before), ("After", after)):
        rule = describe(task.recurrence.rule, task.start_date) if task.recurrence else "one-off"
        upcoming = task.next_occurrence(today_)
        click.echo(f"{label}: starts {task.start_date}, {rule}, next {upcoming or 'never'}")


@main.command()
@click.argument("task_id")
@date_option
def streak(task_id: str, target_date: date | None):
    """Show streaks and a completion heat map for a task."""
    config = load_config()
    as_of = target_date or date.today()
    try:
        task, summary, cells = streak_report(config, task_id, as_of)
    except TaskNotFoundError:
        _fail(f"no task with id {task_id}")
    except StoreError as e:
        _fail(str(e))

    rate = f"{summary.completion_rate:.0%}" if summary.completion_rate is not None else "n/a"
    click.echo(f"{task.title}\n")
    click.echo(f"Current streak: {summary.current}")
    click.echo(f"Best streak:    {summary.best}")
    click.echo(f"Completion:     {rate} ({summary.completed}/{summary.scheduled})\n")

    for i in range(0, len(cells), 7):
        week = cells[i : i + 7]
        row = "".join(HEAT_MAP_GLYPHS[c.status] for c in week)
        click.echo(f"  {week[0].day.isoformat()}  {row}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def reminders(as_json: bool):
    """Show planned reminders over the configured horizon."""
    config = load_config()
    try:
        planned = upcoming_reminders(config)
    except StoreError as e:
        _fail(str(e))

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "key": r.key,
                        "task_id": r.task_id,
                        "title": r.title,
                        "occurs_at": r.occurs_at.isoformat(),
                        "remind_at": r.remind_at.isoformat(),
                    }
                    for r in planned
                ],
                indent=2,
            )
        )
        return

    if not planned:
        click.echo("No reminders planned.")
        return

    for r in planned:
        click.echo(f"  {r.remind_at.strftime('%a %b %d %H:%M')}  {r.title}")


if __name__ == "__main__":
    main()
