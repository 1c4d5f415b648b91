"""Functional core - pure business logic with no I/O."""

from .rules import (
    Daily,
    Weekly,
    Monthly,
    Yearly,
    Recurrence,
    InvalidRuleError,
    validate_rule,
    ensure_valid,
)
from .occurrences import matches, occurrences, next_occurrence
from .codec import RuleDecodeError, rule_from_dict, rule_to_dict
from .tasks import Task, tasks_for_day, sort_by_priority
from .streaks import StreakSummary, summarize
from .reminders import Reminder, plan_reminders

__all__ = [
    # Rules
    "Daily",
    "Weekly",
    "Monthly",
    "Yearly",
    "Recurrence",
    "InvalidRuleError",
    "validate_rule",
    "ensure_valid",
    # Evaluator
    "matches",
    "occurrences",
    "next_occurrence",
    # Codec
    "RuleDecodeError",
    "rule_from_dict",
    "rule_to_dict",
    # Tasks
    "Task",
    "tasks_for_day",
    "sort_by_priority",
    # Statistics
    "StreakSummary",
    "summarize",
    # Reminders
    "Reminder",
    "plan_reminders",
]
