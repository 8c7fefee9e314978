"""Recurrence resetter for taskcycle.

A completed recurring task goes back to incomplete when its next occurrence
arrives. Only completion state is reset; category, due and the recurring flag
are left as they are.
"""

from datetime import datetime
from typing import Any, Dict

from taskcycle.engine.calendar import to_utc_naive, weekday_index
from taskcycle.engine.policy import MONTHLY_RESET_MIN_DAYS, WEEKLY_RESET_MIN_DAYS
from taskcycle.models.task import Task, TaskCategory


def effective_pattern(task: Task) -> TaskCategory:
    """Recurrence pattern of a task: recurring_pattern, else category, else daily."""
    return TaskCategory(task.recurring_pattern or task.category or TaskCategory.DAILY)


def should_reset_recurring(task: Task, now: datetime) -> bool:
    """Check if a completed recurring task's next occurrence has arrived.

    - daily: the calendar date changed since completion
    - weekly: the target weekday came around again (or 7+ days passed when unset)
    - monthly: the target day-of-month arrived in a later month (or 30+ days
      passed when unset)

    Calendar dates are UTC. This function is deterministic - same inputs always
    produce same outputs.

    Args:
        task: Task snapshot
        now: Current time

    Returns:
        True if the task should be reset to incomplete
    """
    if not (task.is_recurring and task.completed and task.completed_at):
        return False

    now = to_utc_naive(now)
    completed_at = to_utc_naive(task.completed_at)
    now_day = now.date()
    completed_day = completed_at.date()
    pattern = effective_pattern(task)

    if pattern == TaskCategory.DAILY:
        return now_day != completed_day

    if pattern == TaskCategory.WEEKLY:
        if task.due is not None and task.due.kind == "weekday":
            return weekday_index(now) == task.due.weekday and now_day != completed_day
        return (now_day - completed_day).days >= WEEKLY_RESET_MIN_DAYS

    if pattern == TaskCategory.MONTHLY:
        if task.due is not None and task.due.kind == "month_day":
            return now.day == task.due.day and (now.year, now.month) != (completed_at.year, completed_at.month)
        return (now_day - completed_day).days >= MONTHLY_RESET_MIN_DAYS

    return False


def reset_fields(now: datetime) -> Dict[str, Any]:
    """Field patch applied to a task when its recurrence resets."""
    return {
        "completed": False,
        "completed_at": None,
        "updated_at": to_utc_naive(now),
    }


def apply_reset(task: Task, now: datetime) -> Task:
    """Return a copy of the task with its completion state reset."""
    return task.model_copy(update=reset_fields(now))
