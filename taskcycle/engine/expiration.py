"""Expiration calculator and warning/deletion predicates for taskcycle.

This is the single implementation of the expiration rules; the live queries,
the detail view and the background sweep all call these functions.

Rules:
- Recurring tasks never expire.
- Categorized tasks expire a fixed offset after the end of their creation day
  (daily 48h, weekly 192h, monthly 744h) and warn 24h before that.
- Uncategorized tasks expire 24h after their due instant (due day at due_time,
  or the end of the due day when no usable time is set), or 24h after creation
  when they have no due date. With a due date the warning starts as soon as the
  task is overdue; without one it starts 12h before expiration.
"""

import math
from datetime import datetime, timedelta
from typing import NamedTuple, Optional

from taskcycle.engine.calendar import end_of_day, parse_due_time, to_utc_naive
from taskcycle.engine.policy import (
    UNCATEGORIZED_EXPIRATION_OFFSET,
    UNCATEGORIZED_WARNING_LEAD,
    get_category_policy,
)
from taskcycle.models.task import Task

_ONE_HOUR_SECONDS = 3600.0


class ExpirationInfo(NamedTuple):
    """Absolute expiration and warning-onset instants (naive UTC)."""
    expires_at: Optional[datetime]
    warning_starts_at: Optional[datetime]


NEVER_EXPIRES = ExpirationInfo(None, None)


def get_due_instant(task: Task) -> Optional[datetime]:
    """Concrete due instant of an uncategorized task, or None.

    Args:
        task: Task to inspect

    Returns:
        Due day combined with due_time when it parses, else the end of the due
        day; None when the task has no instant-type due.
    """
    if task.due is None or task.due.kind != "instant":
        return None

    due_day = to_utc_naive(task.due.at).date()
    due_time = parse_due_time(task.due_time)
    if due_time is not None:
        return datetime.combine(due_day, due_time)
    return end_of_day(to_utc_naive(task.due.at))


def compute_expiration(task: Task, now: Optional[datetime] = None) -> ExpirationInfo:
    """Compute when a task expires and when its warning window opens.

    This function is deterministic - it depends only on task attributes.

    Args:
        task: Task snapshot
        now: Evaluation time; accepted so all lifecycle calls share one
            signature, the instants do not depend on it

    Returns:
        ExpirationInfo; both fields None for recurring tasks
    """
    if task.is_recurring:
        return NEVER_EXPIRES

    policy = get_category_policy(task.category)
    if policy is None:
        due_instant = get_due_instant(task)
        if due_instant is not None:
            return ExpirationInfo(due_instant + UNCATEGORIZED_EXPIRATION_OFFSET, due_instant)

        expires_at = to_utc_naive(task.created_at) + UNCATEGORIZED_EXPIRATION_OFFSET
        return ExpirationInfo(expires_at, expires_at - UNCATEGORIZED_WARNING_LEAD)

    expires_at = end_of_day(task.created_at) + policy.expiration_offset
    return ExpirationInfo(expires_at, expires_at - policy.warning_lead)


def is_expiring_soon(task: Task, now: datetime) -> bool:
    """Whether the task is inside its warning window [warning_starts_at, expires_at).

    Completed tasks never show a warning, even though they still expire.
    """
    if task.completed:
        return False
    info = compute_expiration(task, now)
    if info.warning_starts_at is None or info.expires_at is None:
        return False
    now = to_utc_naive(now)
    return info.warning_starts_at <= now < info.expires_at


def should_delete(task: Task, now: datetime) -> bool:
    """Whether the task has expired and must be purged (completed or not)."""
    expires_at = compute_expiration(task, now).expires_at
    return expires_at is not None and to_utc_naive(now) >= expires_at


def hours_until_deletion(task: Task, now: datetime) -> Optional[int]:
    """Whole hours (rounded up) until the task is purged, never negative.

    Returns:
        Hours remaining, or None for tasks that never expire
    """
    expires_at = compute_expiration(task, now).expires_at
    if expires_at is None:
        return None
    remaining: timedelta = expires_at - to_utc_naive(now)
    return max(0, math.ceil(remaining.total_seconds() / _ONE_HOUR_SECONDS))
