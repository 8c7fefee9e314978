"""Read-side queries built on the lifecycle engine.

These back the list views, the "expiring soon" notice and the task detail
view. `now` is always passed in by the caller so the same snapshot gives the
same answer on every surface.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from taskcycle.database.repository import TaskRepository
from taskcycle.engine.expiration import (
    compute_expiration,
    hours_until_deletion,
    is_expiring_soon,
    should_delete,
)
from taskcycle.models.constants import PRIORITY_ORDER
from taskcycle.models.task import Task, TaskCategory, TaskPriority


class ExpiringTask(BaseModel):
    """A task inside its warning window, with the hours left before purge."""
    task: Task
    hours_until_deletion: int


class ExpirationDetails(BaseModel):
    """Expiration metadata shown in the task detail view."""
    task_id: str
    expires_at: Optional[datetime]
    warning_starts_at: Optional[datetime]
    is_expiring_soon: bool
    hours_until_deletion: Optional[int]


class CategoryStats(BaseModel):
    total: int
    completed: int
    completion_rate: int


class UserStats(BaseModel):
    """Aggregate counts for the profile / progress screen."""
    total: int
    completed: int
    active: int
    completion_rate: int
    by_category: Dict[str, int]
    by_category_stats: Dict[str, CategoryStats]
    by_priority: Dict[str, int]


def _completion_rate(completed: int, total: int) -> int:
    return round(completed / total * 100) if total > 0 else 0


def sort_by_priority(tasks: List[Task]) -> List[Task]:
    """Stable sort high -> medium -> low, keeping the incoming order within a priority."""
    return sorted(tasks, key=lambda task: PRIORITY_ORDER[TaskPriority(task.priority).value])


def is_task_expiring_soon(task: Task, now: datetime) -> bool:
    """Single-task check for detail views."""
    return is_expiring_soon(task, now)


def describe_expiration(task: Task, now: datetime) -> ExpirationDetails:
    """Expiration metadata for one task."""
    info = compute_expiration(task, now)
    return ExpirationDetails(
        task_id=task.id,
        expires_at=info.expires_at,
        warning_starts_at=info.warning_starts_at,
        is_expiring_soon=is_expiring_soon(task, now),
        hours_until_deletion=hours_until_deletion(task, now),
    )


def get_tasks_expiring_soon(repo: TaskRepository, user_id: str, now: datetime) -> List[ExpiringTask]:
    """Incomplete tasks of user_id whose warning window is open at `now`."""
    return [
        ExpiringTask(task=task, hours_until_deletion=hours_until_deletion(task, now))
        for task in repo.list_incomplete(user_id)
        if is_expiring_soon(task, now)
    ]


def get_expired_tasks(repo: TaskRepository, user_id: str, now: datetime) -> List[Task]:
    """Tasks of user_id that the next sweep would delete."""
    return [task for task in repo.list_for_user(user_id) if should_delete(task, now)]


def get_tasks_by_category(repo: TaskRepository, user_id: str, category: Optional[TaskCategory]) -> List[Task]:
    """Tasks in one category (None = uncategorized), high priority first."""
    return sort_by_priority(repo.list_by_category(user_id, category))


def get_tasks_by_priority(repo: TaskRepository, user_id: str, priority: TaskPriority) -> List[Task]:
    """Tasks with one priority, newest first."""
    return repo.list_by_priority(user_id, priority)


def get_user_stats(repo: TaskRepository, user_id: str) -> UserStats:
    """Totals, per-category and per-priority counts, and completion rates."""
    tasks = repo.list_for_user(user_id)
    total = len(tasks)
    completed = sum(1 for task in tasks if task.completed)

    buckets: Dict[str, List[Task]] = {category.value: [] for category in TaskCategory}
    buckets["others"] = []
    for task in tasks:
        buckets[TaskCategory(task.category).value if task.category else "others"].append(task)

    by_category_stats = {}
    for name, bucket in buckets.items():
        done = sum(1 for task in bucket if task.completed)
        by_category_stats[name] = CategoryStats(
            total=len(bucket),
            completed=done,
            completion_rate=_completion_rate(done, len(bucket)),
        )

    by_priority = {priority.value: 0 for priority in TaskPriority}
    for task in tasks:
        by_priority[TaskPriority(task.priority).value] += 1

    return UserStats(
        total=total,
        completed=completed,
        active=total - completed,
        completion_rate=_completion_rate(completed, total),
        by_category={name: len(bucket) for name, bucket in buckets.items()},
        by_category_stats=by_category_stats,
        by_priority=by_priority,
    )
