"""Sweeps that apply the lifecycle rules to stored tasks.

Two passes, each over every stored task:
- expiration: delete non-recurring tasks whose expiration instant has passed
- recurrence: reset completed recurring tasks whose next occurrence arrived

Each task is handled independently; a failure on one task is logged and
counted and the sweep moves on. Re-running a pass on the same data is a no-op
(deleted tasks are gone, reset tasks fail the `completed` precondition).
"""

import logging
from datetime import datetime
from typing import List, Optional

from taskcycle.database.repository import TaskRepository
from taskcycle.engine.calendar import to_utc_naive
from taskcycle.engine.expiration import should_delete
from taskcycle.engine.recurrence import reset_fields, should_reset_recurring
from taskcycle.models.task import Task

logger = logging.getLogger(__name__)


class SweepResult:
    """Result of one sweep pass."""

    def __init__(self, name: str):
        self.name = name
        self.examined: int = 0
        self.affected_ids: List[str] = []
        self.failed_ids: List[str] = []

    @property
    def affected_count(self) -> int:
        return len(self.affected_ids)

    @property
    def failed_count(self) -> int:
        return len(self.failed_ids)

    def to_dict(self) -> dict:
        return {
            "sweep": self.name,
            "examined": self.examined,
            "affected_count": self.affected_count,
            "failed_count": self.failed_count,
            "affected_ids": list(self.affected_ids),
            "failed_ids": list(self.failed_ids),
        }


def _load(repo: TaskRepository, task_id: str, result: SweepResult) -> Optional[Task]:
    result.examined += 1
    try:
        return repo.get_by_id(task_id)
    except Exception:
        logger.exception(f"Failed to load task {task_id}")
        result.failed_ids.append(task_id)
        return None


def _delete_expired(repo: TaskRepository, task_ids: List[str], now: datetime, result: SweepResult) -> SweepResult:
    for task_id in task_ids:
        task = _load(repo, task_id, result)
        if task is None or not should_delete(task, now):
            continue
        try:
            if repo.delete_by_id(task.id):
                result.affected_ids.append(task.id)
        except Exception:
            logger.exception(f"Failed to delete expired task {task.id}")
            result.failed_ids.append(task.id)
    return result


def sweep_expired_tasks(repo: TaskRepository, now: Optional[datetime] = None) -> SweepResult:
    """Delete every expired, non-recurring task in storage.

    Args:
        repo: Task repository
        now: Sweep time (defaults to current UTC time)

    Returns:
        SweepResult with deleted and failed task ids
    """
    now = to_utc_naive(now) if now else datetime.utcnow()
    result = _delete_expired(repo, repo.list_ids(), now, SweepResult("expiration"))
    logger.info(
        f"Expiration sweep: examined={result.examined} deleted={result.affected_count} failed={result.failed_count}"
    )
    return result


def sweep_expired_tasks_for_user(repo: TaskRepository, user_id: str, now: Optional[datetime] = None) -> SweepResult:
    """Delete the expired tasks of a single user (manual cleanup)."""
    now = to_utc_naive(now) if now else datetime.utcnow()
    result = _delete_expired(repo, repo.list_ids(user_id), now, SweepResult("expiration"))
    logger.info(f"Deleted {result.affected_count} expired tasks for user {user_id}")
    return result


def sweep_recurring_tasks(repo: TaskRepository, now: Optional[datetime] = None) -> SweepResult:
    """Reset every completed recurring task whose next occurrence has arrived.

    Args:
        repo: Task repository
        now: Sweep time (defaults to current UTC time)

    Returns:
        SweepResult with reset and failed task ids
    """
    now = to_utc_naive(now) if now else datetime.utcnow()
    result = SweepResult("recurrence")

    for task_id in repo.list_ids():
        task = _load(repo, task_id, result)
        if task is None or not should_reset_recurring(task, now):
            continue
        try:
            if repo.patch(task.id, reset_fields(now)) is not None:
                result.affected_ids.append(task.id)
        except Exception:
            logger.exception(f"Failed to reset recurring task {task.id}")
            result.failed_ids.append(task.id)

    logger.info(
        f"Recurrence sweep: examined={result.examined} reset={result.affected_count} failed={result.failed_count}"
    )
    return result


def run_sweep(repo: TaskRepository, now: Optional[datetime] = None) -> List[SweepResult]:
    """Run the expiration pass, then the recurrence pass, at the same instant.

    Recurring tasks are exempt from deletion, so the two passes never act on
    the same task.
    """
    now = to_utc_naive(now) if now else datetime.utcnow()
    return [sweep_expired_tasks(repo, now), sweep_recurring_tasks(repo, now)]
