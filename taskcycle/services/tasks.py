"""Task mutations for taskcycle (create / update / toggle / delete).

Every mutation is scoped to the owning user: the task is loaded with
`TaskRepository.get_owned`, which raises `TaskAuthorizationError` for tasks
belonging to someone else. Input bounds are validated here, before anything
is written.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import ValidationError

from taskcycle.database.repository import TaskRepository
from taskcycle.engine.calendar import to_utc_naive
from taskcycle.engine.recurrence import reset_fields
from taskcycle.errors import TaskValidationError
from taskcycle.models.constants import MAX_DESCRIPTION_LENGTH, MAX_TITLE_LENGTH, MIN_TITLE_LENGTH
from taskcycle.models.task import Task, TaskCategory, TaskPriority, due_fits_category
from taskcycle.models.task_factory import create_task_base

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "title",
    "description",
    "priority",
    "category",
    "due",
    "due_time",
    "is_recurring",
    "recurring_pattern",
}
# Fields a caller may clear by passing None.
CLEARABLE_FIELDS = {"description", "category", "due", "due_time", "recurring_pattern"}


def validate_task_input(title: Optional[str] = None, description: Optional[str] = None) -> None:
    """Check title / description length bounds.

    Raises:
        TaskValidationError: If the trimmed title is empty or too long, or the description is too long
    """
    if title is not None:
        trimmed = title.strip()
        if len(trimmed) < MIN_TITLE_LENGTH:
            raise TaskValidationError("Title cannot be empty")
        if len(trimmed) > MAX_TITLE_LENGTH:
            raise TaskValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
    if description is not None and len(description) > MAX_DESCRIPTION_LENGTH:
        raise TaskValidationError(f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters")


def validate_recurrence(is_recurring: bool, recurring_pattern: Optional[str], category: Optional[str]) -> None:
    """A recurrence pattern, when set (and always on a recurring task), must equal the category.

    Raises:
        TaskValidationError: If the pattern and the category disagree
    """
    if not is_recurring and not recurring_pattern:
        return
    pattern = TaskCategory(recurring_pattern).value if recurring_pattern else None
    category_value = TaskCategory(category).value if category else None
    if pattern != category_value:
        raise TaskValidationError(
            f"recurring_pattern '{pattern}' must match category '{category_value or 'uncategorized'}'"
        )


def _build_task(data: Dict[str, Any]) -> Task:
    try:
        return Task.model_validate(data)
    except ValidationError as e:
        raise TaskValidationError(str(e)) from e


def create_task(
    repo: TaskRepository,
    user_id: str,
    *,
    title: str,
    description: Optional[str] = None,
    priority: Optional[TaskPriority] = None,
    category: Optional[TaskCategory] = None,
    due: Optional[Any] = None,
    due_time: Optional[str] = None,
    is_recurring: bool = False,
    recurring_pattern: Optional[TaskCategory] = None,
    now: Optional[datetime] = None,
) -> Task:
    """Validate and store a new, incomplete task for user_id."""
    validate_task_input(title, description)
    try:
        task = create_task_base(
            user_id=user_id,
            title=title,
            description=description,
            priority=priority,
            category=category,
            due=due,
            due_time=due_time,
            is_recurring=is_recurring,
            recurring_pattern=recurring_pattern,
            now=to_utc_naive(now) if now else None,
        )
    except ValidationError as e:
        raise TaskValidationError(str(e)) from e
    validate_recurrence(task.is_recurring, task.recurring_pattern, task.category)

    created = repo.create(task)
    logger.info(f"Created task {created.id} for user {user_id} (category={created.category or 'uncategorized'})")
    return created


def update_task(
    repo: TaskRepository,
    user_id: str,
    task_id: str,
    changes: Dict[str, Any],
    now: Optional[datetime] = None,
) -> Task:
    """Apply a partial update to a task owned by user_id.

    Fields in `changes` overwrite the stored values; a clearable field passed
    as None is cleared. Changing the category drops a due that no longer fits
    it and carries a set recurrence pattern along with it. A completed task
    that becomes recurring is reset to incomplete immediately so its first
    cycle starts now.

    Raises:
        TaskNotFoundError / TaskAuthorizationError: From the ownership check
        TaskValidationError: If the result violates a bound or the recurrence rule
    """
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise TaskValidationError(f"Cannot update fields: {sorted(unknown)}")
    for name, value in changes.items():
        if value is None and name not in CLEARABLE_FIELDS:
            raise TaskValidationError(f"{name} cannot be cleared")

    validate_task_input(changes.get("title"), changes.get("description"))

    task = repo.get_owned(user_id, task_id)
    now = to_utc_naive(now) if now else datetime.utcnow()

    data = task.model_dump()
    data.update(changes)
    if "title" in changes:
        data["title"] = changes["title"].strip()

    if "category" in changes and "due" not in changes and task.due is not None:
        if not due_fits_category(task.due.kind, changes["category"]):
            data["due"] = None

    # The pattern follows the category unless the caller sets it explicitly.
    if "recurring_pattern" not in changes and (data["is_recurring"] or data["recurring_pattern"]):
        data["recurring_pattern"] = data["category"]
    validate_recurrence(data["is_recurring"], data["recurring_pattern"], data["category"])

    if data["is_recurring"] and not task.is_recurring and task.completed:
        data.update(reset_fields(now))

    data["updated_at"] = now
    updated = repo.update(_build_task(data))
    logger.debug(f"Updated task {task_id} fields={sorted(changes)}")
    return updated


def toggle_task(repo: TaskRepository, user_id: str, task_id: str, now: Optional[datetime] = None) -> Task:
    """Flip a task's completion state, stamping or clearing completed_at."""
    task = repo.get_owned(user_id, task_id)
    now = to_utc_naive(now) if now else datetime.utcnow()
    completed = not task.completed
    return repo.patch(
        task_id,
        {
            "completed": completed,
            "completed_at": now if completed else None,
            "updated_at": now,
        },
    )


def delete_task(repo: TaskRepository, user_id: str, task_id: str) -> bool:
    """Delete a task owned by user_id."""
    repo.get_owned(user_id, task_id)
    return repo.delete(user_id, task_id)


def clear_all_tasks(repo: TaskRepository, user_id: str) -> int:
    """Delete every task of user_id. Returns the number of tasks deleted."""
    deleted = repo.clear_all(user_id)
    logger.info(f"Cleared {deleted} tasks for user {user_id}")
    return deleted
