"""Task creation factory for taskcycle.

This module centralizes task creation logic so every entry point (API,
tests, scripts) builds new tasks with the same defaults.
"""

import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from taskcycle.models.task import Task, TaskCategory, TaskPriority
from taskcycle.models.constants import DEFAULT_PRIORITY


def create_task_defaults() -> Dict[str, Any]:
    """Get default task values as a dictionary.

    Returns:
        Dictionary with default task field values using constants
    """
    return {
        "description": None,
        "completed": False,
        "completed_at": None,
        "priority": DEFAULT_PRIORITY,
        "category": None,
        "due": None,
        "due_time": None,
        "is_recurring": False,
        "recurring_pattern": None,
    }


def create_task_base(
    user_id: str,
    title: str,
    description: Optional[str] = None,
    priority: Optional[TaskPriority] = None,
    category: Optional[TaskCategory] = None,
    due: Optional[Any] = None,
    due_time: Optional[str] = None,
    is_recurring: Optional[bool] = None,
    recurring_pattern: Optional[TaskCategory] = None,
    now: Optional[datetime] = None,
) -> Task:
    """Create a new, incomplete task with defaults, allowing overrides.

    Args:
        user_id: Owner of the task (required)
        title: Task title (required)
        description: Optional description
        priority: Task priority (defaults to medium)
        category: Lifecycle category (None = uncategorized)
        due: Due value (DueInstant / DueWeekday / DueMonthDay or a dict)
        due_time: Wall-clock due time such as "2:30 PM"
        is_recurring: Whether the task resets instead of expiring
        recurring_pattern: Recurrence pattern; defaults to the category for recurring tasks
        now: Creation timestamp (defaults to current UTC time)

    Returns:
        Task object with defaults applied
    """
    now = now or datetime.utcnow()
    defaults = create_task_defaults()

    is_recurring = is_recurring if is_recurring is not None else defaults["is_recurring"]
    if is_recurring and recurring_pattern is None:
        recurring_pattern = category

    return Task(
        id=str(uuid.uuid4()),
        user_id=user_id,
        title=title.strip(),
        description=description if description is not None else defaults["description"],
        completed=defaults["completed"],
        completed_at=defaults["completed_at"],
        priority=priority if priority is not None else defaults["priority"],
        category=category if category is not None else defaults["category"],
        due=due if due is not None else defaults["due"],
        due_time=due_time if due_time is not None else defaults["due_time"],
        is_recurring=is_recurring,
        recurring_pattern=recurring_pattern if recurring_pattern is not None else defaults["recurring_pattern"],
        created_at=now,
        updated_at=now,
    )
