"""Repository layer for database operations."""

import logging
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import desc

from taskcycle.errors import TaskAuthorizationError, TaskNotFoundError
from taskcycle.models.task import Task, TaskCategory, TaskPriority
from taskcycle.database.models import TaskDB, due_to_columns, enum_to_value

logger = logging.getLogger(__name__)

# Task fields that patch() may write (id, user_id and created_at are immutable).
_PATCHABLE_FIELDS = {
    "title",
    "description",
    "completed",
    "completed_at",
    "priority",
    "category",
    "due",
    "due_time",
    "is_recurring",
    "recurring_pattern",
    "updated_at",
}
_ENUM_FIELDS = {"priority", "category", "recurring_pattern"}


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, task_db: Optional[TaskDB], action: str, task_id: str) -> None:
        try:
            self.db.commit()
            if task_db is not None:
                self.db.refresh(task_db)
            logger.debug(f"{action} task {task_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to {action.lower()} task {task_id}: {type(e).__name__}: {str(e)}")
            raise

    def create(self, task: Task) -> Task:
        """Create a new task."""
        task_db = TaskDB.from_pydantic(task)
        self.db.add(task_db)
        self._commit(task_db, "Created", task.id)
        return task_db.to_pydantic()

    def get(self, user_id: str, task_id: str) -> Optional[Task]:
        """Get task by ID for a specific user."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.user_id == user_id,
        ).first()
        return task_db.to_pydantic() if task_db else None

    def get_by_id(self, task_id: str) -> Optional[Task]:
        """Get task by ID regardless of owner (sweeps and authorization checks)."""
        task_db = self.db.query(TaskDB).filter(TaskDB.id == task_id).first()
        return task_db.to_pydantic() if task_db else None

    def get_owned(self, user_id: str, task_id: str) -> Task:
        """Get a task and verify it belongs to user_id.

        Raises:
            TaskNotFoundError: If no task has this ID
            TaskAuthorizationError: If the task belongs to another user
        """
        task = self.get_by_id(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        if task.user_id != user_id:
            logger.warning(f"User {user_id} attempted to access task {task_id} owned by another user")
            raise TaskAuthorizationError(task_id)
        return task

    def list_for_user(self, user_id: str) -> List[Task]:
        """Get all tasks for a user sorted by creation date (newest first)."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.user_id == user_id,
        ).order_by(desc(TaskDB.created_at)).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def list_incomplete(self, user_id: str) -> List[Task]:
        """Get incomplete tasks for a user (newest first)."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.user_id == user_id,
            TaskDB.completed.is_(False),
        ).order_by(desc(TaskDB.created_at)).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def list_by_category(self, user_id: str, category: Optional[TaskCategory]) -> List[Task]:
        """Get tasks for a user in one category; None selects uncategorized tasks."""
        query = self.db.query(TaskDB).filter(TaskDB.user_id == user_id)
        if category is None:
            query = query.filter(TaskDB.category.is_(None))
        else:
            query = query.filter(TaskDB.category == enum_to_value(category))
        tasks_db = query.order_by(desc(TaskDB.created_at)).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def list_by_priority(self, user_id: str, priority: TaskPriority) -> List[Task]:
        """Get tasks for a user with one priority (newest first)."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.user_id == user_id,
            TaskDB.priority == enum_to_value(priority),
        ).order_by(desc(TaskDB.created_at)).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def list_all(self) -> List[Task]:
        """Get every stored task (global sweep)."""
        tasks_db = self.db.query(TaskDB).order_by(TaskDB.created_at).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def list_ids(self, user_id: Optional[str] = None) -> List[str]:
        """Get task IDs (oldest first), for every user or one user.

        Sweeps load each task separately so one unreadable row does not abort a pass.
        """
        query = self.db.query(TaskDB.id)
        if user_id is not None:
            query = query.filter(TaskDB.user_id == user_id)
        return [row.id for row in query.order_by(TaskDB.created_at).all()]

    def update(self, task: Task) -> Task:
        """Update an existing task (user_id must match task.user_id)."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task.id,
            TaskDB.user_id == task.user_id,
        ).first()
        if not task_db:
            raise TaskNotFoundError(task.id)

        task_db.title = task.title
        task_db.description = task.description
        task_db.completed = task.completed
        task_db.completed_at = task.completed_at
        task_db.priority = enum_to_value(task.priority)
        task_db.category = enum_to_value(task.category)
        task_db.due_time = task.due_time
        task_db.is_recurring = task.is_recurring
        task_db.recurring_pattern = enum_to_value(task.recurring_pattern)
        task_db.updated_at = task.updated_at
        for column, value in due_to_columns(task.due).items():
            setattr(task_db, column, value)

        self._commit(task_db, "Updated", task.id)
        return task_db.to_pydantic()

    def patch(self, task_id: str, fields: Dict[str, Any]) -> Optional[Task]:
        """Write a partial set of fields to a task.

        Args:
            task_id: Task to patch
            fields: Task field names mapped to new values ("due" takes a due model or None)

        Returns:
            Updated task, or None if the task no longer exists
        """
        unknown = set(fields) - _PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot patch fields: {sorted(unknown)}")

        task_db = self.db.query(TaskDB).filter(TaskDB.id == task_id).first()
        if not task_db:
            return None

        for name, value in fields.items():
            if name == "due":
                for column, column_value in due_to_columns(value).items():
                    setattr(task_db, column, column_value)
            elif name in _ENUM_FIELDS:
                setattr(task_db, name, enum_to_value(value))
            else:
                setattr(task_db, name, value)

        self._commit(task_db, "Patched", task_id)
        return task_db.to_pydantic()

    def delete(self, user_id: str, task_id: str) -> bool:
        """Permanently delete a task by ID for a specific user."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.user_id == user_id,
        ).first()
        if not task_db:
            return False

        self.db.delete(task_db)
        self._commit(None, "Deleted", task_id)
        return True

    def delete_by_id(self, task_id: str) -> bool:
        """Permanently delete a task by ID. Deleting a missing task is a no-op (False)."""
        task_db = self.db.query(TaskDB).filter(TaskDB.id == task_id).first()
        if not task_db:
            return False

        self.db.delete(task_db)
        self._commit(None, "Deleted", task_id)
        return True

    def clear_all(self, user_id: str) -> int:
        """Delete every task of a user. Returns number of tasks deleted."""
        try:
            affected = (
                self.db.query(TaskDB)
                .filter(TaskDB.user_id == user_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            logger.debug(f"Cleared {affected} tasks for user {user_id}")
            return int(affected)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to clear tasks for user {user_id}: {type(e).__name__}: {str(e)}")
            raise

