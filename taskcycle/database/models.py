"""SQLAlchemy database models for taskcycle."""

from datetime import datetime
import logging
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Index

from typing import Optional, Union, TypeVar, Type
from taskcycle.database.database import Base
from taskcycle.engine.calendar import to_utc_naive
from taskcycle.models.task import (
    DueInstant,
    DueMonthDay,
    DueWeekday,
    TaskCategory,
    TaskPriority,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

_DUE_KIND_BY_CATEGORY = {
    TaskCategory.WEEKLY: "weekday",
    TaskCategory.MONTHLY: "month_day",
}


def enum_to_value(enum_obj: Union[str, T, None]) -> Optional[str]:
    """Convert enum to string value (handles enum, string and None).

    Args:
        enum_obj: Enum instance, string value or None

    Returns:
        String value of the enum, the string itself, or None
    """
    if enum_obj is None:
        return None
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: Optional[str], enum_class: Type[T], default: Optional[T]) -> Optional[T]:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


def due_to_columns(due) -> dict:
    """Flatten a due value into (due_kind, due_at, due_ordinal) columns."""
    if due is None:
        return {"due_kind": None, "due_at": None, "due_ordinal": None}
    if due.kind == "instant":
        return {"due_kind": due.kind, "due_at": to_utc_naive(due.at), "due_ordinal": None}
    if due.kind == "weekday":
        return {"due_kind": due.kind, "due_at": None, "due_ordinal": due.weekday}
    return {"due_kind": due.kind, "due_at": None, "due_ordinal": due.day}


def columns_to_due(due_kind: Optional[str], due_at: Optional[datetime], due_ordinal: Optional[int]):
    """Rebuild a due value from its columns (None when incomplete)."""
    if due_kind == "instant" and due_at is not None:
        return DueInstant(at=due_at)
    if due_kind == "weekday" and due_ordinal is not None:
        return DueWeekday(weekday=due_ordinal)
    if due_kind == "month_day" and due_ordinal is not None:
        return DueMonthDay(day=due_ordinal)
    return None


class TaskDB(Base):
    """Database model for Task."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_user_category", "user_id", "category"),
        Index("ix_tasks_user_priority", "user_id", "priority"),
    )

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Owner (opaque id from the identity provider)
    user_id = Column(String, nullable=False, index=True)

    # Basic fields
    title = Column(String(200), nullable=False)
    description = Column(String(2000), nullable=True)
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, nullable=True)
    priority = Column(String, nullable=False, default=TaskPriority.MEDIUM.value)

    # Lifecycle
    category = Column(String, nullable=True)
    due_kind = Column(String, nullable=True)
    due_at = Column(DateTime, nullable=True, index=True)
    due_ordinal = Column(Integer, nullable=True)
    due_time = Column(String, nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_pattern = Column(String, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from taskcycle.models.task import Task

        category = value_to_enum(self.category, TaskCategory, None)
        due = columns_to_due(self.due_kind, self.due_at, self.due_ordinal)
        # A due that no longer matches the category (category edited in place) is dropped.
        if due is not None and due.kind != _DUE_KIND_BY_CATEGORY.get(category, "instant"):
            due = None

        completed_at = self.completed_at
        if self.completed and completed_at is None:
            logger.warning(f"Task {self.id} is completed without completed_at; using updated_at {self.updated_at}")
            completed_at = self.updated_at
        elif not self.completed and completed_at is not None:
            logger.warning(f"Task {self.id} is incomplete but has completed_at {completed_at}; ignoring it")
            completed_at = None

        return Task(
            id=self.id,
            user_id=self.user_id,
            title=self.title,
            description=self.description,
            completed=bool(self.completed),
            completed_at=completed_at,
            priority=value_to_enum(self.priority, TaskPriority, TaskPriority.MEDIUM),
            category=category,
            due=due,
            due_time=self.due_time,
            is_recurring=bool(self.is_recurring),
            recurring_pattern=value_to_enum(self.recurring_pattern, TaskCategory, None),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, task):
        """Create database model from Pydantic model."""
        return cls(
            id=task.id,
            user_id=task.user_id,
            title=task.title,
            description=task.description,
            completed=task.completed,
            completed_at=task.completed_at,
            priority=enum_to_value(task.priority),
            category=enum_to_value(task.category),
            due_time=task.due_time,
            is_recurring=task.is_recurring,
            recurring_pattern=enum_to_value(task.recurring_pattern),
            created_at=task.created_at,
            updated_at=task.updated_at,
            **due_to_columns(task.due),
        )
