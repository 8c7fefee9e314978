"""Task data model for taskcycle."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


class TaskPriority(str, Enum):
    """Task priority enumeration."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskCategory(str, Enum):
    """Task category enumeration.

    A task without a category is "uncategorized" (shown as "Others"), which has
    its own lifecycle policy.
    """
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class DueInstant(BaseModel):
    """Absolute due instant (uncategorized and daily tasks)."""
    kind: Literal["instant"] = "instant"
    at: datetime = Field(..., description="Due instant; only its UTC calendar day is used when paired with due_time")


class DueWeekday(BaseModel):
    """Target weekday for weekly tasks (0 = Sunday ... 6 = Saturday)."""
    kind: Literal["weekday"] = "weekday"
    weekday: int = Field(..., ge=0, le=6)


class DueMonthDay(BaseModel):
    """Target day-of-month for monthly tasks."""
    kind: Literal["month_day"] = "month_day"
    day: int = Field(..., ge=1, le=31)


TaskDue = Annotated[Union[DueInstant, DueWeekday, DueMonthDay], Field(discriminator="kind")]

# Which due kinds each category accepts (None = uncategorized).
_ALLOWED_DUE_KINDS = {
    None: {"instant"},
    TaskCategory.DAILY.value: {"instant"},
    TaskCategory.WEEKLY.value: {"weekday"},
    TaskCategory.MONTHLY.value: {"month_day"},
}


def due_fits_category(due_kind: str, category: Optional[str]) -> bool:
    """Whether a due of this kind is valid for the category (None = uncategorized)."""
    return due_kind in _ALLOWED_DUE_KINDS[TaskCategory(category).value if category else None]


class Task(BaseModel):
    """Canonical Task model."""

    id: str = Field(..., description="Unique task identifier (UUID v4)")
    user_id: str = Field(..., description="Opaque identifier of the owning user")
    title: str = Field(..., min_length=1, max_length=200, description="Task title")
    description: Optional[str] = Field(None, max_length=2000, description="Task description")
    completed: bool = Field(False, description="Whether the task is completed")
    completed_at: Optional[datetime] = Field(None, description="When the task was completed (set iff completed)")
    priority: TaskPriority = Field(TaskPriority.MEDIUM, description="Task priority")
    category: Optional[TaskCategory] = Field(None, description="Lifecycle category (None = uncategorized)")
    due: Optional[TaskDue] = Field(None, description="Due instant, weekday or day-of-month (shape depends on category)")
    due_time: Optional[str] = Field(None, description="Wall-clock due time, e.g. '2:30 PM'")
    is_recurring: bool = Field(False, description="Whether the task resets instead of expiring")
    recurring_pattern: Optional[TaskCategory] = Field(None, description="Recurrence pattern (mirrors category)")
    created_at: datetime = Field(..., description="Task creation timestamp")
    updated_at: datetime = Field(..., description="Task last update timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @model_validator(mode="after")
    def _check_consistency(self):
        if self.completed and self.completed_at is None:
            raise ValueError("completed_at is required when completed is true")
        if not self.completed and self.completed_at is not None:
            raise ValueError("completed_at must be empty when completed is false")
        if self.due is not None and not due_fits_category(self.due.kind, self.category):
            raise ValueError(
                f"due of kind '{self.due.kind}' is not valid for category '{self.category or 'uncategorized'}'"
            )
        return self
