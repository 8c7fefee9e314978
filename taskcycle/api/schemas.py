"""Request/response models for the task endpoints."""

from typing import List, Optional

from pydantic import BaseModel, Field

from taskcycle.lifecycle.queries import ExpiringTask
from taskcycle.models.task import Task, TaskCategory, TaskDue, TaskPriority


class TaskCreateRequest(BaseModel):
    """Request model for creating a task."""
    title: str = Field(..., description="Task title (1-200 characters)")
    description: Optional[str] = Field(None, description="Task description (up to 1000 characters)")
    priority: TaskPriority = Field(TaskPriority.MEDIUM, description="Task priority")
    category: Optional[TaskCategory] = Field(None, description="Lifecycle category (omit for uncategorized)")
    due: Optional[TaskDue] = Field(None, description="Due instant, weekday or day-of-month")
    due_time: Optional[str] = Field(None, description="Wall-clock due time, e.g. '2:30 PM'")
    is_recurring: bool = Field(False, description="Reset instead of expiring")
    recurring_pattern: Optional[TaskCategory] = Field(None, description="Defaults to the category")


class TaskUpdateRequest(BaseModel):
    """Request model for a partial task update.

    Only fields present in the request body are applied; sending null clears
    description, category, due, due_time or recurring_pattern.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    category: Optional[TaskCategory] = None
    due: Optional[TaskDue] = None
    due_time: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurring_pattern: Optional[TaskCategory] = None


class TaskResponse(BaseModel):
    """Response wrapping a single task."""
    task: Task


class TaskListResponse(BaseModel):
    """Response for task lists."""
    tasks: List[Task]
    count: int


class ExpiringSoonResponse(BaseModel):
    """Tasks inside their warning window."""
    tasks: List[ExpiringTask]
    count: int


class DeleteResponse(BaseModel):
    """Response for delete / clear / purge operations."""
    deleted_count: int
    deleted_ids: List[str] = Field(default_factory=list)
