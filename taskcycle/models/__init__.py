"""Data models for taskcycle."""

from taskcycle.models.task import (
    Task,
    TaskPriority,
    TaskCategory,
    TaskDue,
    DueInstant,
    DueWeekday,
    DueMonthDay,
)

__all__ = [
    "Task",
    "TaskPriority",
    "TaskCategory",
    "TaskDue",
    "DueInstant",
    "DueWeekday",
    "DueMonthDay",
]
