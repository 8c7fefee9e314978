"""Constants for taskcycle.

This module centralizes the magic numbers and default values used by the data-access layer.
"""

from taskcycle.models.task import TaskPriority


# Task defaults
DEFAULT_PRIORITY = TaskPriority.MEDIUM

# Input validation bounds (edit boundary)
MIN_TITLE_LENGTH = 1
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000

# Ordering used when listing tasks by priority (lower = shown first)
PRIORITY_ORDER = {
    TaskPriority.HIGH.value: 0,
    TaskPriority.MEDIUM.value: 1,
    TaskPriority.LOW.value: 2,
}
