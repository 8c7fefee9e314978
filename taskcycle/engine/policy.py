"""Time policy table for taskcycle.

Fixed per-category lifecycle policy. Categorized tasks are measured from the
end of their creation day; uncategorized tasks from their due instant or,
without one, from their creation timestamp.
"""

from datetime import timedelta
from typing import NamedTuple, Optional

from taskcycle.models.task import TaskCategory


class CategoryPolicy(NamedTuple):
    """Active period + grace period and the warning lead before expiration."""
    active_period: timedelta
    grace_period: timedelta
    warning_lead: timedelta

    @property
    def expiration_offset(self) -> timedelta:
        return self.active_period + self.grace_period


GRACE_PERIOD = timedelta(hours=24)

CATEGORY_POLICIES = {
    TaskCategory.DAILY.value: CategoryPolicy(timedelta(days=1), GRACE_PERIOD, timedelta(hours=24)),    # 48h
    TaskCategory.WEEKLY.value: CategoryPolicy(timedelta(days=7), GRACE_PERIOD, timedelta(hours=24)),   # 192h
    TaskCategory.MONTHLY.value: CategoryPolicy(timedelta(days=30), GRACE_PERIOD, timedelta(hours=24)), # 744h
}

# Uncategorized ("Others") tasks
UNCATEGORIZED_EXPIRATION_OFFSET = timedelta(hours=24)
UNCATEGORIZED_WARNING_LEAD = timedelta(hours=12)

# Recurrence fallbacks when no target weekday / day-of-month is set
WEEKLY_RESET_MIN_DAYS = 7
MONTHLY_RESET_MIN_DAYS = 30


def get_category_policy(category: Optional[str]) -> Optional[CategoryPolicy]:
    """Return the policy for a category, or None for uncategorized tasks.

    Args:
        category: Category value (enum or string) or None

    Returns:
        CategoryPolicy, or None when the task is uncategorized
    """
    if category is None:
        return None
    return CATEGORY_POLICIES[TaskCategory(category).value]
