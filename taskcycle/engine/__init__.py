"""Task lifecycle engine for taskcycle."""

from taskcycle.engine.expiration import (
    ExpirationInfo,
    compute_expiration,
    is_expiring_soon,
    should_delete,
    hours_until_deletion,
)
from taskcycle.engine.recurrence import should_reset_recurring, reset_fields, apply_reset
from taskcycle.engine.policy import CATEGORY_POLICIES, get_category_policy

__all__ = [
    "ExpirationInfo",
    "compute_expiration",
    "is_expiring_soon",
    "should_delete",
    "hours_until_deletion",
    "should_reset_recurring",
    "reset_fields",
    "apply_reset",
    "CATEGORY_POLICIES",
    "get_category_policy",
]
