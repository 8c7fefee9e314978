"""Tests for the read-side lifecycle queries."""

from datetime import datetime

from taskcycle.lifecycle import queries
from taskcycle.models.task import TaskCategory, TaskPriority


NOW = datetime(2024, 1, 10, 12, 0)


class TestQueries:
    """Test the query helpers against a real repository."""

    def test_is_task_expiring_soon(self, make_task):
        """Single-task check agrees with the warning window."""
        expiring = make_task(category=TaskCategory.WEEKLY, created_at=datetime(2024, 1, 2, 10, 0))
        fresh = make_task(category=TaskCategory.WEEKLY, created_at=datetime(2024, 1, 9, 10, 0))

        assert queries.is_task_expiring_soon(expiring, NOW) is True
        assert queries.is_task_expiring_soon(fresh, NOW) is False

    def test_sort_by_priority_is_stable(self, make_task):
        """Tasks with equal priority keep their incoming order."""
        low = make_task(title="low", priority=TaskPriority.LOW)
        medium_a = make_task(title="medium-a")
        high = make_task(title="high", priority=TaskPriority.HIGH)
        medium_b = make_task(title="medium-b")

        ordered = queries.sort_by_priority([low, medium_a, high, medium_b])

        assert [task.title for task in ordered] == ["high", "medium-a", "medium-b", "low"]

    def test_get_tasks_expiring_soon_skips_completed(self, task_repository, make_task, test_user_id):
        open_task = task_repository.create(
            make_task(category=TaskCategory.WEEKLY, created_at=datetime(2024, 1, 2, 10, 0))
        )
        task_repository.create(
            make_task(
                category=TaskCategory.WEEKLY,
                created_at=datetime(2024, 1, 2, 10, 0),
                completed=True,
                completed_at=datetime(2024, 1, 2, 11, 0),
            )
        )

        expiring = queries.get_tasks_expiring_soon(task_repository, test_user_id, NOW)

        assert [item.task.id for item in expiring] == [open_task.id]
        assert expiring[0].hours_until_deletion == 12

    def test_get_expired_tasks_includes_completed(self, task_repository, make_task, test_user_id):
        """The expired view lists everything the next sweep would delete."""
        done = task_repository.create(
            make_task(
                category=TaskCategory.DAILY,
                created_at=datetime(2024, 1, 1, 10, 0),
                completed=True,
                completed_at=datetime(2024, 1, 1, 11, 0),
            )
        )

        assert [task.id for task in queries.get_expired_tasks(task_repository, test_user_id, NOW)] == [done.id]

    def test_describe_expiration(self, make_task):
        task = make_task(created_at=datetime(2024, 1, 10, 0, 0))
        details = queries.describe_expiration(task, NOW)

        assert details.expires_at == datetime(2024, 1, 11, 0, 0)
        assert details.warning_starts_at == datetime(2024, 1, 10, 12, 0)
        assert details.is_expiring_soon is True
        assert details.hours_until_deletion == 12
