"""Integration tests for API endpoints.

These tests verify API endpoints work correctly end-to-end. The clock is pinned
to 2024-01-10 12:00 UTC by the test_client fixture.
"""

import pytest
from datetime import datetime

from taskcycle.models.task import DueWeekday, TaskCategory, TaskPriority


class TestTaskEndpoints:
    """Test task CRUD API endpoints."""

    def test_create_task(self, test_client):
        """Test POST /tasks endpoint."""
        response = test_client.post(
            "/tasks",
            json={
                "title": "Test Task",
                "description": "Test description",
                "category": "weekly",
                "due": {"kind": "weekday", "weekday": 3},
                "priority": "high",
            }
        )

        assert response.status_code == 201
        data = response.json()
        assert "task" in data
        task = data["task"]
        assert task["title"] == "Test Task"
        assert task["category"] == "weekly"
        assert task["due"] == {"kind": "weekday", "weekday": 3}
        assert task["priority"] == "high"
        assert task["completed"] is False
        assert task["created_at"].startswith("2024-01-10T12:00:00")

    def test_create_task_defaults(self, test_client):
        response = test_client.post("/tasks", json={"title": "Plain"})

        assert response.status_code == 201
        task = response.json()["task"]
        assert task["priority"] == "medium"
        assert task["category"] is None
        assert task["is_recurring"] is False

    @pytest.mark.parametrize("title", ["", "   ", "x" * 201])
    def test_create_task_invalid_title(self, test_client, title):
        """Invalid titles are rejected before anything is written."""
        response = test_client.post("/tasks", json={"title": title})

        assert response.status_code == 422
        assert test_client.get("/tasks").json()["count"] == 0

    def test_create_task_due_kind_mismatch(self, test_client):
        response = test_client.post(
            "/tasks",
            json={"title": "Rent", "category": "monthly", "due": {"kind": "weekday", "weekday": 1}},
        )
        assert response.status_code == 422

    def test_list_tasks(self, test_client):
        """Test GET /tasks endpoint."""
        test_client.post("/tasks", json={"title": "Task 1"})
        test_client.post("/tasks", json={"title": "Task 2"})

        response = test_client.get("/tasks")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert {task["title"] for task in data["tasks"]} == {"Task 1", "Task 2"}

    def test_list_by_category_sorted_by_priority(self, test_client):
        """Category listings put high priority first."""
        test_client.post("/tasks", json={"title": "Low", "category": "daily", "priority": "low"})
        test_client.post("/tasks", json={"title": "High", "category": "daily", "priority": "high"})
        test_client.post("/tasks", json={"title": "Other", "priority": "high"})

        response = test_client.get("/tasks", params={"category": "daily"})

        assert [task["title"] for task in response.json()["tasks"]] == ["High", "Low"]

    def test_list_uncategorized(self, test_client):
        test_client.post("/tasks", json={"title": "Daily", "category": "daily"})
        test_client.post("/tasks", json={"title": "Other"})

        response = test_client.get("/tasks", params={"uncategorized": True})

        assert [task["title"] for task in response.json()["tasks"]] == ["Other"]

    def test_list_by_priority(self, test_client):
        test_client.post("/tasks", json={"title": "High", "priority": "high"})
        test_client.post("/tasks", json={"title": "Low", "priority": "low"})

        response = test_client.get("/tasks", params={"priority": "low"})

        assert [task["title"] for task in response.json()["tasks"]] == ["Low"]

    def test_category_and_uncategorized_conflict(self, test_client):
        response = test_client.get("/tasks", params={"category": "daily", "uncategorized": True})
        assert response.status_code == 400

    def test_get_task(self, test_client):
        """Test GET /tasks/{task_id} endpoint."""
        task_id = test_client.post("/tasks", json={"title": "Find me"}).json()["task"]["id"]

        response = test_client.get(f"/tasks/{task_id}")

        assert response.status_code == 200
        assert response.json()["task"]["id"] == task_id

    def test_get_nonexistent_task(self, test_client):
        response = test_client.get("/tasks/nonexistent-id")
        assert response.status_code == 404

    def test_get_other_users_task(self, test_client, task_repository, make_task, other_user_id):
        """Tasks of another user are forbidden, not hidden."""
        foreign = task_repository.create(make_task(user_id=other_user_id))

        response = test_client.get(f"/tasks/{foreign.id}")

        assert response.status_code == 403

    def test_update_task(self, test_client):
        """Test PATCH /tasks/{task_id} endpoint."""
        task_id = test_client.post(
            "/tasks", json={"title": "Original", "description": "notes"}
        ).json()["task"]["id"]

        response = test_client.patch(f"/tasks/{task_id}", json={"title": "Updated", "description": None})

        assert response.status_code == 200
        task = response.json()["task"]
        assert task["title"] == "Updated"
        assert task["description"] is None

    def test_update_task_invalid_title(self, test_client):
        task_id = test_client.post("/tasks", json={"title": "Original"}).json()["task"]["id"]

        response = test_client.patch(f"/tasks/{task_id}", json={"title": " "})

        assert response.status_code == 422
        assert test_client.get(f"/tasks/{task_id}").json()["task"]["title"] == "Original"

    def test_toggle_task(self, test_client):
        task_id = test_client.post("/tasks", json={"title": "Toggle"}).json()["task"]["id"]

        done = test_client.post(f"/tasks/{task_id}/toggle").json()["task"]
        assert done["completed"] is True
        assert done["completed_at"].startswith("2024-01-10T12:00:00")

        reopened = test_client.post(f"/tasks/{task_id}/toggle").json()["task"]
        assert reopened["completed"] is False
        assert reopened["completed_at"] is None

    def test_delete_task(self, test_client):
        """Test DELETE /tasks/{task_id} endpoint."""
        task_id = test_client.post("/tasks", json={"title": "Delete me"}).json()["task"]["id"]

        response = test_client.delete(f"/tasks/{task_id}")

        assert response.status_code == 204
        assert test_client.get(f"/tasks/{task_id}").status_code == 404

    def test_clear_all_tasks(self, test_client, task_repository, make_task, other_user_id):
        test_client.post("/tasks", json={"title": "A"})
        test_client.post("/tasks", json={"title": "B"})
        task_repository.create(make_task(user_id=other_user_id))

        response = test_client.delete("/tasks")

        assert response.status_code == 200
        assert response.json()["deleted_count"] == 2
        assert len(task_repository.list_all()) == 1


class TestLifecycleEndpoints:
    """Test the expiring-soon, expired and expiration-detail endpoints."""

    @pytest.fixture
    def lifecycle_tasks(self, task_repository, make_task):
        """Tasks at different points of their lifecycle at 2024-01-10 12:00."""
        return {
            # Expires 2024-01-10 23:59:59.999, warning window open.
            "expiring": task_repository.create(
                make_task(title="Expiring", category=TaskCategory.WEEKLY, created_at=datetime(2024, 1, 2, 10, 0))
            ),
            # Same window, but completed: no warning.
            "expiring_done": task_repository.create(
                make_task(
                    title="Done",
                    category=TaskCategory.WEEKLY,
                    created_at=datetime(2024, 1, 2, 10, 0),
                    completed=True,
                    completed_at=datetime(2024, 1, 3, 10, 0),
                )
            ),
            # Expired 2024-01-03 23:59:59.999.
            "expired": task_repository.create(
                make_task(title="Expired", category=TaskCategory.DAILY, created_at=datetime(2024, 1, 1, 10, 0))
            ),
            "fresh": task_repository.create(
                make_task(title="Fresh", category=TaskCategory.MONTHLY, created_at=datetime(2024, 1, 9, 10, 0))
            ),
            "recurring": task_repository.create(
                make_task(
                    title="Recurring",
                    category=TaskCategory.WEEKLY,
                    due=DueWeekday(weekday=3),
                    is_recurring=True,
                    recurring_pattern=TaskCategory.WEEKLY,
                    created_at=datetime(2023, 1, 1, 10, 0),
                )
            ),
        }

    def test_expiring_soon(self, test_client, lifecycle_tasks):
        response = test_client.get("/tasks/expiring-soon")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["tasks"][0]["task"]["id"] == lifecycle_tasks["expiring"].id
        assert data["tasks"][0]["hours_until_deletion"] == 12

    def test_expired(self, test_client, lifecycle_tasks):
        response = test_client.get("/tasks/expired")

        assert response.status_code == 200
        assert [task["id"] for task in response.json()["tasks"]] == [lifecycle_tasks["expired"].id]

    def test_purge_expired(self, test_client, task_repository, lifecycle_tasks):
        response = test_client.post("/tasks/expired/purge")

        assert response.status_code == 200
        data = response.json()
        assert data["deleted_count"] == 1
        assert data["deleted_ids"] == [lifecycle_tasks["expired"].id]
        assert task_repository.get_by_id(lifecycle_tasks["expired"].id) is None

    def test_expiration_details(self, test_client, lifecycle_tasks):
        task_id = lifecycle_tasks["expiring"].id

        response = test_client.get(f"/tasks/{task_id}/expiration")

        assert response.status_code == 200
        data = response.json()
        assert data["task_id"] == task_id
        assert data["expires_at"].startswith("2024-01-10T23:59:59")
        assert data["warning_starts_at"].startswith("2024-01-09T23:59:59")
        assert data["is_expiring_soon"] is True
        assert data["hours_until_deletion"] == 12

    def test_expiration_details_recurring(self, test_client, lifecycle_tasks):
        data = test_client.get(f"/tasks/{lifecycle_tasks['recurring'].id}/expiration").json()

        assert data["expires_at"] is None
        assert data["warning_starts_at"] is None
        assert data["is_expiring_soon"] is False
        assert data["hours_until_deletion"] is None


class TestStatsEndpoint:
    """Test GET /stats."""

    def test_stats(self, test_client, task_repository, make_task):
        task_repository.create(make_task(category=TaskCategory.DAILY, priority=TaskPriority.HIGH))
        task_repository.create(
            make_task(category=TaskCategory.DAILY, completed=True, completed_at=datetime(2024, 1, 10, 9, 0))
        )
        task_repository.create(make_task(priority=TaskPriority.LOW))

        response = test_client.get("/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["completed"] == 1
        assert data["active"] == 2
        assert data["completion_rate"] == 33
        assert data["by_category"] == {"daily": 2, "weekly": 0, "monthly": 0, "others": 1}
        assert data["by_category_stats"]["daily"]["completion_rate"] == 50
        assert data["by_priority"] == {"high": 1, "medium": 1, "low": 1}

    def test_stats_empty(self, test_client):
        data = test_client.get("/stats").json()

        assert data["total"] == 0
        assert data["completion_rate"] == 0


class TestAuthentication:
    """Test bearer-token authentication."""

    def test_health_is_public(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_missing_token(self, test_client):
        from taskcycle.api.app import app
        from taskcycle.auth.dependencies import get_current_user_id

        app.dependency_overrides.pop(get_current_user_id)

        assert test_client.get("/tasks").status_code == 401

    def test_invalid_token(self, test_client):
        from taskcycle.api.app import app
        from taskcycle.auth.dependencies import get_current_user_id

        app.dependency_overrides.pop(get_current_user_id)

        response = test_client.get("/tasks", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_valid_token(self, test_client, test_user_id):
        from taskcycle.api.app import app
        from taskcycle.auth.dependencies import get_current_user_id
        from taskcycle.auth.jwt import create_access_token, get_user_id_from_token

        app.dependency_overrides.pop(get_current_user_id)
        token = create_access_token(test_user_id)

        assert get_user_id_from_token(token) == test_user_id
        response = test_client.post("/tasks", json={"title": "Mine"}, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 201
        assert response.json()["task"]["user_id"] == test_user_id
