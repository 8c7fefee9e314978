"""Exceptions raised by the taskcycle data-access layer."""


class TaskNotFoundError(ValueError):
    """Task does not exist."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class TaskAuthorizationError(PermissionError):
    """Task exists but belongs to a different user."""

    def __init__(self, task_id: str):
        super().__init__(f"Not authorized to access task {task_id}")
        self.task_id = task_id


class TaskValidationError(ValueError):
    """Task input violates a field bound or a cross-field rule."""
