"""FastAPI web application for taskcycle."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from taskcycle.api.schemas import (
    DeleteResponse,
    ExpiringSoonResponse,
    TaskCreateRequest,
    TaskListResponse,
    TaskResponse,
    TaskUpdateRequest,
)
from taskcycle.auth.dependencies import get_current_user_id
from taskcycle.database.database import SessionLocal, get_db, init_db
from taskcycle.database.repository import TaskRepository
from taskcycle.errors import TaskAuthorizationError, TaskNotFoundError, TaskValidationError
from taskcycle.lifecycle import queries
from taskcycle.lifecycle.scheduler import SWEEP_ENABLED, run_sweep_scheduler
from taskcycle.lifecycle.sweep import sweep_expired_tasks_for_user
from taskcycle.models.task import TaskCategory, TaskPriority
from taskcycle.services import tasks as task_service

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    sweeper: Optional[asyncio.Task] = None
    if SWEEP_ENABLED:
        sweeper = asyncio.create_task(run_sweep_scheduler(SessionLocal))
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            logger.info("Sweep scheduler stopped")


# Initialize FastAPI app
app = FastAPI(
    title="taskcycle API",
    description="Task lists whose entries expire, warn and recur on their own",
    version=VERSION,
    lifespan=lifespan,
)


@app.exception_handler(TaskNotFoundError)
async def _not_found_handler(request: Request, exc: TaskNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(TaskAuthorizationError)
async def _forbidden_handler(request: Request, exc: TaskAuthorizationError):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


@app.exception_handler(TaskValidationError)
async def _validation_handler(request: Request, exc: TaskValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def get_now() -> datetime:
    """Current time for lifecycle computations (UTC)."""
    return datetime.utcnow()


def get_task_repository(db: Session = Depends(get_db)) -> TaskRepository:
    return TaskRepository(db)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": VERSION}


@app.get("/tasks", response_model=TaskListResponse)
def list_tasks(
    category: Optional[TaskCategory] = None,
    uncategorized: bool = False,
    priority: Optional[TaskPriority] = None,
    user_id: str = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
):
    """List tasks, optionally filtered by category (priority-sorted) or priority."""
    if category is not None and uncategorized:
        raise HTTPException(status_code=400, detail="Use either category or uncategorized, not both")

    if category is not None or uncategorized:
        tasks = queries.get_tasks_by_category(repo, user_id, category)
        if priority is not None:
            tasks = [task for task in tasks if task.priority == priority]
    elif priority is not None:
        tasks = queries.get_tasks_by_priority(repo, user_id, priority)
    else:
        tasks = repo.list_for_user(user_id)
    return TaskListResponse(tasks=tasks, count=len(tasks))


@app.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    request: TaskCreateRequest,
    user_id: str = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
    now: datetime = Depends(get_now),
):
    """Create a task."""
    task = task_service.create_task(
        repo,
        user_id,
        title=request.title,
        description=request.description,
        priority=request.priority,
        category=request.category,
        due=request.due,
        due_time=request.due_time,
        is_recurring=request.is_recurring,
        recurring_pattern=request.recurring_pattern,
        now=now,
    )
    return TaskResponse(task=task)


@app.get("/tasks/expiring-soon", response_model=ExpiringSoonResponse)
def list_expiring_soon(
    user_id: str = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
    now: datetime = Depends(get_now),
):
    """Incomplete tasks inside their warning window, with hours until deletion."""
    expiring = queries.get_tasks_expiring_soon(repo, user_id, now)
    return ExpiringSoonResponse(tasks=expiring, count=len(expiring))


@app.get("/tasks/expired", response_model=TaskListResponse)
def list_expired(
    user_id: str = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
    now: datetime = Depends(get_now),
):
    """Tasks that have expired and will be removed by the next sweep."""
    tasks = queries.get_expired_tasks(repo, user_id, now)
    return TaskListResponse(tasks=tasks, count=len(tasks))


@app.post("/tasks/expired/purge", response_model=DeleteResponse)
def purge_expired(
    user_id: str = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
    now: datetime = Depends(get_now),
):
    """Delete the caller's expired tasks now instead of waiting for the sweep."""
    result = sweep_expired_tasks_for_user(repo, user_id, now)
    return DeleteResponse(deleted_count=result.affected_count, deleted_ids=result.affected_ids)


@app.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
):
    """Get a single task."""
    return TaskResponse(task=repo.get_owned(user_id, task_id))


@app.get("/tasks/{task_id}/expiration", response_model=queries.ExpirationDetails)
def get_task_expiration(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
    now: datetime = Depends(get_now),
):
    """Expiration metadata for the task detail view."""
    return queries.describe_expiration(repo.get_owned(user_id, task_id), now)


@app.patch("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    request: TaskUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
    now: datetime = Depends(get_now),
):
    """Partially update a task (null clears optional fields)."""
    changes = request.model_dump(exclude_unset=True)
    task = task_service.update_task(repo, user_id, task_id, changes, now)
    return TaskResponse(task=task)


@app.post("/tasks/{task_id}/toggle", response_model=TaskResponse)
def toggle_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
    now: datetime = Depends(get_now),
):
    """Toggle completion."""
    return TaskResponse(task=task_service.toggle_task(repo, user_id, task_id, now))


@app.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
):
    """Delete a task."""
    task_service.delete_task(repo, user_id, task_id)


@app.delete("/tasks", response_model=DeleteResponse)
def clear_tasks(
    user_id: str = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
):
    """Delete all of the caller's tasks."""
    return DeleteResponse(deleted_count=task_service.clear_all_tasks(repo, user_id))


@app.get("/stats", response_model=queries.UserStats)
def get_stats(
    user_id: str = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
):
    """Totals, per-category and per-priority counts, completion rates."""
    return queries.get_user_stats(repo, user_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
