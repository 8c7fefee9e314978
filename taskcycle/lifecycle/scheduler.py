"""Sweep scheduler.

A small polling loop that runs the expiration sweep and the recurrence sweep
at their own cadences (every 24h and every hour by default). Each tick opens
its own database session and runs the sweep in a worker thread so the event
loop stays responsive.

To stop the scheduler, cancel the coroutine/task.
"""

import asyncio
import logging
import os
from typing import Callable, Optional

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from taskcycle.database.repository import TaskRepository
from taskcycle.lifecycle.sweep import SweepResult, sweep_expired_tasks, sweep_recurring_tasks

load_dotenv()

logger = logging.getLogger(__name__)

SWEEP_ENABLED = os.getenv("SWEEP_ENABLED", "False").lower() == "true"
DELETION_INTERVAL_SECONDS = float(os.getenv("SWEEP_DELETION_INTERVAL_HOURS", "24")) * 3600
RECURRENCE_INTERVAL_SECONDS = float(os.getenv("SWEEP_RECURRENCE_INTERVAL_HOURS", "1")) * 3600

SweepFn = Callable[[TaskRepository], SweepResult]


def run_sweep_job(session_factory: Callable[[], Session], sweep_fn: SweepFn) -> SweepResult:
    """Run one sweep in a fresh session."""
    db = session_factory()
    try:
        return sweep_fn(TaskRepository(db))
    finally:
        db.close()


async def _run_periodically(
    name: str,
    session_factory: Callable[[], Session],
    sweep_fn: SweepFn,
    interval_seconds: float,
) -> None:
    sleep_s = max(0.01, float(interval_seconds))
    while True:
        try:
            await asyncio.to_thread(run_sweep_job, session_factory, sweep_fn)
        except Exception:
            # Listing tasks failed (e.g. database unavailable); try again next tick.
            logger.exception("%s sweep failed", name)
        await asyncio.sleep(sleep_s)


async def run_sweep_scheduler(
    session_factory: Callable[[], Session],
    *,
    deletion_interval_seconds: Optional[float] = None,
    recurrence_interval_seconds: Optional[float] = None,
) -> None:
    """Run both sweeps forever, each on its own interval.

    Both sweeps run once immediately, then every interval.
    """
    deletion_s = DELETION_INTERVAL_SECONDS if deletion_interval_seconds is None else deletion_interval_seconds
    recurrence_s = RECURRENCE_INTERVAL_SECONDS if recurrence_interval_seconds is None else recurrence_interval_seconds
    logger.info("Sweep scheduler started deletion_every=%ss recurrence_every=%ss", deletion_s, recurrence_s)

    await asyncio.gather(
        _run_periodically("expiration", session_factory, sweep_expired_tasks, deletion_s),
        _run_periodically("recurrence", session_factory, sweep_recurring_tasks, recurrence_s),
    )
