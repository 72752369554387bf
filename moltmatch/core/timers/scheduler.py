"""One-shot deferred tasks on APScheduler.

Tasks are fire-and-forget: there is no cancel. A task scheduled before
``start()`` is held and runs once the scheduler starts.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from loguru import logger


class TaskScheduler:
    """Anything that can run ``func(*args)`` once after ``delay_s`` seconds."""

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass

    def schedule(self, delay_s: float, func: Callable[..., Any], *args: Any) -> str:
        raise NotImplementedError


async def _run_on_loop(func: Callable[..., Any], args: tuple[Any, ...]) -> None:
    # Coroutine jobs run on the event loop; plain callables would go to a thread pool
    func(*args)


class AsyncIOTaskScheduler(TaskScheduler):
    """APScheduler ``AsyncIOScheduler`` with ``DateTrigger`` one-shots."""

    def __init__(self) -> None:
        self._scheduler = AsyncIOScheduler(
            # No misfire window: late jobs still run
            job_defaults={"coalesce": False, "misfire_grace_time": None}
        )

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> None:
        """Start on the running event loop."""
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("TaskScheduler started")

    def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("TaskScheduler stopped")

    def pending(self) -> int:
        return len(self._scheduler.get_jobs())

    def schedule(self, delay_s: float, func: Callable[..., Any], *args: Any) -> str:
        task_id = str(uuid.uuid4())[:8]
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay_s)
        self._scheduler.add_job(
            _run_on_loop,
            trigger=DateTrigger(run_date=run_date),
            id=task_id,
            args=[func, args],
        )
        logger.debug(f"Task {task_id} scheduled in {delay_s:.2f}s")
        return task_id
