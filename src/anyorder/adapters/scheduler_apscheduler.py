"""APScheduler-backed retry scheduler implementing RetrySchedulerPort.

Wraps an APScheduler 3.x ``BackgroundScheduler``: one scheduler thread keeps
every pending retry as a one-shot ``date`` job, and a small job pool only
hands the work over to the dispatcher's executor when the job fires.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from apscheduler.executors.pool import ThreadPoolExecutor as JobThreadPool
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from anyorder.core.interfaces.scheduler import RetrySchedulerPort

logger = logging.getLogger(__name__)


class _ScheduledJob:
    def __init__(self, job) -> None:
        self._job = job

    def cancel(self) -> bool:
        try:
            self._job.remove()
        except JobLookupError:
            # already fired or removed
            return False
        return True


class APSchedulerRetryScheduler(RetrySchedulerPort):
    """Shared delayed-release scheduler.

    Args:
        max_workers: Threads that release fired jobs to the executor
    """

    def __init__(self, max_workers: int = 2) -> None:
        self.max_workers = max_workers
        self._scheduler = BackgroundScheduler(
            executors={"default": JobThreadPool(max_workers=max_workers)},
            job_defaults={"misfire_grace_time": None, "coalesce": False},
            timezone=timezone.utc,
        )
        self._lock = threading.Lock()
        self._closed = False
        self._scheduler.start()
        logger.debug(f"[scheduler:start] apscheduler max_workers={max_workers}")

    def schedule(
        self, delay: float, work: Callable[[], None], name: Optional[str] = None
    ) -> _ScheduledJob:
        with self._lock:
            if self._closed:
                raise RuntimeError("cannot schedule new work after shutdown")
            job = self._scheduler.add_job(
                work,
                "date",
                run_date=datetime.now(timezone.utc) + timedelta(seconds=max(0.0, delay)),
                name=name,
            )
        return _ScheduledJob(job)

    def pending_count(self) -> int:
        with self._lock:
            if self._closed:
                return 0
            return len(self._scheduler.get_jobs())

    def shutdown(self, wait: bool = True) -> None:
        """Stop the scheduler thread; jobs that have not fired are dropped."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._scheduler.shutdown(wait=wait)
        logger.debug("[scheduler:stop] apscheduler stopped")
