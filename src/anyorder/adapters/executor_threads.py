"""Thread-based executor adapters implementing ExecutorPort.

ThreadPoolExecutorAdapter
    Fixed number of worker threads (``concurrent.futures.ThreadPoolExecutor``).
    Attempts that pause inside their action occupy a worker until they resume.
ThreadPerTaskExecutor
    Starts one thread per unit of work, so a paused attempt never delays
    another one. Unbounded; suited for low volume and tests.
"""

import itertools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from anyorder.core.interfaces.executor import ExecutorPort

logger = logging.getLogger(__name__)


class ThreadPoolExecutorAdapter(ExecutorPort):
    def __init__(self, max_workers: int = 4, thread_name_prefix: str = "anyorder-worker"):
        """Initialize with worker pool.

        Args:
            max_workers: ThreadPool size (default: 4)
            thread_name_prefix: Prefix for worker thread names
        """
        self.max_workers = max_workers
        self.pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=thread_name_prefix)

    def execute(self, work: Callable[[], None]) -> None:
        # ThreadPoolExecutor raises RuntimeError once shut down
        future = self.pool.submit(work)
        future.add_done_callback(_log_escaped_error)

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown thread pool.

        Args:
            wait: If True, wait for running and queued work to complete
        """
        self.pool.shutdown(wait=wait)


class ThreadPerTaskExecutor(ExecutorPort):
    def __init__(self, thread_name_prefix: str = "anyorder-task", daemon: bool = True):
        self.thread_name_prefix = thread_name_prefix
        self.daemon = daemon
        self._counter = itertools.count(1)
        self._threads: set[threading.Thread] = set()
        self._lock = threading.Lock()
        self._shutdown = False

    def execute(self, work: Callable[[], None]) -> None:
        with self._lock:
            if self._shutdown:
                raise RuntimeError("cannot schedule new work after shutdown")
            thread = threading.Thread(
                target=self._run,
                args=(work,),
                name=f"{self.thread_name_prefix}-{next(self._counter)}",
                daemon=self.daemon,
            )
            self._threads.add(thread)
        thread.start()

    def _run(self, work: Callable[[], None]) -> None:
        try:
            work()
        except Exception:
            logger.exception("[executor:thread] unit of work raised")
        finally:
            with self._lock:
                self._threads.discard(threading.current_thread())

    def active_count(self) -> int:
        with self._lock:
            return len(self._threads)

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._shutdown = True
            threads = list(self._threads)
        if wait:
            for thread in threads:
                thread.join()


def _log_escaped_error(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error(f"[executor:pool] unit of work raised error={exc!r}")
