from abc import ABC, abstractmethod
from typing import Callable, Optional, Protocol


class ScheduledWork(Protocol):
    """Handle for a unit of work waiting to be released."""

    def cancel(self) -> bool:
        """Drop the work if it has not been released yet; True if dropped."""
        ...


class RetrySchedulerPort(ABC):
    """Releases units of work after a delay without parking a thread per delay.

    The dispatcher hands every delayed retry to one scheduler, so the number
    of threads stays fixed however many invocations are backing off.
    """

    @abstractmethod
    def schedule(
        self, delay: float, work: Callable[[], None], name: Optional[str] = None
    ) -> ScheduledWork:
        """Run ``work`` once, ``delay`` seconds from now.

        Raises:
            RuntimeError: If the scheduler has been shut down.
        """
        pass

    def shutdown(self, wait: bool = True) -> None:
        pass
