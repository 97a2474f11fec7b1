from abc import ABC, abstractmethod
from typing import Callable

class ExecutorPort(ABC):
    """Runs submitted units of work on its own thread(s).

    A unit of work takes no arguments and returns nothing. Callers must not
    assume FIFO or any other scheduling order.
    """

    @abstractmethod
    def execute(self, work: Callable[[], None]) -> None:
        """Schedule ``work`` to run asynchronously.

        Raises:
            RuntimeError: If the executor no longer accepts work.
        """
        pass

    def shutdown(self, wait: bool = True) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)
