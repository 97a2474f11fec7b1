"""Observer protocols for invocation lifecycle events.

Observers decouple side effects (logging, metrics, auditing) from the
dispatcher's retry loop. They are called synchronously on the worker thread
that ran the attempt, so implementations must be thread-safe and quick.
"""

from typing import Protocol, runtime_checkable

from anyorder.core.models.invocation import Invocation


@runtime_checkable
class InvocationObserver(Protocol):
    """Observer protocol for invocation state transitions.

    - on_attempt_failed: after an attempt raised an ordinary failure
    - on_retry_scheduled: after the policy granted another attempt
    - on_settled: after the invocation's future settled (any terminal state)
    """

    def on_attempt_failed(self, invocation: Invocation, error: BaseException) -> None:
        ...

    def on_retry_scheduled(self, invocation: Invocation, delay: float) -> None:
        """Called before the next attempt is handed to the executor.

        Args:
            invocation: The invocation being retried
            delay: Seconds until the next attempt is dispatched
        """
        ...

    def on_settled(self, invocation: Invocation) -> None:
        ...
