import threading
import uuid
from concurrent.futures import Future
from enum import StrEnum
from typing import Any, Generic, Optional, TypeVar

from anyorder.core.interfaces.scheduler import ScheduledWork
from anyorder.core.interruption import Interruption

I = TypeVar("I")
O = TypeVar("O")


class InvocationState(StrEnum):
    submitted = "submitted"
    running = "running"
    retry_scheduled = "retry_scheduled"
    succeeded = "succeeded"
    terminal_failed = "terminal_failed"
    exhausted = "exhausted"


TERMINAL_STATES = frozenset(
    {InvocationState.succeeded, InvocationState.terminal_failed, InvocationState.exhausted}
)

WAITING_STATES = frozenset({InvocationState.submitted, InvocationState.retry_scheduled})


class Invocation(Generic[I, O]):
    """One logical call to process a single item, spanning one or more attempts.

    Notes:
    - Owned by the dispatcher. Attempt N+1 never starts before attempt N
      concluded, but an interruption or a dispatcher shutdown may settle the
      invocation from another thread while it waits; `lock` guards every
      state transition and the future is settled exactly once.
    - `attempts` starts at 0 and counts attempts actually started.
    - `pending_retry` is the scheduler handle of a delayed next attempt.
    - `id` is a short local identifier used for log correlation only.
    """

    def __init__(self, item: I, future: Future, interruption: Interruption) -> None:
        self.id = uuid.uuid4().hex[:8]
        self.item = item
        self.future = future
        self.interruption = interruption
        self.attempts = 0
        self.state = InvocationState.submitted
        self.last_error: Optional[BaseException] = None
        self.pending_retry: Optional[ScheduledWork] = None
        self.lock = threading.Lock()

    def is_settled(self) -> bool:
        return self.state in TERMINAL_STATES

    def is_waiting(self) -> bool:
        """True between attempts: queued, or waiting out a retry delay."""
        return self.state in WAITING_STATES

    def begin_attempt(self) -> Optional[int]:
        """Start the next attempt; None if the invocation settled meanwhile."""
        with self.lock:
            if self.is_settled():
                return None
            self.attempts += 1
            self.state = InvocationState.running
            self.pending_retry = None
            return self.attempts

    def await_retry(self) -> bool:
        with self.lock:
            if self.is_settled():
                return False
            self.state = InvocationState.retry_scheduled
            return True

    def attach_retry(self, handle: ScheduledWork) -> bool:
        """Remember the delayed attempt; False if already settled."""
        with self.lock:
            if self.is_settled():
                return False
            self.pending_retry = handle
            return True

    def _claim(self, state: InvocationState) -> bool:
        with self.lock:
            if self.is_settled():
                return False
            self.state = state
            self.pending_retry = None
            return True

    def settle_result(self, result: Any) -> bool:
        if not self._claim(InvocationState.succeeded):
            return False
        self.future.set_result(result)
        return True

    def settle_exception(self, state: InvocationState, error: BaseException) -> bool:
        """Settle the future with ``error``; False if it was already settled."""
        if state not in TERMINAL_STATES:
            raise ValueError(f"Cannot settle invocation {self.id} into non-terminal state {state}")
        if not self._claim(state):
            return False
        self.future.set_exception(error)
        return True

    def __repr__(self) -> str:
        return f"Invocation(id={self.id!r}, state={self.state}, attempts={self.attempts})"
