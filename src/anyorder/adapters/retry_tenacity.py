from typing import Callable, Optional, Sequence, Type

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
    wait_exponential,
    wait_fixed,
)

from anyorder.core.config import DispatcherConfig


class TenacityRetryPolicy:
    """Tenacity-based retry policy implementing RetryPolicyPort.

    Tenacity's stop/wait/retry strategies make the decisions, but tenacity
    never runs or sleeps here: the dispatcher asks for a verdict after each
    failed attempt and schedules the next attempt itself. Strategies are
    evaluated against a throwaway ``RetryCallState`` so the policy stays
    read-only and can be shared by every invocation.
    """

    def __init__(
        self,
        max_attempts: Optional[int] = None,
        wait_initial: float = 0.0,
        wait_max: Optional[float] = None,
        backoff: str = "fixed",
        wait: Optional[Callable[[int], float]] = None,
        exception_types: Sequence[Type[BaseException]] = (Exception,),
    ) -> None:
        if max_attempts is not None and max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        if backoff not in ("fixed", "exponential"):
            raise ValueError(f"Unknown backoff {backoff!r}, expected 'fixed' or 'exponential'")
        self.max_attempts = max_attempts
        self.wait_initial = wait_initial
        self.wait_max = wait_max
        self.backoff = backoff
        self.exception_types = tuple(exception_types)

        if wait is not None:
            # backoff supplied as a function of the attempt count
            wait_strategy = lambda state: wait(state.attempt_number)  # noqa: E731
        elif backoff == "exponential":
            if wait_max is None:
                wait_strategy = wait_exponential(multiplier=wait_initial)
            else:
                wait_strategy = wait_exponential(multiplier=wait_initial, max=wait_max)
        else:
            wait_strategy = wait_fixed(wait_initial)

        self._retrying = Retrying(
            stop=stop_never if max_attempts is None else stop_after_attempt(max_attempts),
            wait=wait_strategy,
            retry=retry_if_exception_type(self.exception_types),
            reraise=True,
        )

    @classmethod
    def from_config(cls, config: DispatcherConfig) -> "TenacityRetryPolicy":
        return cls(
            max_attempts=config.retry_max_attempts,
            wait_initial=config.retry_wait_initial,
            wait_max=config.retry_wait_max,
            backoff=config.retry_backoff,
        )

    def _call_state(self, attempt: int, error: Optional[BaseException] = None) -> RetryCallState:
        state = RetryCallState(self._retrying, fn=None, args=(), kwargs={})
        state.attempt_number = attempt
        if error is not None:
            state.set_exception((type(error), error, error.__traceback__))
        return state

    def should_retry(self, attempt: int, error: BaseException) -> bool:
        state = self._call_state(attempt, error)
        if not self._retrying.retry(state):
            return False
        return not self._retrying.stop(state)

    def wait_seconds(self, attempt: int) -> float:
        return max(0.0, float(self._retrying.wait(self._call_state(attempt))))

    def __repr__(self) -> str:
        return (
            f"TenacityRetryPolicy(max_attempts={self.max_attempts}, backoff={self.backoff!r}, "
            f"wait_initial={self.wait_initial}, wait_max={self.wait_max})"
        )


def default_retry_policy() -> TenacityRetryPolicy:
    """Retry indefinitely on ordinary failures with no wait between attempts."""
    return TenacityRetryPolicy(max_attempts=None, wait_initial=0.0, backoff="fixed")
