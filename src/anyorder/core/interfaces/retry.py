from typing import Protocol, runtime_checkable

@runtime_checkable
class RetryPolicyPort(Protocol):
    """Abstract retry decision interface for dispatched actions.

    Implementations decide whether a failed attempt gets another try and how
    long to wait before it. The contract keeps the core decoupled from a
    specific library (tenacity/backoff). Policies are shared read-only by all
    invocations of a dispatcher, so they must not keep per-call state.
    """
    def should_retry(self, attempt: int, error: BaseException) -> bool:  # pragma: no cover - protocol
        """Decide whether another attempt is allowed.

        Args:
            attempt: Number of attempts made so far (1 after the first failure).
            error: The ordinary failure raised by the last attempt.
        Returns:
            True if the dispatcher should schedule attempt ``attempt + 1``.
        """
        ...

    def wait_seconds(self, attempt: int) -> float:  # pragma: no cover - protocol
        """Seconds to wait before dispatching attempt ``attempt + 1`` (may be 0)."""
        ...
