"""Concrete observer implementations for invocation lifecycle events."""

import logging
import threading
from collections import Counter

from anyorder.core.models.invocation import Invocation, InvocationState


logger = logging.getLogger(__name__)


class LoggingInvocationObserver:
    """Logs every lifecycle event of an invocation.

    Failed attempts and scheduled retries log at debug level; settlement logs
    at info for success and warning otherwise.
    """

    def on_attempt_failed(self, invocation: Invocation, error: BaseException) -> None:
        logger.debug(
            f"[observer:log] attempt failed invocation_id={invocation.id} "
            f"attempt={invocation.attempts} error={error!r}"
        )

    def on_retry_scheduled(self, invocation: Invocation, delay: float) -> None:
        logger.debug(
            f"[observer:log] retry scheduled invocation_id={invocation.id} "
            f"next_attempt={invocation.attempts + 1} delay={delay:.3f}s"
        )

    def on_settled(self, invocation: Invocation) -> None:
        if invocation.state is InvocationState.succeeded:
            logger.info(
                f"[observer:log] settled invocation_id={invocation.id} "
                f"state={invocation.state} attempts={invocation.attempts}"
            )
        else:
            logger.warning(
                f"[observer:log] settled invocation_id={invocation.id} "
                f"state={invocation.state} attempts={invocation.attempts} "
                f"last_error={invocation.last_error!r}"
            )


class OutcomeCountingObserver:
    """Tallies settled invocations by final state and counts retries.

    Thread-safe; a cheap hook for health endpoints or periodic reporting.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._outcomes: Counter[str] = Counter()
        self._retries = 0
        self._failed_attempts = 0

    def on_attempt_failed(self, invocation: Invocation, error: BaseException) -> None:
        with self._lock:
            self._failed_attempts += 1

    def on_retry_scheduled(self, invocation: Invocation, delay: float) -> None:
        with self._lock:
            self._retries += 1

    def on_settled(self, invocation: Invocation) -> None:
        with self._lock:
            self._outcomes[str(invocation.state)] += 1

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "outcomes": dict(self._outcomes),
                "retries": self._retries,
                "failed_attempts": self._failed_attempts,
            }
