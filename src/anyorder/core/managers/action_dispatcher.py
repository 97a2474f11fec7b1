"""ActionDispatcher: runs an action on items off the calling thread, with retry.

Responsibilities:
1. Accept an item and return an independent future immediately.
2. Run each attempt of the action as a fresh unit of work on the executor.
3. Ask the retry policy after every ordinary failure; hand delayed attempts
   to one shared retry scheduler so no thread sleeps per waiting invocation.
4. Settle the future exactly once: result, terminal failure (interruption)
   or retries exhausted. An interruption that arrives between attempts
   settles the future at once and drops the pending attempt.

Invocations never reference each other. No future is completed by chaining
off another future, so items finish in any order and sustained retrying does
not grow continuation chains.
"""

from __future__ import annotations

import functools
import threading
from concurrent.futures import Future
from typing import Callable, Generic, Optional, TypeVar, Union

from anyorder.adapters.retry_tenacity import default_retry_policy
from anyorder.adapters.scheduler_apscheduler import APSchedulerRetryScheduler
from anyorder.core import settings
from anyorder.core.exceptions import (
    ActionInterrupted,
    ExecutorRejectedError,
    RetriesExhaustedError,
)
from anyorder.core.interfaces.action import ActionPort
from anyorder.core.interfaces.executor import ExecutorPort
from anyorder.core.interfaces.logging import LoggingPort
from anyorder.core.interfaces.observers import InvocationObserver
from anyorder.core.interfaces.retry import RetryPolicyPort
from anyorder.core.interfaces.scheduler import RetrySchedulerPort
from anyorder.core.interruption import Interruption, bound_interruption
from anyorder.core.logging_config import invocation_id_var
from anyorder.core.managers.failure_classification import (
    FailureKind,
    as_terminal,
    classify_failure,
)
from anyorder.core.models.invocation import Invocation, InvocationState

I = TypeVar("I")
O = TypeVar("O")


class InvocationFuture(Future, Generic[O]):
    """Future handed out by ``ActionDispatcher.act_on_item``.

    It is marked running from the start: an invocation is always owned by
    the dispatcher until it settles. Cancellation is cooperative, so
    ``cancel()`` only delivers an interruption and reports False like any
    running future does.
    """

    def __init__(self, interruption: Interruption) -> None:
        super().__init__()
        self._interruption = interruption
        self._dependents = 0
        self._dependents_lock = threading.Lock()
        self.set_running_or_notify_cancel()

    def interrupt(self) -> bool:
        """Deliver the interruption signal; False if already settled.

        Between attempts the future settles before this returns.
        """
        if self.done():
            return False
        self._interruption.interrupt()
        return True

    def cancel(self) -> bool:
        self.interrupt()
        return False

    def add_done_callback(self, fn) -> None:
        with self._dependents_lock:
            self._dependents += 1
        super().add_done_callback(fn)

    def number_of_dependents(self) -> int:
        """Number of callbacks still waiting on this future.

        Callbacks registered before settlement have run once the future is
        done, so a settled future has none.
        """
        if self.done():
            return 0
        with self._dependents_lock:
            return self._dependents


class ActionDispatcher(Generic[I, O]):
    """Dispatches an action over items in any order, retrying ordinary failures.

    Attributes:
        executor: Runs every attempt as its own unit of work
        policy: Shared read-only retry policy
    """

    def __init__(
        self,
        action: Union[ActionPort[I, O], Callable[[I], O], None],
        executor: ExecutorPort,
        retry_policy: Optional[RetryPolicyPort] = None,
        observers: Optional[list[InvocationObserver]] = None,
        logger: Optional[LoggingPort] = None,
        scheduler: Optional[RetrySchedulerPort] = None,
    ) -> None:
        """Wire the dispatcher.

        Args:
            action: Capability run on each item, or a plain callable. May be
                None only when a subclass overrides ``asynchronous_action``.
            executor: Runs attempts; owned by the caller
            retry_policy: Shared policy; ``retry_policy()`` builds one if omitted
            observers: Lifecycle observers notified on the worker thread
            logger: Logging port; defaults to the process logger
            scheduler: Releases delayed retries; owned by the caller when
                given, otherwise ``retry_scheduler()`` builds one on the first
                delayed retry and ``shutdown()`` stops it
        """
        self._perform: Optional[Callable[[I], O]]
        if action is None:
            if type(self).asynchronous_action is ActionDispatcher.asynchronous_action:
                raise TypeError(
                    f"{type(self).__name__} needs an action or an asynchronous_action() override"
                )
            self._perform = None
        elif isinstance(action, ActionPort):
            self._perform = action.asynchronous_action
        elif callable(action):
            self._perform = action
        else:
            raise TypeError(
                f"action must provide asynchronous_action() or be callable, got {type(action).__name__}"
            )
        self.executor = executor
        self.policy = retry_policy if retry_policy is not None else self.retry_policy()
        self._observers = list(observers or [])
        self._log = logger or settings.logger

        self._lock = threading.Lock()
        self._scheduler = scheduler
        self._owns_scheduler = scheduler is None
        self._waiting: set[Invocation] = set()
        self._closed = False

    def retry_policy(self) -> RetryPolicyPort:
        """Policy used when none is injected. Override to customize."""
        return default_retry_policy()

    def retry_scheduler(self) -> RetrySchedulerPort:
        """Scheduler built on the first delayed retry when none is injected."""
        return APSchedulerRetryScheduler()

    def asynchronous_action(self, item: I) -> O:
        return self._perform(item)

    def act_on_item(self, item: I) -> InvocationFuture[O]:
        """Submit ``item`` for processing and return without blocking.

        Every call gets its own future; none depends on another.
        """
        interruption = Interruption()
        future: InvocationFuture[O] = InvocationFuture(interruption)
        invocation: Invocation[I, O] = Invocation(item, future, interruption)
        interruption.add_callback(functools.partial(self._on_interrupted, invocation))
        self._log.debug(f"[dispatch:submit] invocation_id={invocation.id}")
        self._dispatch(invocation, delay=0.0)
        return future

    def shutdown(self, wait: bool = True) -> None:
        """Stop releasing delayed retries.

        Invocations still waiting out a retry delay settle with
        ``ExecutorRejectedError``. The executor is left to its owner.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            waiting, self._waiting = list(self._waiting), set()
            scheduler = self._scheduler if self._owns_scheduler else None

        for invocation in waiting:
            self._drop_pending(invocation)
            self._reject(invocation, RuntimeError("dispatcher shut down"))
        if scheduler is not None:
            scheduler.shutdown(wait=wait)
        self._log.debug(f"[dispatch:shutdown] dropped_retries={len(waiting)}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)

    # --- scheduling ---

    def _current_scheduler(self) -> RetrySchedulerPort:
        with self._lock:
            if self._closed:
                raise RuntimeError("dispatcher is shut down")
            if self._scheduler is None:
                self._scheduler = self.retry_scheduler()
            return self._scheduler

    def _dispatch(self, invocation: Invocation[I, O], delay: float) -> None:
        work = functools.partial(self._run_attempt, invocation)
        if delay <= 0:
            self._submit(invocation, work)
            return

        try:
            scheduler = self._current_scheduler()
            with self._lock:
                self._waiting.add(invocation)
            handle = scheduler.schedule(
                delay,
                functools.partial(self._submit, invocation, work),
                name=f"anyorder-retry-{invocation.id}",
            )
        except Exception as exc:
            with self._lock:
                self._waiting.discard(invocation)
            self._log.error(
                f"[dispatch:rejected] invocation_id={invocation.id} "
                f"attempt={invocation.attempts + 1} scheduler error={exc!r}"
            )
            self._reject(invocation, exc)
            return

        if not invocation.attach_retry(handle):
            # settled while being scheduled
            handle.cancel()
            with self._lock:
                self._waiting.discard(invocation)

    def _submit(self, invocation: Invocation[I, O], work: Callable[[], None]) -> None:
        try:
            self.executor.execute(work)
        except Exception as exc:
            self._log.error(
                f"[dispatch:rejected] invocation_id={invocation.id} "
                f"attempt={invocation.attempts + 1} error={exc!r}"
            )
            self._reject(invocation, exc)

    def _reject(self, invocation: Invocation[I, O], reason: BaseException) -> None:
        self._settle_failure(
            invocation,
            InvocationState.terminal_failed,
            ExecutorRejectedError(invocation.attempts + 1, reason, invocation_id=invocation.id),
        )

    def _drop_pending(self, invocation: Invocation[I, O]) -> None:
        with invocation.lock:
            handle = invocation.pending_retry
        if handle is not None:
            handle.cancel()

    def _on_interrupted(self, invocation: Invocation[I, O]) -> None:
        # runs on the interrupting thread; a running attempt observes the token itself
        with invocation.lock:
            if not invocation.is_waiting():
                return
        self._drop_pending(invocation)
        with self._lock:
            self._waiting.discard(invocation)
        self._log.warning(
            f"[dispatch:interrupted] invocation_id={invocation.id} "
            f"interrupted before attempt={invocation.attempts + 1}"
        )
        self._settle_failure(
            invocation,
            InvocationState.terminal_failed,
            as_terminal(
                ActionInterrupted("Interrupted while waiting for the next attempt"),
                invocation.id,
            ),
        )

    # --- attempt execution ---

    def _run_attempt(self, invocation: Invocation[I, O]) -> None:
        token = invocation_id_var.set(invocation.id)
        try:
            with self._lock:
                self._waiting.discard(invocation)
            if invocation.interruption.is_interrupted():
                self._on_interrupted(invocation)
                return

            attempt = invocation.begin_attempt()
            if attempt is None:
                self._log.debug(f"[dispatch:skip] invocation_id={invocation.id} already settled")
                return
            self._log.debug(f"[dispatch:attempt] invocation_id={invocation.id} attempt={attempt}")
            with bound_interruption(invocation.interruption):
                try:
                    result = self.asynchronous_action(invocation.item)
                except Exception as exc:
                    self._handle_failure(invocation, exc)
                    return
                except BaseException as exc:
                    self._settle_failure(
                        invocation, InvocationState.terminal_failed, exc
                    )
                    raise

            self._log.debug(f"[dispatch:success] invocation_id={invocation.id} attempts={attempt}")
            if invocation.settle_result(result):
                self._notify_settled(invocation)
        finally:
            invocation_id_var.reset(token)

    def _handle_failure(self, invocation: Invocation[I, O], exc: Exception) -> None:
        if classify_failure(exc) is FailureKind.terminal:
            self._log.warning(
                f"[dispatch:terminal] invocation_id={invocation.id} "
                f"attempt={invocation.attempts} error={exc!r}"
            )
            self._settle_failure(
                invocation, InvocationState.terminal_failed, as_terminal(exc, invocation.id)
            )
            return

        invocation.last_error = exc
        self._notify_attempt_failed(invocation, exc)

        try:
            retry = self.policy.should_retry(invocation.attempts, exc)
            delay = self.policy.wait_seconds(invocation.attempts) if retry else 0.0
        except Exception as policy_exc:
            self._log.error(
                f"[dispatch:policy] invocation_id={invocation.id} policy failed error={policy_exc!r}"
            )
            error = RetriesExhaustedError(invocation.attempts, exc, invocation_id=invocation.id)
            error.__cause__ = policy_exc
            self._settle_failure(invocation, InvocationState.exhausted, error)
            return

        if not retry:
            self._log.warning(
                f"[dispatch:exhausted] invocation_id={invocation.id} "
                f"attempts={invocation.attempts} error={exc!r}"
            )
            self._settle_failure(
                invocation,
                InvocationState.exhausted,
                RetriesExhaustedError(invocation.attempts, exc, invocation_id=invocation.id),
            )
            return

        if not invocation.await_retry():
            return
        if invocation.interruption.is_interrupted():
            # interrupted while this attempt was failing
            self._on_interrupted(invocation)
            return
        self._log.info(
            f"[dispatch:retry] invocation_id={invocation.id} attempt={invocation.attempts} "
            f"delay={delay:.3f}s error={exc!r}"
        )
        self._notify_retry_scheduled(invocation, delay)
        self._dispatch(invocation, delay)

    def _settle_failure(
        self, invocation: Invocation[I, O], state: InvocationState, error: BaseException
    ) -> None:
        if invocation.settle_exception(state, error):
            self._notify_settled(invocation)

    # --- observers ---

    def _notify_attempt_failed(self, invocation: Invocation[I, O], error: BaseException) -> None:
        for observer in self._observers:
            try:
                observer.on_attempt_failed(invocation, error)
            except Exception as exc:
                self._log.error(
                    f"[observer:error] on_attempt_failed failed observer={type(observer).__name__} "
                    f"invocation_id={invocation.id} error={exc}"
                )

    def _notify_retry_scheduled(self, invocation: Invocation[I, O], delay: float) -> None:
        for observer in self._observers:
            try:
                observer.on_retry_scheduled(invocation, delay)
            except Exception as exc:
                self._log.error(
                    f"[observer:error] on_retry_scheduled failed observer={type(observer).__name__} "
                    f"invocation_id={invocation.id} error={exc}"
                )

    def _notify_settled(self, invocation: Invocation[I, O]) -> None:
        for observer in self._observers:
            try:
                observer.on_settled(invocation)
            except Exception as exc:
                self._log.error(
                    f"[observer:error] on_settled failed observer={type(observer).__name__} "
                    f"invocation_id={invocation.id} error={exc}"
                )
