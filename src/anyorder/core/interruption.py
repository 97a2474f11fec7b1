"""Cooperative interruption for actions running on worker threads.

Python threads cannot be interrupted from the outside, so cancellation is an
explicit signal: every invocation owns an ``Interruption`` token, and the
dispatcher binds that token to the worker thread for the duration of each
attempt. Actions observe it through the helpers below and convert it into
the terminal failure marker:

    def asynchronous_action(self, item):
        with terminal_on_interrupt():
            while not ready(item):
                interruptible_sleep(0.1)
        return process(item)

Tokens never propagate between invocations; interrupting one invocation has
no effect on any other.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from anyorder.core.exceptions import ActionInterrupted, TerminalActionError

_bound = threading.local()


class Interruption:
    """Interruption flag shared by an invocation and the thread serving it."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    def interrupt(self) -> None:
        """Set the flag and run registered callbacks on the calling thread, once."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on interruption; immediately if already interrupted."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def is_interrupted(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Block up to ``timeout`` seconds; True if interrupted meanwhile."""
        return self._event.wait(timeout)


@contextmanager
def bound_interruption(interruption: Interruption) -> Iterator[Interruption]:
    """Bind ``interruption`` to the current thread while the block runs."""
    previous = getattr(_bound, "interruption", None)
    _bound.interruption = interruption
    try:
        yield interruption
    finally:
        _bound.interruption = previous


def current_interruption() -> Optional[Interruption]:
    return getattr(_bound, "interruption", None)


def is_interrupted() -> bool:
    interruption = current_interruption()
    return interruption is not None and interruption.is_interrupted()


def check_interrupted() -> None:
    """Raise ``ActionInterrupted`` if the current invocation was interrupted."""
    if is_interrupted():
        raise ActionInterrupted("Interrupted while running action")


def interruptible_sleep(seconds: float) -> None:
    """Sleep like ``time.sleep`` but wake up early on interruption.

    Outside a dispatched attempt there is nothing to observe and this is a
    plain sleep.

    Raises:
        ActionInterrupted: If the bound invocation is interrupted before or
            during the sleep.
    """
    interruption = current_interruption()
    if interruption is None:
        time.sleep(seconds)
        return
    if interruption.wait(seconds):
        raise ActionInterrupted(f"Interrupted during sleep of {seconds}s")


@contextmanager
def terminal_on_interrupt() -> Iterator[None]:
    """Convert ``ActionInterrupted`` raised inside the block into ``TerminalActionError``."""
    try:
        yield
    except ActionInterrupted as exc:
        raise TerminalActionError(exc) from exc
