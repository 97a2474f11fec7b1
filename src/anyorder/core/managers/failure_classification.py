"""Ordinary vs terminal failure classification.

An attempt failure is terminal when it is, or was caused by, an interruption:
either the ``TerminalActionError`` marker itself or a bare
``ActionInterrupted`` that escaped the action. Everything else is ordinary
and left to the retry policy.
"""

from enum import StrEnum
from typing import Iterator, Optional

from anyorder.core.exceptions import ActionInterrupted, TerminalActionError


class FailureKind(StrEnum):
    ordinary = "ordinary"
    terminal = "terminal"


def _cause_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: Optional[BaseException] = exc
    # guard against cyclic __cause__ chains
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__


def classify_failure(exc: BaseException) -> FailureKind:
    for link in _cause_chain(exc):
        if isinstance(link, (TerminalActionError, ActionInterrupted)):
            return FailureKind.terminal
    if not isinstance(exc, Exception):
        # KeyboardInterrupt, SystemExit and friends are never retried
        return FailureKind.terminal
    return FailureKind.ordinary


def as_terminal(exc: BaseException, invocation_id: Optional[str] = None) -> TerminalActionError:
    """Return the terminal marker for a failure classified as terminal.

    The marker keeps the original interruption as its cause. A marker raised
    by the action is tagged with the invocation id and returned unchanged
    otherwise.
    """
    for link in _cause_chain(exc):
        if isinstance(link, TerminalActionError):
            if link.invocation_id is None:
                link.invocation_id = invocation_id
            return link
        if isinstance(link, ActionInterrupted):
            return TerminalActionError(link, invocation_id=invocation_id)
    error = TerminalActionError(ActionInterrupted(repr(exc)), invocation_id=invocation_id)
    error.interruption.__cause__ = exc
    return error
