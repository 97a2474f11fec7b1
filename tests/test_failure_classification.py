"""Unit tests for ordinary vs terminal failure classification."""

import pytest

from anyorder.core.exceptions import ActionInterrupted, TerminalActionError
from anyorder.core.managers.failure_classification import (
    FailureKind,
    as_terminal,
    classify_failure,
)


def raised_from(exc, cause):
    try:
        raise exc from cause
    except BaseException as caught:
        return caught


class TestClassifyFailure:

    @pytest.mark.parametrize("exc", [RuntimeError("x"), ValueError("x"), ConnectionError("x")])
    def test_ordinary(self, exc):
        assert classify_failure(exc) is FailureKind.ordinary

    def test_terminal_marker(self):
        assert classify_failure(TerminalActionError(ActionInterrupted())) is FailureKind.terminal

    def test_bare_interruption(self):
        assert classify_failure(ActionInterrupted()) is FailureKind.terminal

    def test_wrapped_interruption(self):
        exc = raised_from(RuntimeError("wrapper"), ActionInterrupted())

        assert classify_failure(exc) is FailureKind.terminal

    def test_ordinary_cause_stays_ordinary(self):
        exc = raised_from(RuntimeError("wrapper"), OSError("disk"))

        assert classify_failure(exc) is FailureKind.ordinary

    def test_base_exceptions_are_terminal(self):
        assert classify_failure(KeyboardInterrupt()) is FailureKind.terminal

    def test_cyclic_cause_chain(self):
        first, second = RuntimeError("a"), RuntimeError("b")
        first.__cause__ = second
        second.__cause__ = first

        assert classify_failure(first) is FailureKind.ordinary


class TestAsTerminal:

    def test_marker_is_reused_and_tagged(self):
        marker = TerminalActionError(ActionInterrupted())

        result = as_terminal(marker, "abc123")

        assert result is marker
        assert result.invocation_id == "abc123"

    def test_marker_keeps_existing_id(self):
        marker = TerminalActionError(ActionInterrupted(), invocation_id="first")

        assert as_terminal(marker, "second").invocation_id == "first"

    def test_wraps_bare_interruption(self):
        interruption = ActionInterrupted("stop")

        result = as_terminal(interruption, "abc123")

        assert isinstance(result, TerminalActionError)
        assert result.interruption is interruption
        assert result.__cause__ is interruption
        assert "abc123" in str(result)

    def test_finds_marker_in_cause_chain(self):
        marker = TerminalActionError(ActionInterrupted())
        exc = raised_from(RuntimeError("wrapper"), marker)

        assert as_terminal(exc) is marker

    def test_wraps_base_exception(self):
        exc = KeyboardInterrupt()

        result = as_terminal(exc)

        assert result.interruption.__cause__ is exc
