"""Tests for central logging configuration and the logging adapter."""

import logging
import sys

import pytest

from anyorder.adapters.executor_threads import ThreadPerTaskExecutor
from anyorder.adapters.logging_adapter import LoggingAdapter
from anyorder.core.interfaces.logging import LoggingPort
from anyorder.core.logging_config import (
    _InvocationIdFilter,
    coerce_level,
    configure_logging,
    invocation_id_var,
)
from anyorder.core.managers.action_dispatcher import ActionDispatcher


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    scheduler_level = logging.getLogger("apscheduler").level
    yield root
    logging.getLogger("apscheduler").setLevel(scheduler_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def make_record(level=logging.INFO):
    return logging.LogRecord("anyorder.test", level, __file__, 1, "message", None, None)


class TestCoerceLevel:

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, logging.INFO),
            ("warning", logging.WARNING),
            (" DEBUG ", logging.DEBUG),
            (logging.ERROR, logging.ERROR),
            ("no-such-level", logging.INFO),
        ],
    )
    def test_coerce(self, value, expected):
        assert coerce_level(value) == expected


class TestConfigureLogging:

    def test_splits_stdout_and_stderr(self, restore_root_logger):
        configure_logging("debug")

        root = restore_root_logger
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2
        stdout_handler, stderr_handler = root.handlers
        assert stdout_handler.stream is sys.stdout
        assert stderr_handler.stream is sys.stderr

        info, warning = make_record(logging.INFO), make_record(logging.WARNING)
        assert all(f.filter(info) for f in stdout_handler.filters)
        assert not all(f.filter(warning) for f in stdout_handler.filters)
        assert all(f.filter(warning) for f in stderr_handler.filters)
        assert not all(f.filter(info) for f in stderr_handler.filters)

    def test_quiets_scheduler_logger(self, restore_root_logger):
        configure_logging("debug")

        assert logging.getLogger("apscheduler").level == logging.WARNING

    def test_repeated_calls_do_not_duplicate_handlers(self, restore_root_logger):
        configure_logging()
        configure_logging()

        assert len(restore_root_logger.handlers) == 2


class TestInvocationIdFilter:

    def test_default_placeholder(self):
        record = make_record()

        _InvocationIdFilter().filter(record)

        assert record.invocation_id == "-"

    def test_uses_context_variable(self):
        token = invocation_id_var.set("abc12345")
        try:
            record = make_record()
            _InvocationIdFilter().filter(record)
        finally:
            invocation_id_var.reset(token)

        assert record.invocation_id == "abc12345"

    def test_dispatcher_sets_id_during_attempt(self):
        with ThreadPerTaskExecutor() as executor:
            dispatcher = ActionDispatcher(lambda item: invocation_id_var.get(), executor)
            seen = dispatcher.act_on_item("x").result(timeout=5.0)

        assert seen != "-"
        assert len(seen) == 8


class TestLoggingAdapter:

    def test_is_logging_port(self):
        assert isinstance(LoggingAdapter("anyorder.test"), LoggingPort)

    def test_emits_through_named_logger(self, caplog):
        adapter = LoggingAdapter("anyorder.test.adapter", "DEBUG")

        with caplog.at_level(logging.DEBUG, logger="anyorder.test.adapter"):
            adapter.debug("debug %s", 1)
            adapter.info("info")
            adapter.warning("warning")
            adapter.error("error")

        records = [r for r in caplog.records if r.name == "anyorder.test.adapter"]
        assert [r.getMessage() for r in records] == ["debug 1", "info", "warning", "error"]
