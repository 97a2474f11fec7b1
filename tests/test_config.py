"""Tests for settings, DispatcherConfig and composition-root wiring."""

import pytest
from pydantic import ValidationError

from anyorder import main as main_module
from anyorder.adapters.executor_threads import ThreadPerTaskExecutor, ThreadPoolExecutorAdapter
from anyorder.adapters.retry_tenacity import TenacityRetryPolicy
from anyorder.core.config import DispatcherConfig
from anyorder.core.exceptions import ActionInterrupted, TerminalActionError
from anyorder.core.managers.action_dispatcher import ActionDispatcher
from anyorder.core.managers.observers import LoggingInvocationObserver
from anyorder.core.settings import AnyOrderSettings


@pytest.fixture
def clean_env(monkeypatch):
    """Remove ANYORDER_* variables leaking in from the environment."""
    for name in list(AnyOrderSettings.model_fields):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestAnyOrderSettings:

    def test_defaults(self, clean_env):
        settings = AnyOrderSettings(_env_file=None)

        assert settings.ANYORDER_LOG_LEVEL == "INFO"
        assert settings.ANYORDER_EXECUTOR_KIND == "pool"
        assert settings.ANYORDER_EXECUTOR_WORKERS == 4
        assert settings.ANYORDER_RETRY_MAX_ATTEMPTS is None
        assert settings.ANYORDER_RETRY_BACKOFF == "fixed"
        assert settings.ANYORDER_RETRY_WAIT_INITIAL == 0.0

    def test_reads_environment(self, clean_env):
        clean_env.setenv("ANYORDER_EXECUTOR_WORKERS", "8")
        clean_env.setenv("ANYORDER_RETRY_MAX_ATTEMPTS", "5")
        clean_env.setenv("ANYORDER_RETRY_BACKOFF", "exponential")

        settings = AnyOrderSettings(_env_file=None)

        assert settings.ANYORDER_EXECUTOR_WORKERS == 8
        assert settings.ANYORDER_RETRY_MAX_ATTEMPTS == 5
        assert settings.ANYORDER_RETRY_BACKOFF == "exponential"

    def test_log_level_normalized(self, clean_env):
        clean_env.setenv("ANYORDER_LOG_LEVEL", " debug ")

        assert AnyOrderSettings(_env_file=None).ANYORDER_LOG_LEVEL == "DEBUG"

    @pytest.mark.parametrize(
        "name,value",
        [
            ("ANYORDER_EXECUTOR_WORKERS", "0"),
            ("ANYORDER_RETRY_MAX_ATTEMPTS", "0"),
            ("ANYORDER_EXECUTOR_KIND", "processes"),
            ("ANYORDER_RETRY_WAIT_INITIAL", "-1"),
        ],
    )
    def test_invalid_values_rejected(self, clean_env, name, value):
        clean_env.setenv(name, value)

        with pytest.raises(ValidationError):
            AnyOrderSettings(_env_file=None)


class TestDispatcherConfig:

    def test_from_app_settings(self, clean_env):
        settings = AnyOrderSettings(
            _env_file=None,
            ANYORDER_EXECUTOR_KIND="thread-per-task",
            ANYORDER_RETRY_MAX_ATTEMPTS=3,
            ANYORDER_RETRY_WAIT_INITIAL=0.5,
        )

        config = DispatcherConfig.from_app_settings(settings)

        assert config.executor_kind == "thread-per-task"
        assert config.retry_max_attempts == 3
        assert config.retry_wait_initial == 0.5
        assert config.retry_wait_max == 60.0

    def test_frozen(self):
        config = DispatcherConfig()

        with pytest.raises(ValidationError):
            config.executor_workers = 2

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            DispatcherConfig(poll_interval=1.0)


class TestWiring:
    """Factories in the composition root."""

    def test_create_executor_pool(self):
        executor = main_module.create_executor(DispatcherConfig(executor_workers=2))
        try:
            assert isinstance(executor, ThreadPoolExecutorAdapter)
            assert executor.max_workers == 2
        finally:
            executor.shutdown()

    def test_create_executor_thread_per_task(self):
        executor = main_module.create_executor(DispatcherConfig(executor_kind="thread-per-task"))

        assert isinstance(executor, ThreadPerTaskExecutor)

    def test_create_dispatcher_from_settings(self, clean_env):
        settings = AnyOrderSettings(
            _env_file=None,
            ANYORDER_EXECUTOR_KIND="thread-per-task",
            ANYORDER_RETRY_MAX_ATTEMPTS=2,
        )

        dispatcher = main_module.create_dispatcher(str.upper, settings=settings)
        try:
            assert isinstance(dispatcher, ActionDispatcher)
            assert isinstance(dispatcher.executor, ThreadPerTaskExecutor)
            assert isinstance(dispatcher.policy, TenacityRetryPolicy)
            assert dispatcher.policy.max_attempts == 2
            assert any(isinstance(o, LoggingInvocationObserver) for o in dispatcher._observers)
            assert dispatcher.act_on_item("abc").result(timeout=5.0) == "ABC"
        finally:
            dispatcher.executor.shutdown()

    def test_create_dispatcher_uses_given_executor(self, clean_env):
        with ThreadPerTaskExecutor() as executor:
            dispatcher = main_module.create_dispatcher(
                str.upper, settings=AnyOrderSettings(_env_file=None), executor=executor
            )

            assert dispatcher.executor is executor


class TestMain:
    """Smoke run through the composition root."""

    @pytest.fixture(autouse=True)
    def quiet_logging(self, monkeypatch):
        # keep the process-wide logging setup untouched
        monkeypatch.setattr(main_module, "configure_logging", lambda *args, **kwargs: None)
        monkeypatch.setattr(main_module, "set_logger", lambda logger: None)

    def test_success(self, capsys):
        assert main_module.main(["ab", "cd"]) == 0

        out = capsys.readouterr().out
        assert "'AB'" in out
        assert "'CD'" in out

    def test_failure_sets_exit_code(self, capsys):
        def action(item):
            if item == "bad":
                raise TerminalActionError(ActionInterrupted())
            return item

        assert main_module.main(["good", "bad"], action=action) == 1

        out = capsys.readouterr().out
        assert "failed" in out
