# main.py
import sys
from typing import Callable, Optional, Sequence

from rich import print

from anyorder.adapters.executor_threads import ThreadPerTaskExecutor, ThreadPoolExecutorAdapter
from anyorder.adapters.logging_adapter import LoggingAdapter
from anyorder.adapters.retry_tenacity import TenacityRetryPolicy
from anyorder.core.config import DispatcherConfig
from anyorder.core.interfaces.executor import ExecutorPort
from anyorder.core.interfaces.observers import InvocationObserver
from anyorder.core.interfaces.scheduler import RetrySchedulerPort
from anyorder.core.logging_config import configure_logging
from anyorder.core.managers.action_dispatcher import ActionDispatcher
from anyorder.core.managers.observers import LoggingInvocationObserver, OutcomeCountingObserver
from anyorder.core.settings import AnyOrderSettings, app_settings, set_logger


# main lives at the outermost layer (not in core)
# Instantiates the concrete adapters
# Wires dependencies together

def create_executor(config: DispatcherConfig) -> ExecutorPort:
    if config.executor_kind == "thread-per-task":
        return ThreadPerTaskExecutor()
    return ThreadPoolExecutorAdapter(max_workers=config.executor_workers)


def create_retry_policy(config: DispatcherConfig) -> TenacityRetryPolicy:
    return TenacityRetryPolicy.from_config(config)


def create_dispatcher(
    action,
    settings: Optional[AnyOrderSettings] = None,
    executor: Optional[ExecutorPort] = None,
    observers: Optional[list[InvocationObserver]] = None,
    scheduler: Optional[RetrySchedulerPort] = None,
) -> ActionDispatcher:
    """Build a dispatcher for ``action`` from application settings.

    The executor is created from settings unless one is passed in; either
    way the caller owns it and must shut it down. Shutting the dispatcher
    down stops its retry scheduler unless one was passed in.
    """
    config = DispatcherConfig.from_app_settings(settings or app_settings)
    return ActionDispatcher(
        action,
        executor if executor is not None else create_executor(config),
        retry_policy=create_retry_policy(config),
        observers=observers if observers is not None else [LoggingInvocationObserver()],
        scheduler=scheduler,
    )


def main(argv: Optional[Sequence[str]] = None, action: Optional[Callable[[str], object]] = None) -> int:
    """Smoke run: dispatch each command line argument through ``action``.

    Defaults to upper-casing the arguments, which exercises the full wiring
    (settings, logging, executor, retry policy) without side effects.
    """
    items = list(sys.argv[1:] if argv is None else argv)

    # Central logging configuration BEFORE creating components
    configure_logging(app_settings.ANYORDER_LOG_LEVEL)
    set_logger(LoggingAdapter("anyorder", app_settings.ANYORDER_LOG_LEVEL))
    app_settings.print_settings(LoggingAdapter("anyorder.main"))

    counter = OutcomeCountingObserver()
    config = DispatcherConfig.from_app_settings(app_settings)
    with create_executor(config) as executor, create_dispatcher(
        action or str.upper,
        executor=executor,
        observers=[LoggingInvocationObserver(), counter],
    ) as dispatcher:
        futures = [dispatcher.act_on_item(item) for item in items]
        failures = 0
        for item, future in zip(items, futures):
            exc = future.exception()
            if exc is None:
                print(f"[green]{item}[/green] -> {future.result()!r}")
            else:
                failures += 1
                print(f"[red]{item}[/red] failed: {exc}")
    print(counter.snapshot())
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
