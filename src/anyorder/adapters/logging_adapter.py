import logging

from anyorder.core.interfaces.logging import LoggingPort
from anyorder.core.logging_config import coerce_level


class LoggingAdapter(LoggingPort):
    """LoggingPort backed by a named stdlib logger.

    Sinks belong to `configure_logging`; the adapter only sets the level of
    its logger and lets records propagate to the root handlers, which add
    the invocation id.
    """

    def __init__(self, name: str = "anyorder", log_level: int | str = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(coerce_level(log_level))
        self.logger.propagate = True

    def debug(self, msg: str, *args) -> None:
        self.logger.debug(msg, *args)

    def info(self, msg: str, *args) -> None:
        self.logger.info(msg, *args)

    def warning(self, msg: str, *args) -> None:
        self.logger.warning(msg, *args)

    def error(self, msg: str, *args) -> None:
        self.logger.error(msg, *args)
