from abc import ABC, abstractmethod


class LoggingPort(ABC):
    """Logging sink used by core components.

    Messages may use %-style placeholders filled from ``args``; the
    dispatcher mostly passes pre-formatted strings.
    """

    @abstractmethod
    def debug(self, msg: str, *args) -> None:
        pass

    @abstractmethod
    def info(self, msg: str, *args) -> None:
        pass

    @abstractmethod
    def warning(self, msg: str, *args) -> None:
        pass

    @abstractmethod
    def error(self, msg: str, *args) -> None:
        pass
