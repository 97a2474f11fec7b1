# Logging adapter for application-wide logging
from anyorder.adapters.logging_adapter import LoggingAdapter

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from rich import print

from anyorder.core.interfaces.logging import LoggingPort

# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class AnyOrderSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"
    }
    ANYORDER_LOG_LEVEL: str = "INFO"
    # "pool" = fixed size thread pool, "thread-per-task" = one thread per unit of work
    ANYORDER_EXECUTOR_KIND: Literal["pool", "thread-per-task"] = "pool"
    ANYORDER_EXECUTOR_WORKERS: int = Field(default=4, ge=1)
    # unset = retry indefinitely
    ANYORDER_RETRY_MAX_ATTEMPTS: Optional[int] = Field(default=None, ge=1)
    ANYORDER_RETRY_BACKOFF: Literal["fixed", "exponential"] = "fixed"
    ANYORDER_RETRY_WAIT_INITIAL: float = Field(default=0.0, ge=0)  # seconds
    ANYORDER_RETRY_WAIT_MAX: float = Field(default=60.0, gt=0)  # seconds, exponential only

    def print_settings(self, logger: LoggingPort):
        """Prints the settings for debugging purposes"""
        logger.info("anyorder settings:")
        print(self)

    @field_validator("ANYORDER_LOG_LEVEL", mode="before")
    def normalize_log_level(cls, value: str) -> str:
        """Accept lower case level names from the environment."""
        return str(value).upper().strip()


app_settings = AnyOrderSettings()

logger: LoggingPort = LoggingAdapter("anyorder", app_settings.ANYORDER_LOG_LEVEL)


def set_logger(new_logger: LoggingPort) -> None:
    """Replace the process-wide logger used by core components created afterwards."""
    global logger
    logger = new_logger
