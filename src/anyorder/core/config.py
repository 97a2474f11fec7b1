"""Configuration models for core dispatch components.

Pydantic-based configuration consolidating the executor and retry settings
a dispatcher is wired with, enabling dependency injection and testability.
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field


class DispatcherConfig(BaseModel):
    """Configuration for ActionDispatcher wiring.

    Attributes:
        executor_kind: "pool" for a fixed thread pool, "thread-per-task" for an unbounded executor
        executor_workers: Thread pool size (ignored for thread-per-task)
        retry_max_attempts: Upper bound on total attempts per invocation (None = unbounded)
        retry_backoff: Backoff shape between attempts
        retry_wait_initial: Fixed wait, or exponential multiplier, in seconds
        retry_wait_max: Cap for exponential waits in seconds
    """

    executor_kind: Literal["pool", "thread-per-task"] = Field(
        default="pool",
        description="Executor adapter used to run attempts"
    )

    executor_workers: int = Field(
        default=4,
        ge=1,
        description="Number of worker threads for the pool executor"
    )

    retry_max_attempts: Optional[int] = Field(
        default=None,
        ge=1,
        description="Maximum attempts per invocation including the first (None retries indefinitely)"
    )

    retry_backoff: Literal["fixed", "exponential"] = Field(
        default="fixed",
        description="Backoff shape between attempts"
    )

    retry_wait_initial: float = Field(
        default=0.0,
        ge=0,
        description="Fixed wait in seconds, or the multiplier for exponential backoff"
    )

    retry_wait_max: float = Field(
        default=60.0,
        gt=0,
        description="Maximum wait in seconds between attempts for exponential backoff"
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @classmethod
    def from_app_settings(cls, settings) -> "DispatcherConfig":
        """Factory method to construct config from AnyOrderSettings instance.

        Args:
            settings: AnyOrderSettings instance from core.settings

        Returns:
            DispatcherConfig with values from app settings
        """
        return cls(
            executor_kind=settings.ANYORDER_EXECUTOR_KIND,
            executor_workers=settings.ANYORDER_EXECUTOR_WORKERS,
            retry_max_attempts=settings.ANYORDER_RETRY_MAX_ATTEMPTS,
            retry_backoff=settings.ANYORDER_RETRY_BACKOFF,
            retry_wait_initial=settings.ANYORDER_RETRY_WAIT_INITIAL,
            retry_wait_max=settings.ANYORDER_RETRY_WAIT_MAX,
        )
