from typing import Optional


class ActionInterrupted(Exception):
    """Interruption signal observed by an action while it was running.

    Raised by the cooperative interruption helpers when the invocation the
    current worker thread serves has been interrupted.
    """


# Dispatch failures surfaced through invocation futures

class DispatchError(Exception):
    """Base exception for invocation failures.

    Attributes:
        message: Human-readable error description
        invocation_id: Optional id of the failed invocation
    """
    def __init__(self, message: str, invocation_id: Optional[str] = None):
        self.message = message
        self.invocation_id = invocation_id
        super().__init__(message)


class TerminalActionError(DispatchError):
    """Non-retryable failure wrapping an interruption signal.

    The wrapped ``ActionInterrupted`` is kept both as ``interruption`` and as
    ``__cause__`` so callers can inspect the underlying signal.

    Attributes:
        interruption: The interruption that ended the invocation
    """
    def __init__(
        self,
        interruption: Optional[ActionInterrupted] = None,
        invocation_id: Optional[str] = None,
    ):
        self.interruption = interruption if interruption is not None else ActionInterrupted()
        message = "Action interrupted"
        if invocation_id:
            message = f"Action interrupted for invocation {invocation_id}"
        super().__init__(message=message, invocation_id=invocation_id)
        self.__cause__ = self.interruption


class RetriesExhaustedError(DispatchError):
    """Raised when the retry policy denies another attempt.

    Attributes:
        attempts: Number of attempts made
        last_error: Ordinary failure raised by the final attempt
    """
    def __init__(
        self,
        attempts: int,
        last_error: BaseException,
        invocation_id: Optional[str] = None,
    ):
        self.attempts = attempts
        self.last_error = last_error
        message = f"Retries exhausted after {attempts} attempt(s): {last_error!r}"
        super().__init__(message=message, invocation_id=invocation_id)
        self.__cause__ = last_error


class ExecutorRejectedError(DispatchError):
    """Raised when the executor refuses a unit of work.

    Attributes:
        attempt: Attempt number that could not be dispatched
    """
    def __init__(
        self,
        attempt: int,
        reason: BaseException,
        invocation_id: Optional[str] = None,
    ):
        self.attempt = attempt
        message = f"Executor rejected attempt {attempt}: {reason}"
        super().__init__(message=message, invocation_id=invocation_id)
        self.__cause__ = reason
