from typing import Protocol, TypeVar, runtime_checkable

I = TypeVar("I", contravariant=True)
O = TypeVar("O", covariant=True)


@runtime_checkable
class ActionPort(Protocol[I, O]):
    """Capability a dispatcher is parameterized over.

    The concrete use case supplies the work done on one item. It runs on a
    worker thread and may be invoked several times with the same item, so it
    must tolerate repetition. Raising any ordinary exception asks for a retry;
    raising ``TerminalActionError`` (or letting ``ActionInterrupted`` escape)
    ends the invocation immediately.
    """

    def asynchronous_action(self, item: I) -> O:  # pragma: no cover - protocol
        ...
