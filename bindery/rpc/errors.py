"""Error taxonomy shared by generated bindings and the runtime."""

import asyncio
from collections.abc import Sequence
from enum import IntEnum


class Code(IntEnum):
    """Status codes carried by RPC errors (numbering matches gRPC)."""

    OK = 0
    CANCELED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


class RpcError(RuntimeError):
    """Raised when an RPC fails. Carries a status code."""

    def __init__(self, code: Code, message: str = "") -> None:
        super().__init__(f"{code.name.lower()}: {message}" if message else code.name.lower())
        self.code = code
        self.message = message


class ConstructionError(RuntimeError):
    """Raised when a client or handler set cannot be constructed.

    For adaptive handler construction, `methods` lists every method for
    which no usable implementation was found, in declaration order.
    """

    def __init__(self, message: str, methods: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.methods = list(methods)

    @classmethod
    def unresolved(cls, service: str, methods: Sequence[str]) -> "ConstructionError":
        """Build the error reported when adaptive binding leaves methods unresolved."""
        listed = ", ".join(methods)
        return cls(f"{service}: no {listed} implementation found", methods)


def errorf(code: Code, fmt: str, *args: object) -> RpcError:
    """Create an RpcError with a printf-style message."""
    return RpcError(code, fmt % args if args else fmt)


def wrap(code: Code, err: BaseException) -> RpcError:
    """Wrap an arbitrary exception in an RpcError, keeping it as the cause."""
    wrapped = RpcError(code, str(err))
    wrapped.__cause__ = err
    return wrapped


def as_error(err: BaseException | None) -> RpcError | None:
    """Return err if it is already an RpcError, otherwise None."""
    if isinstance(err, RpcError):
        return err
    return None


def translate_context_error(err: BaseException) -> BaseException:
    """Map cancellation and timeouts onto CANCELED and DEADLINE_EXCEEDED.

    Errors that already carry a code are returned unchanged.
    """
    if as_error(err) is not None:
        return err
    if isinstance(err, asyncio.CancelledError):
        return wrap(Code.CANCELED, err)
    if isinstance(err, TimeoutError):
        return wrap(Code.DEADLINE_EXCEEDED, err)
    return err
