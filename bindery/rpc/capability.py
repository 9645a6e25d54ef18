"""Structural capability probing for adaptive handler construction.

Generated `New<Service>Handler` constructors accept any object and ask, per
method, whether it exposes a coroutine method of a given shape. A shape is
the kind of each positional parameter plus the kind of the return value:

    simple unary           (MESSAGE,) -> MESSAGE
    full unary             (REQUEST,) -> RESPONSE
    simple server stream   (MESSAGE, SERVER_STREAM) -> NONE
    full server stream     (REQUEST, SERVER_STREAM) -> NONE
    client stream          (CLIENT_STREAM,) -> NONE
    bidi stream            (BIDI_STREAM,) -> NONE

Kinds are read from annotations. An unannotated parameter or return matches
any kind, except that client-stream and bidi stream parameters must be
annotated: an untyped `async def CumSum(self, req)` is simple-shaped and is
never bound to a streaming-input method. Payload contents are never inspected.
"""

import inspect
import logging
import typing
from collections.abc import Awaitable, Callable, Sequence
from enum import StrEnum
from typing import Any

from .envelope import Request, Response
from .streams import HandlerBidiStream, HandlerClientStream, HandlerServerStream

logger = logging.getLogger(__name__)


class Kind(StrEnum):
    """What a parameter or return value of an implementation carries."""

    MESSAGE = "message"
    REQUEST = "request"
    RESPONSE = "response"
    CLIENT_STREAM = "client_stream"
    SERVER_STREAM = "server_stream"
    BIDI_STREAM = "bidi_stream"
    NONE = "none"


_ENVELOPE_KINDS: dict[Any, Kind] = {
    Request: Kind.REQUEST,
    Response: Kind.RESPONSE,
    HandlerClientStream: Kind.CLIENT_STREAM,
    HandlerServerStream: Kind.SERVER_STREAM,
    HandlerBidiStream: Kind.BIDI_STREAM,
}

_ENVELOPE_NAMES: dict[str, Kind] = {cls.__name__: kind for cls, kind in _ENVELOPE_KINDS.items()}

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def kind_of(annotation: Any) -> Kind | None:
    """Classify an annotation; None means it matches any kind."""
    if annotation is inspect.Parameter.empty or annotation is Any:
        return None
    if annotation is None or annotation is type(None):
        return Kind.NONE
    if isinstance(annotation, str):
        head = annotation.split("[", 1)[0].strip().rsplit(".", 1)[-1]
        if head == "None":
            return Kind.NONE
        if head == "Any":
            return None
        return _ENVELOPE_NAMES.get(head, Kind.MESSAGE)
    origin = typing.get_origin(annotation) or annotation
    return _ENVELOPE_KINDS.get(origin, Kind.MESSAGE)


def _hints(fn: Callable[..., Any]) -> dict[str, Any]:
    try:
        return typing.get_type_hints(fn)
    except (NameError, TypeError, AttributeError):
        # Unresolvable forward references: fall back to the raw annotations.
        return {}


# Kinds an unannotated parameter never matches.
_ANNOTATION_REQUIRED = frozenset({Kind.CLIENT_STREAM, Kind.BIDI_STREAM})


def _matches(annotation: Any, expected: Kind) -> bool:
    actual = kind_of(annotation)
    if actual is None:
        return expected not in _ANNOTATION_REQUIRED
    return actual == expected


def lookup(
    svc: Any, name: str, params: Sequence[Kind], returns: Kind
) -> Callable[..., Awaitable[Any]] | None:
    """Return svc.<name> if it is a coroutine method of the given shape, else None."""
    fn = getattr(svc, name, None)
    if fn is None or not callable(fn) or not inspect.iscoroutinefunction(fn):
        return None
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return None

    hints = _hints(fn)
    positional = [p for p in sig.parameters.values() if p.kind in _POSITIONAL]
    variadic = next(
        (p for p in sig.parameters.values() if p.kind == inspect.Parameter.VAR_POSITIONAL), None
    )
    required = [p for p in positional if p.default is inspect.Parameter.empty]
    keyword_only = [
        p
        for p in sig.parameters.values()
        if p.kind == inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty
    ]
    if keyword_only or len(required) > len(params):
        return None
    if len(positional) < len(params) and variadic is None:
        return None

    for i, expected in enumerate(params):
        param = positional[i] if i < len(positional) else variadic
        if not _matches(hints.get(param.name, param.annotation), expected):
            return None
    if not _matches(hints.get("return", sig.return_annotation), returns):
        return None

    logger.debug("%s.%s matches (%s) -> %s", type(svc).__name__, name, ", ".join(params), returns)
    return fn
