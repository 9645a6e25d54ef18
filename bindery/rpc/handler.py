"""Handler registration used by generated handler constructors."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from .client import procedure
from .envelope import Headers, Request, Response
from .errors import Code, ConstructionError, errorf, translate_context_error
from .streams import EndOfStream, Stream, StreamType

logger = logging.getLogger(__name__)

UnaryImplementation = Callable[[Request[Any]], Awaitable[Response[Any]]]
StreamImplementation = Callable[[Stream], Awaitable[None]]


@dataclass(frozen=True)
class HandlerConfig:
    """Options accepted by handler constructors.

    response_headers: added to every response unless the implementation
    sets the same header itself.
    """

    response_headers: Headers = field(default_factory=dict)


@dataclass(frozen=True)
class Handler:
    """One dispatchable method: its procedure path and implementation.

    stream_type is None for unary handlers, whose implementation takes a
    Request and returns a Response. Streaming implementations take a raw
    Stream and close its send side when done.
    """

    procedure: str
    stream_type: StreamType | None
    implementation: Callable[..., Awaitable[Any]]
    config: HandlerConfig


def _configure(options: dict[str, Any]) -> HandlerConfig:
    try:
        return HandlerConfig(**options)
    except TypeError as err:
        raise ConstructionError(f"invalid handler options: {err}") from err


def new_unary_handler(
    package: str, service: str, method: str, implementation: UnaryImplementation, **options: Any
) -> Handler:
    """Wrap a full-tier unary method in a Handler.

    Raises:
        ConstructionError: options are invalid.
    """
    config = _configure(options)

    async def serve(req: Request[Any]) -> Response[Any]:
        try:
            res = await implementation(req)
        except (Exception, asyncio.CancelledError) as err:
            translated = translate_context_error(err)
            if translated is err:
                raise
            raise translated from err
        headers = {**config.response_headers, **res.headers}
        return Response(res.msg, headers=headers, trailers=res.trailers)

    return Handler(procedure(package, service, method), None, serve, config)


def new_streaming_handler(
    stream_type: StreamType,
    package: str,
    service: str,
    method: str,
    implementation: StreamImplementation,
    **options: Any,
) -> Handler:
    """Wrap a streaming handler body in a Handler.

    Raises:
        ConstructionError: options are invalid.
    """
    config = _configure(options)

    async def serve(stream: Stream) -> None:
        for key, value in config.response_headers.items():
            stream.response_headers.setdefault(key, value)
        await implementation(stream)

    return Handler(procedure(package, service, method), stream_type, serve, config)


async def receive_request(stream: Stream) -> Request[Any]:
    """Read the single request message that opens a server-streaming call."""
    try:
        msg = await stream.receive()
    except EndOfStream:
        raise errorf(Code.INVALID_ARGUMENT, "stream closed before the request arrived") from None
    logger.debug("received request %s", type(msg).__name__)
    return Request(msg, headers=dict(stream.request_headers))
