"""Streams and the typed adapters generated bindings use on top of them.

A raw `Stream` moves untyped messages in both directions. Transports
provide them; `memory_pipe` builds an in-process pair. The adapters give
each streaming shape its typed view:

    client side          handler side
    CallClientStream     HandlerClientStream     (client streaming)
    CallServerStream     HandlerServerStream     (server streaming)
    CallBidiStream       HandlerBidiStream       (bidirectional)
"""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, Protocol, TypeVar

from .envelope import Headers, Response
from .errors import Code, RpcError

Req = TypeVar("Req")
Res = TypeVar("Res")


class StreamType(StrEnum):
    """Which sides of a call stream more than one message."""

    CLIENT = "client"
    SERVER = "server"
    BIDI = "bidi"


class EndOfStream(Exception):
    """Raised by receive() once the peer has closed its send side cleanly."""


class Stream(Protocol):
    """An untyped, full-duplex message stream."""

    request_headers: Headers
    response_headers: Headers

    async def send(self, msg: Any) -> None: ...

    async def receive(self) -> Any: ...

    async def close_send(self, err: BaseException | None = None) -> None: ...

    async def close_receive(self) -> None: ...


@dataclass(frozen=True)
class _Closed:
    err: BaseException | None


class MemoryStream:
    """One end of an in-process stream pair built by memory_pipe()."""

    def __init__(
        self,
        inbound: asyncio.Queue[Any],
        outbound: asyncio.Queue[Any],
        request_headers: Headers,
        response_headers: Headers,
    ) -> None:
        self.request_headers = request_headers
        self.response_headers = response_headers
        self._inbound = inbound
        self._outbound = outbound
        self._send_closed = False
        self._receive_closed = False
        self._end: BaseException | None = None

    async def send(self, msg: Any) -> None:
        if self._send_closed:
            raise RpcError(Code.FAILED_PRECONDITION, "send on a closed stream")
        await self._outbound.put(msg)

    async def receive(self) -> Any:
        if self._receive_closed:
            if self._end is not None:
                raise self._end
            raise EndOfStream()
        item = await self._inbound.get()
        if isinstance(item, _Closed):
            self._receive_closed = True
            self._end = item.err
            if item.err is not None:
                raise item.err
            raise EndOfStream()
        return item

    async def close_send(self, err: BaseException | None = None) -> None:
        if self._send_closed:
            return
        self._send_closed = True
        await self._outbound.put(_Closed(err))

    async def close_receive(self) -> None:
        self._receive_closed = True


def memory_pipe(request_headers: Headers | None = None) -> tuple[MemoryStream, MemoryStream]:
    """Create a connected (client end, handler end) pair of streams."""
    upstream: asyncio.Queue[Any] = asyncio.Queue()
    downstream: asyncio.Queue[Any] = asyncio.Queue()
    req_headers = dict(request_headers or {})
    res_headers: Headers = {}
    client = MemoryStream(downstream, upstream, req_headers, res_headers)
    handler = MemoryStream(upstream, downstream, req_headers, res_headers)
    return client, handler


async def _drain(stream: Stream) -> AsyncIterator[Any]:
    while True:
        try:
            msg = await stream.receive()
        except EndOfStream:
            return
        yield msg


class CallClientStream(Generic[Req, Res]):
    """Client view of a client-streaming call: send many, receive one."""

    def __init__(self, stream: Stream) -> None:
        self._stream = stream

    async def send(self, msg: Req) -> None:
        await self._stream.send(msg)

    async def close_and_receive(self) -> Response[Res]:
        """Close the send side and wait for the single response."""
        await self._stream.close_send()
        try:
            msg = await self._stream.receive()
        except EndOfStream:
            raise RpcError(Code.UNKNOWN, "stream closed without a response") from None
        finally:
            await self._stream.close_receive()
        return Response(msg, headers=dict(self._stream.response_headers))


class CallServerStream(Generic[Res]):
    """Client view of a server-streaming call: iterate over the responses."""

    def __init__(self, stream: Stream) -> None:
        self._stream = stream

    @property
    def response_headers(self) -> Headers:
        return self._stream.response_headers

    async def receive(self) -> Res:
        return await self._stream.receive()

    async def close(self) -> None:
        await self._stream.close_receive()

    def __aiter__(self) -> AsyncIterator[Res]:
        return _drain(self._stream)


class CallBidiStream(Generic[Req, Res]):
    """Client view of a bidirectional call."""

    def __init__(self, stream: Stream) -> None:
        self._stream = stream

    @property
    def response_headers(self) -> Headers:
        return self._stream.response_headers

    async def send(self, msg: Req) -> None:
        await self._stream.send(msg)

    async def close_send(self) -> None:
        await self._stream.close_send()

    async def receive(self) -> Res:
        return await self._stream.receive()

    async def close_receive(self) -> None:
        await self._stream.close_receive()

    def __aiter__(self) -> AsyncIterator[Res]:
        return _drain(self._stream)


class HandlerClientStream(Generic[Req, Res]):
    """Handler view of a client-streaming call: receive many, answer once."""

    def __init__(self, stream: Stream) -> None:
        self._stream = stream

    @property
    def request_headers(self) -> Headers:
        return self._stream.request_headers

    async def receive(self) -> Req:
        return await self._stream.receive()

    async def send_response(self, res: Response[Res]) -> None:
        self._stream.response_headers.update(res.headers)
        await self._stream.send(res.msg)

    def __aiter__(self) -> AsyncIterator[Req]:
        return _drain(self._stream)


class HandlerServerStream(Generic[Res]):
    """Handler view of a server-streaming call: send the responses."""

    def __init__(self, stream: Stream) -> None:
        self._stream = stream

    @property
    def response_headers(self) -> Headers:
        return self._stream.response_headers

    async def send(self, msg: Res) -> None:
        await self._stream.send(msg)


class HandlerBidiStream(Generic[Req, Res]):
    """Handler view of a bidirectional call."""

    def __init__(self, stream: Stream) -> None:
        self._stream = stream

    @property
    def request_headers(self) -> Headers:
        return self._stream.request_headers

    @property
    def response_headers(self) -> Headers:
        return self._stream.response_headers

    async def receive(self) -> Req:
        return await self._stream.receive()

    async def send(self, msg: Res) -> None:
        await self._stream.send(msg)

    def __aiter__(self) -> AsyncIterator[Req]:
        return _drain(self._stream)
