"""In-process transport that connects clients straight to handlers."""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any
from urllib.parse import urlsplit

from .envelope import Headers, Request, Response
from .errors import Code, ConstructionError, errorf
from .handler import Handler
from .streams import MemoryStream, StreamType, memory_pipe

logger = logging.getLogger(__name__)


class LoopbackDoer:
    """A Doer dispatching calls to handlers registered in the same process.

    Example:
        doer = LoopbackDoer(NewPingServiceHandler(PingServer()))
        client = NewPingServiceClient("http://loopback", doer)
        res = await client.Ping(PingRequest(number=42))
    """

    def __init__(self, *handler_sets: Iterable[Handler]) -> None:
        self._handlers: dict[str, Handler] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        for handlers in handler_sets:
            for handler in handlers:
                if handler.procedure in self._handlers:
                    raise ConstructionError(f"duplicate handler for {handler.procedure}")
                self._handlers[handler.procedure] = handler

    @property
    def procedures(self) -> list[str]:
        return list(self._handlers)

    def _find(self, url: str, stream_type: StreamType | None) -> Handler:
        path = urlsplit(url).path
        for name, handler in self._handlers.items():
            if path.endswith(name):
                break
        else:
            logger.warning("no handler registered for %s", path)
            raise errorf(Code.UNIMPLEMENTED, "%s is not implemented", path)
        if handler.stream_type != stream_type:
            raise errorf(
                Code.INTERNAL,
                "%s expects %s calls",
                handler.procedure,
                handler.stream_type or "unary",
            )
        return handler

    async def call_unary(self, url: str, req: Request[Any]) -> Response[Any]:
        handler = self._find(url, None)
        return await handler.implementation(Request(req.msg, headers=dict(req.headers)))

    def open_stream(self, url: str, stream_type: StreamType, headers: Headers) -> MemoryStream:
        handler = self._find(url, stream_type)
        client_end, handler_end = memory_pipe(headers)
        task = asyncio.get_running_loop().create_task(handler.implementation(handler_end))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return client_end

    async def aclose(self) -> None:
        """Wait for every handler task started by open_stream() to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks)
