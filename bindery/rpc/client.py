"""Client-invocation builders used by generated client constructors."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import urlsplit

from .envelope import Headers, Request, Response
from .errors import ConstructionError, translate_context_error
from .streams import Stream, StreamType

UnaryFunc = Callable[[Request[Any]], Awaitable[Response[Any]]]
StreamFunc = Callable[..., Stream]


class Doer(Protocol):
    """Transport executor: performs calls against a procedure URL."""

    async def call_unary(self, url: str, req: Request[Any]) -> Response[Any]: ...

    def open_stream(self, url: str, stream_type: StreamType, headers: Headers) -> Stream: ...


@dataclass(frozen=True)
class ClientConfig:
    """Options accepted by client constructors.

    headers: sent with every call, overridden by per-request headers.
    timeout: seconds allowed for each unary call (None = no limit).
    """

    headers: Headers = field(default_factory=dict)
    timeout: float | None = None

    def __post_init__(self) -> None:
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")


def procedure(package: str, service: str, method: str) -> str:
    """Return the procedure path for a method, e.g. /ping.v1.PingService/Ping."""
    qualified = f"{package}.{service}" if package else service
    return f"/{qualified}/{method}"


def _configure(base_url: str, options: dict[str, Any]) -> ClientConfig:
    parts = urlsplit(base_url)
    if not parts.scheme or not parts.netloc:
        raise ConstructionError(f"invalid base URL {base_url!r}")
    try:
        return ClientConfig(**options)
    except (TypeError, ValueError) as err:
        raise ConstructionError(f"invalid client options: {err}") from err


def new_client_func(
    doer: Doer, base_url: str, package: str, service: str, method: str, **options: Any
) -> UnaryFunc:
    """Build the callable behind a unary client method.

    Raises:
        ConstructionError: base_url is not absolute or options are invalid.
    """
    config = _configure(base_url, options)
    url = base_url.rstrip("/") + procedure(package, service, method)

    async def call(req: Request[Any]) -> Response[Any]:
        req = Request(req.msg, headers={**config.headers, **req.headers})
        if config.timeout is None:
            return await doer.call_unary(url, req)
        try:
            async with asyncio.timeout(config.timeout):
                return await doer.call_unary(url, req)
        except TimeoutError as err:
            raise translate_context_error(err) from err

    return call


def new_client_stream(
    doer: Doer,
    stream_type: StreamType,
    base_url: str,
    package: str,
    service: str,
    method: str,
    **options: Any,
) -> StreamFunc:
    """Build the callable that opens streams for a streaming client method.

    Raises:
        ConstructionError: base_url is not absolute or options are invalid.
    """
    config = _configure(base_url, options)
    url = base_url.rstrip("/") + procedure(package, service, method)

    def open_stream(headers: Headers | None = None) -> Stream:
        return doer.open_stream(url, stream_type, {**config.headers, **(headers or {})})

    return open_stream
