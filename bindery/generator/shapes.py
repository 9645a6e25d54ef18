"""Streaming shape classification.

Every difference in how a method is bound traces back to its shape, which
is a total function of the two streaming flags.
"""

from enum import StrEnum

from bindery.rpc.streams import StreamType

from .types import MethodDescriptor


class StreamShape(StrEnum):
    """The four ways a method can stream."""

    UNARY = "unary"
    CLIENT_STREAM = "client_stream"
    SERVER_STREAM = "server_stream"
    BIDI = "bidi"


_SHAPES = {
    (False, False): StreamShape.UNARY,
    (True, False): StreamShape.CLIENT_STREAM,
    (False, True): StreamShape.SERVER_STREAM,
    (True, True): StreamShape.BIDI,
}

_STREAM_TYPES = {
    StreamShape.CLIENT_STREAM: StreamType.CLIENT,
    StreamShape.SERVER_STREAM: StreamType.SERVER,
    StreamShape.BIDI: StreamType.BIDI,
}


def classify(client_streaming: bool, server_streaming: bool) -> StreamShape:
    """Map the (client_streaming, server_streaming) flags to a shape."""
    return _SHAPES[(bool(client_streaming), bool(server_streaming))]


def shape_of(method: MethodDescriptor) -> StreamShape:
    return classify(method.client_streaming, method.server_streaming)


def has_simple_tier(shape: StreamShape) -> bool:
    """Only shapes with a discrete request have a simple (envelope-free) tier."""
    return shape in (StreamShape.UNARY, StreamShape.SERVER_STREAM)


def stream_type(shape: StreamShape) -> StreamType | None:
    """Runtime stream type for a shape; None for unary methods."""
    return _STREAM_TYPES.get(shape)
