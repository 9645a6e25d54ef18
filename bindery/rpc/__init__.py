"""Runtime support imported by generated bindings."""

from .capability import Kind as Kind
from .capability import lookup as lookup
from .client import ClientConfig as ClientConfig
from .client import Doer as Doer
from .client import new_client_func as new_client_func
from .client import new_client_stream as new_client_stream
from .client import procedure as procedure
from .envelope import Headers as Headers
from .envelope import Request as Request
from .envelope import Response as Response
from .errors import Code as Code
from .errors import ConstructionError as ConstructionError
from .errors import RpcError as RpcError
from .errors import as_error as as_error
from .errors import errorf as errorf
from .errors import translate_context_error as translate_context_error
from .errors import wrap as wrap
from .handler import Handler as Handler
from .handler import HandlerConfig as HandlerConfig
from .handler import new_streaming_handler as new_streaming_handler
from .handler import new_unary_handler as new_unary_handler
from .handler import receive_request as receive_request
from .loopback import LoopbackDoer as LoopbackDoer
from .streams import CallBidiStream as CallBidiStream
from .streams import CallClientStream as CallClientStream
from .streams import CallServerStream as CallServerStream
from .streams import EndOfStream as EndOfStream
from .streams import HandlerBidiStream as HandlerBidiStream
from .streams import HandlerClientStream as HandlerClientStream
from .streams import HandlerServerStream as HandlerServerStream
from .streams import MemoryStream as MemoryStream
from .streams import Stream as Stream
from .streams import StreamType as StreamType
from .streams import memory_pipe as memory_pipe
