"""Request and response envelopes.

An envelope carries a payload message plus its headers. Full-tier bindings
exchange envelopes; simple-tier bindings exchange bare messages.
"""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

Headers = dict[str, str]

T = TypeVar("T")


@dataclass(slots=True)
class Request(Generic[T]):
    """A request message with its headers."""

    msg: T
    headers: Headers = field(default_factory=dict)


@dataclass(slots=True)
class Response(Generic[T]):
    """A response message with its headers and trailers."""

    msg: T
    headers: Headers = field(default_factory=dict)
    trailers: Headers = field(default_factory=dict)
