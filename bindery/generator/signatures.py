"""Signature synthesis: the single source of method signatures.

Every declaration that mentions a method (client interfaces, client
implementations, server interfaces, handler constructors, the adaptive
server and the unimplemented server) asks `synthesize` for its signature,
so the sites cannot drift apart.

A signature is a list of parameter slots and a return slot. Each slot says
which envelope it uses and which payloads travel through it; every payload
is tagged as the method's input or output together with the direction it
flows from the point of view of the role:

    role     input     output
    client   send      receive
    server   receive   send
"""

from dataclasses import dataclass
from enum import StrEnum

from bindery.rpc.capability import Kind

from .shapes import StreamShape, has_simple_tier, shape_of
from .types import MethodDescriptor, TypeRef


class Tier(StrEnum):
    """Simple signatures pass bare messages; full ones pass envelopes."""

    SIMPLE = "simple"
    FULL = "full"


class Role(StrEnum):
    CLIENT = "client"
    SERVER = "server"


class Flow(StrEnum):
    SEND = "send"
    RECEIVE = "receive"

    @property
    def opposite(self) -> "Flow":
        return Flow.RECEIVE if self is Flow.SEND else Flow.SEND


class Envelope(StrEnum):
    """How a slot carries its payloads."""

    RAW = "raw"
    REQUEST = "request"
    RESPONSE = "response"
    STREAM = "stream"
    NONE = "none"


# Stream adapter classes (from the runtime package), keyed by shape and role.
STREAM_ADAPTERS: dict[tuple[StreamShape, Role], str] = {
    (StreamShape.CLIENT_STREAM, Role.CLIENT): "CallClientStream",
    (StreamShape.SERVER_STREAM, Role.CLIENT): "CallServerStream",
    (StreamShape.BIDI, Role.CLIENT): "CallBidiStream",
    (StreamShape.CLIENT_STREAM, Role.SERVER): "HandlerClientStream",
    (StreamShape.SERVER_STREAM, Role.SERVER): "HandlerServerStream",
    (StreamShape.BIDI, Role.SERVER): "HandlerBidiStream",
}

_PROBE_KINDS = {
    Envelope.RAW: Kind.MESSAGE,
    Envelope.REQUEST: Kind.REQUEST,
    Envelope.RESPONSE: Kind.RESPONSE,
    Envelope.NONE: Kind.NONE,
}

_STREAM_PROBE_KINDS = {
    "HandlerClientStream": Kind.CLIENT_STREAM,
    "HandlerServerStream": Kind.SERVER_STREAM,
    "HandlerBidiStream": Kind.BIDI_STREAM,
}


@dataclass(frozen=True)
class Payload:
    """A message type travelling through a slot."""

    role: str  # "input" or "output"
    type: TypeRef
    flow: Flow


@dataclass(frozen=True)
class Slot:
    """A parameter (named) or the return value (name == "")."""

    name: str
    envelope: Envelope
    payloads: tuple[Payload, ...] = ()
    adapter: str | None = None

    @property
    def probe_kind(self) -> Kind:
        """Capability kind a server implementation must expose for this slot."""
        if self.envelope is Envelope.STREAM:
            if self.adapter not in _STREAM_PROBE_KINDS:
                raise ValueError(f"{self.adapter} is not a handler-side stream")
            return _STREAM_PROBE_KINDS[self.adapter]
        return _PROBE_KINDS[self.envelope]


_NO_RETURN = Slot("", Envelope.NONE)


@dataclass(frozen=True)
class Signature:
    """Abstract signature of one method for a given tier and role."""

    method: str
    shape: StreamShape
    tier: Tier
    role: Role
    params: tuple[Slot, ...]
    returns: Slot
    is_async: bool

    def slots(self) -> tuple[Slot, ...]:
        return (*self.params, self.returns)

    def data_flow(self) -> dict[str, tuple[TypeRef, Flow]]:
        """Map "input"/"output" to the payload type and its direction."""
        return {p.role: (p.type, p.flow) for slot in self.slots() for p in slot.payloads}

    def probe_shape(self) -> tuple[tuple[Kind, ...], Kind]:
        """Parameter kinds and return kind used to probe for this signature."""
        if self.role is not Role.SERVER:
            raise ValueError("only server signatures can be probed")
        return tuple(p.probe_kind for p in self.params), self.returns.probe_kind


def synthesize(method: MethodDescriptor, tier: Tier, role: Role) -> Signature:
    """Produce the signature of a method for a tier and role.

    Client-streaming and bidirectional methods have no simple tier; asking
    for one yields the full signature.
    """
    shape = shape_of(method)
    if not has_simple_tier(shape):
        tier = Tier.FULL

    in_flow = Flow.SEND if role is Role.CLIENT else Flow.RECEIVE
    input_payload = Payload("input", method.input_type, in_flow)
    output_payload = Payload("output", method.output_type, in_flow.opposite)
    full = tier is Tier.FULL

    request = Slot("req", Envelope.REQUEST if full else Envelope.RAW, (input_payload,))

    if shape is StreamShape.UNARY:
        response = Slot("", Envelope.RESPONSE if full else Envelope.RAW, (output_payload,))
        return Signature(method.name, shape, tier, role, (request,), response, True)

    adapter = STREAM_ADAPTERS[(shape, role)]

    if shape is StreamShape.SERVER_STREAM:
        name = "stream" if role is Role.SERVER else ""
        stream = Slot(name, Envelope.STREAM, (output_payload,), adapter)
        if role is Role.CLIENT:
            return Signature(method.name, shape, tier, role, (request,), stream, True)
        return Signature(method.name, shape, tier, role, (request, stream), _NO_RETURN, True)

    # Client and bidi streaming: the request is sent through the handle.
    stream = Slot(
        "stream" if role is Role.SERVER else "",
        Envelope.STREAM,
        (input_payload, output_payload),
        adapter,
    )
    if role is Role.CLIENT:
        return Signature(method.name, shape, tier, role, (), stream, False)
    return Signature(method.name, shape, tier, role, (stream,), _NO_RETURN, True)
