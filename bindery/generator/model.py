"""Declaration model: what gets generated for each service, in order.

`build_bindings` turns a service descriptor into an immutable list of
declarations. Renderers only turn this model into text; every decision about
names, signatures and deprecation is made here.
"""

import logging
import textwrap
from dataclasses import dataclass
from enum import StrEnum

from bindery.rpc.streams import StreamType

from .deprecation import docstring_lines, method_marker, service_marker
from .naming import NamingSet, attr_name, expose_method, resolve
from .shapes import StreamShape, shape_of, stream_type
from .signatures import Role, Signature, Tier, synthesize
from .types import DescriptorUnit, MethodDescriptor, ServiceDescriptor

logger = logging.getLogger(__name__)

DOC_WIDTH = 72


class DeclKind(StrEnum):
    """Kinds of generated declarations, in emission order."""

    SIMPLE_CLIENT = "simple_client"
    FULL_CLIENT = "full_client"
    CLIENT_IMPL = "client_impl"
    CLIENT_CONSTRUCTOR = "client_constructor"
    FULL_SERVER = "full_server"
    SIMPLE_SERVER = "simple_server"
    FULL_HANDLER_CONSTRUCTOR = "full_handler_constructor"
    ADAPTIVE_SERVER = "adaptive_server"
    ADAPTIVE_HANDLER_CONSTRUCTOR = "adaptive_handler_constructor"
    UNIMPLEMENTED_SERVER = "unimplemented_server"


@dataclass(frozen=True)
class Entry:
    """One method as it appears inside a declaration.

    signature is the method's signature at the declaration's own tier and
    role; full is the full-tier signature for the same role.
    """

    method: MethodDescriptor
    shape: StreamShape
    attr: str
    qualified_name: str
    stream_type: StreamType | None
    signature: Signature
    full: Signature
    doc: tuple[str, ...]
    deprecated: bool


@dataclass(frozen=True)
class Declaration:
    kind: DeclKind
    name: str
    doc: tuple[str, ...]
    deprecated: bool
    entries: tuple[Entry, ...]


@dataclass(frozen=True)
class BindingSet:
    """Everything generated for one service."""

    service: ServiceDescriptor
    package: str
    names: NamingSet
    expose_method: str
    declarations: tuple[Declaration, ...]

    def declaration(self, kind: DeclKind) -> Declaration:
        return next(d for d in self.declarations if d.kind == kind)


@dataclass(frozen=True)
class OutputUnit:
    """Everything generated for one descriptor unit."""

    unit: DescriptorUnit
    bindings: tuple[BindingSet, ...]
    message_imports: tuple[tuple[str, tuple[str, ...]], ...]
    runtime_names: tuple[str, ...]
    uses_asyncio: bool


_RUNTIME_ALWAYS = {"Code", "ConstructionError", "Doer", "Handler", "Kind", "errorf", "lookup"}

_RUNTIME_BY_SHAPE = {
    StreamShape.UNARY: {"Request", "Response", "new_client_func", "new_unary_handler"},
    StreamShape.CLIENT_STREAM: {
        "CallClientStream",
        "HandlerClientStream",
        "Stream",
        "StreamType",
        "new_client_stream",
        "new_streaming_handler",
        "translate_context_error",
    },
    StreamShape.SERVER_STREAM: {
        "CallServerStream",
        "HandlerServerStream",
        "Request",
        "Stream",
        "StreamType",
        "new_client_stream",
        "new_streaming_handler",
        "receive_request",
        "translate_context_error",
    },
    StreamShape.BIDI: {
        "CallBidiStream",
        "HandlerBidiStream",
        "Stream",
        "StreamType",
        "new_client_stream",
        "new_streaming_handler",
        "translate_context_error",
    },
}

ALL_RUNTIME_NAMES = frozenset(_RUNTIME_ALWAYS.union(*_RUNTIME_BY_SHAPE.values()))


def _doc(*paragraphs: str) -> list[str]:
    """Wrap paragraphs to DOC_WIDTH, separating them with blank lines."""
    lines: list[str] = []
    for paragraph in paragraphs:
        if not paragraph:
            continue
        if lines:
            lines.append("")
        lines.extend(textwrap.wrap(paragraph, DOC_WIDTH))
    return lines


def _comment(text: str | None) -> list[str]:
    if not text:
        return []
    return [line.rstrip() for line in text.strip().splitlines()]


def _entry(
    service: ServiceDescriptor, method: MethodDescriptor, tier: Tier, role: Role, doc: list[str]
) -> Entry:
    shape = shape_of(method)
    deprecated = method_marker(method)
    return Entry(
        method=method,
        shape=shape,
        attr=attr_name(method.name),
        qualified_name=f"{service.full_name}.{method.name}",
        stream_type=stream_type(shape),
        signature=synthesize(method, tier, role),
        full=synthesize(method, Tier.FULL, role),
        doc=tuple(docstring_lines(doc, deprecated)),
        deprecated=deprecated,
    )


class _Builder:
    """Accumulates the declarations of one service in emission order."""

    def __init__(self, service: ServiceDescriptor) -> None:
        self.service = service
        self.names = resolve(service.name)
        self.deprecated = service_marker(service)
        self.declarations: list[Declaration] = []

    def add(
        self,
        kind: DeclKind,
        name: str,
        doc: list[str],
        tier: Tier,
        role: Role,
        method_doc: str = "",
        leading_comments: bool = False,
    ) -> None:
        entries = []
        for method in self.service.methods:
            lines = _comment(method.comment) if leading_comments else []
            if method_doc:
                qualified = f"{self.service.full_name}.{method.name}"
                lines = _doc(method_doc.format(method=method.name, qualified=qualified))
            entries.append(_entry(self.service, method, tier, role, lines))
        self.declarations.append(
            Declaration(
                kind=kind,
                name=name,
                doc=tuple(docstring_lines(doc, self.deprecated)),
                deprecated=self.deprecated,
                entries=tuple(entries),
            )
        )


def build_bindings(service: ServiceDescriptor, package: str) -> BindingSet:
    """Build the declarations generated for one service."""
    b = _Builder(service)
    n = b.names
    fqn = service.full_name
    comment = " ".join(_comment(service.comment))
    exposer = expose_method(service)

    b.add(
        DeclKind.SIMPLE_CLIENT,
        n.simple_client,
        _doc(f"{n.simple_client} is a client for the {fqn} service.", comment),
        Tier.SIMPLE,
        Role.CLIENT,
        leading_comments=True,
    )
    b.add(
        DeclKind.FULL_CLIENT,
        n.full_client,
        _doc(
            f"{n.full_client} is a client for the {fqn} service. It's more complex than "
            f"{n.simple_client}, but it gives callers more fine-grained control (e.g., "
            "sending and receiving headers).",
            comment,
        ),
        Tier.FULL,
        Role.CLIENT,
        leading_comments=True,
    )
    b.add(
        DeclKind.CLIENT_IMPL,
        n.simple_client_impl,
        _doc(
            f"{n.simple_client_impl} is a client for the {fqn} service.",
            f"{exposer}() returns the underlying {n.full_client}. Use it if you need "
            "finer control (e.g., sending and receiving headers).",
        ),
        Tier.SIMPLE,
        Role.CLIENT,
        method_doc="{method} calls {qualified}.",
    )
    b.add(
        DeclKind.CLIENT_CONSTRUCTOR,
        n.client_constructor,
        _doc(
            f"{n.client_constructor} constructs a client for the {fqn} service.",
            "The URL supplied here should be the base URL for the server (e.g., "
            "https://api.acme.com or https://acme.com/rpc).",
        ),
        Tier.FULL,
        Role.CLIENT,
    )
    b.add(
        DeclKind.FULL_SERVER,
        n.full_server,
        _doc(f"{n.full_server} is a server for the {fqn} service.", comment),
        Tier.FULL,
        Role.SERVER,
        leading_comments=True,
    )
    b.add(
        DeclKind.SIMPLE_SERVER,
        n.simple_server,
        _doc(
            f"{n.simple_server} is a server for the {fqn} service. It's a simpler "
            f"interface than {n.full_server} but doesn't provide header access.",
            comment,
        ),
        Tier.SIMPLE,
        Role.SERVER,
        leading_comments=True,
    )
    b.add(
        DeclKind.FULL_HANDLER_CONSTRUCTOR,
        n.full_handler_constructor,
        _doc(
            f"{n.full_handler_constructor} wraps each method on the service "
            "implementation in a Handler. The returned list can be served by any "
            "transport, e.g. LoopbackDoer. Every method must be present, otherwise "
            "it raises ConstructionError naming the missing ones.",
        ),
        Tier.FULL,
        Role.SERVER,
    )
    b.add(
        DeclKind.ADAPTIVE_SERVER,
        n.adaptive_server_impl,
        _doc(
            f"{n.adaptive_server_impl} is the {n.full_server} view of an "
            f"implementation bound by {n.adaptive_handler_constructor}.",
        ),
        Tier.FULL,
        Role.SERVER,
    )
    b.add(
        DeclKind.ADAPTIVE_HANDLER_CONSTRUCTOR,
        n.adaptive_handler_constructor,
        _doc(
            f"{n.adaptive_handler_constructor} wraps each method on the service "
            "implementation in a Handler. The returned list can be served by any "
            "transport, e.g. LoopbackDoer.",
            f"Unlike {n.full_handler_constructor}, it allows the service to mix and "
            f"match the signatures of {n.full_server} and {n.simple_server}. For each "
            f"method, it first tries to find a {n.simple_server}-style implementation. "
            "If a simple implementation isn't available, it falls back to the more "
            f"complex {n.full_server}-style implementation. If neither is available, "
            "it raises ConstructionError.",
            f"Taken together, this approach lets implementations subclass "
            f"{n.unimplemented_server} and implement each method using whichever "
            "signature is most convenient. Client-streaming and bidi implementations "
            "must annotate their stream parameter; an unannotated one never matches.",
        ),
        Tier.SIMPLE,
        Role.SERVER,
    )
    b.add(
        DeclKind.UNIMPLEMENTED_SERVER,
        n.unimplemented_server,
        _doc(f"{n.unimplemented_server} raises UNIMPLEMENTED from all methods."),
        Tier.FULL,
        Role.SERVER,
    )

    logger.debug("built %d declarations for %s", len(b.declarations), fqn)
    return BindingSet(
        service=service,
        package=package,
        names=n,
        expose_method=exposer,
        declarations=tuple(b.declarations),
    )


def _message_imports(services: list[ServiceDescriptor]) -> tuple[tuple[str, tuple[str, ...]], ...]:
    modules: dict[str, set[str]] = {}
    for service in services:
        for method in service.methods:
            for ref in (method.input_type, method.output_type):
                if ref.module:
                    modules.setdefault(ref.module, set()).add(ref.name)
    return tuple((module, tuple(sorted(names))) for module, names in sorted(modules.items()))


def build_unit(unit: DescriptorUnit) -> OutputUnit | None:
    """Build the output model for a unit; None when it declares no services."""
    if not unit.services:
        logger.debug("%s declares no services, skipping", unit.source)
        return None

    shapes = {shape_of(m) for s in unit.services for m in s.methods}
    runtime = set(_RUNTIME_ALWAYS)
    for shape in shapes:
        runtime |= _RUNTIME_BY_SHAPE[shape]

    return OutputUnit(
        unit=unit,
        bindings=tuple(build_bindings(s, unit.package) for s in unit.services),
        message_imports=_message_imports(unit.services),
        runtime_names=tuple(sorted(runtime)),
        uses_asyncio=any(shape is not StreamShape.UNARY for shape in shapes),
    )
