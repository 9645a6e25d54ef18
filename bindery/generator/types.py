"""Descriptor model consumed by the binding generator.

Descriptors are produced by an external front end and arrive as JSON with
camelCase keys. They are frozen: nothing in a generation pass mutates them.
"""

from dataclasses import dataclass, field

from dataclasses_json import DataClassJsonMixin, config


@dataclass(frozen=True)
class TypeRef(DataClassJsonMixin):
    """Opaque handle for a message type.

    module=None means the type is already in scope where the bindings are
    generated; otherwise the generated module imports `name` from `module`.
    """

    name: str
    module: str | None = None


@dataclass(frozen=True)
class MethodDescriptor(DataClassJsonMixin):
    """Represents one RPC method."""

    name: str
    input_type: TypeRef = field(metadata=config(field_name="inputType"))
    output_type: TypeRef = field(metadata=config(field_name="outputType"))
    client_streaming: bool = field(default=False, metadata=config(field_name="clientStreaming"))
    server_streaming: bool = field(default=False, metadata=config(field_name="serverStreaming"))
    deprecated: bool = False
    comment: str | None = None


@dataclass(frozen=True)
class ServiceDescriptor(DataClassJsonMixin):
    """Represents a service; method order is declaration order."""

    name: str
    full_name: str = field(metadata=config(field_name="fullName"))
    methods: list[MethodDescriptor] = field(default_factory=list)
    deprecated: bool = False
    comment: str | None = None


@dataclass(frozen=True)
class DescriptorUnit(DataClassJsonMixin):
    """Represents one source definition file and the services it declares."""

    source: str
    package: str = ""
    services: list[ServiceDescriptor] = field(default_factory=list)
    deprecated: bool = False
