"""Identifier derivation for generated bindings.

Every identifier emitted for a service is a fixed prefix/suffix around the
service's base name, so names are computed once per service and shared by
all emission sites.
"""

from dataclasses import astuple, dataclass

from .types import ServiceDescriptor
from .util import to_snake_case

CLIENT_EXPOSE_METHOD = "Full"


@dataclass(frozen=True)
class NamingSet:
    """All identifiers generated for one service."""

    base: str

    simple_client: str
    full_client: str
    client_constructor: str
    simple_client_impl: str
    full_client_impl: str

    full_server: str
    simple_server: str
    unimplemented_server: str
    full_handler_constructor: str
    adaptive_server_impl: str
    adaptive_handler_constructor: str

    def identifiers(self) -> tuple[str, ...]:
        """Every module-level identifier this service contributes."""
        return astuple(self)[1:]


def resolve(base: str) -> NamingSet:
    """Derive the naming set for a service base name."""
    return NamingSet(
        base=base,
        simple_client=f"Simple{base}Client",
        full_client=f"Full{base}Client",
        client_constructor=f"New{base}Client",
        simple_client_impl=f"{base}Client",
        full_client_impl=f"_Full{base}Client",
        full_server=f"Full{base}Server",
        simple_server=f"Simple{base}Server",
        unimplemented_server=f"Unimplemented{base}Server",
        full_handler_constructor=f"NewFull{base}Handler",
        adaptive_server_impl=f"_Pluggable{base}Server",
        adaptive_handler_constructor=f"New{base}Handler",
    )


def attr_name(method_name: str) -> str:
    """Stem used for private attributes and locals bound to a method."""
    return to_snake_case(method_name)


def expose_method(service: ServiceDescriptor) -> str:
    """Name of the simple client's accessor for its full client.

    Gets a trailing underscore when the service defines a method with the
    same name.
    """
    if any(m.name == CLIENT_EXPOSE_METHOD for m in service.methods):
        return CLIENT_EXPOSE_METHOD + "_"
    return CLIENT_EXPOSE_METHOD
