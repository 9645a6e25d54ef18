"""Descriptor loading and validation."""

import json
import logging
from typing import Any

from .model import ALL_RUNTIME_NAMES
from .naming import attr_name, expose_method, resolve
from .types import DescriptorUnit, ServiceDescriptor
from .util import is_identifier

logger = logging.getLogger(__name__)

# Names a message type may not take: module-level names of the generated
# module and the locals its functions declare.
RESERVED_NAMES = frozenset(
    {
        *ALL_RUNTIME_NAMES,
        "Any",
        "Awaitable",
        "BaseException",
        "Callable",
        "Exception",
        "Protocol",
        "_Impl",
        "asyncio",
        "base_url",
        "client",
        "doer",
        "err",
        "exc",
        "handlers",
        "impl",
        "list",
        "missing",
        "options",
        "req",
        "res",
        "self",
        "str",
        "stream",
        "svc",
    }
)


class ValidationError(RuntimeError):
    """Raised when a descriptor unit cannot be bound."""


def _check_name(kind: str, name: Any) -> None:
    if not isinstance(name, str) or not name:
        raise ValidationError(f"{kind} has an empty name")
    if not is_identifier(name):
        raise ValidationError(f"{kind} name {name!r} is not a valid identifier")


def _method_locals(service: ServiceDescriptor) -> set[str]:
    names = set()
    for method in service.methods:
        attr = attr_name(method.name)
        names |= {f"{attr}_func", f"{attr}_impl", f"{attr}_simple", f"serve_{attr}"}
    return names


def _validate_service(service: ServiceDescriptor) -> None:
    _check_name("service", service.name)
    if not service.full_name:
        raise ValidationError(f"service {service.name} has an empty full name")

    seen: dict[str, str] = {}
    for method in service.methods:
        _check_name(f"method of {service.name}", method.name)
        attr = attr_name(method.name)
        if attr in seen:
            if seen[attr] == method.name:
                raise ValidationError(f"duplicate method {service.name}.{method.name}")
            raise ValidationError(
                f"methods {seen[attr]} and {method.name} of {service.name} "
                f"both bind to {attr!r}"
            )
        seen[attr] = method.name
        for ref in (method.input_type, method.output_type):
            _check_name(f"message type of {service.name}.{method.name}", ref.name)

    exposer = expose_method(service)
    if any(m.name == exposer for m in service.methods):
        raise ValidationError(
            f"method {service.name}.{exposer} collides with the client accessor"
        )


def validate(unit: DescriptorUnit) -> None:
    """Check that a unit can be turned into bindings.

    Raises:
        ValidationError: on empty or invalid names, duplicate services or
            methods, or generated identifiers that would collide.
    """
    if not unit.source:
        raise ValidationError("unit has an empty source path")

    services: dict[str, ServiceDescriptor] = {}
    generated: dict[str, str] = {}
    for service in unit.services:
        _validate_service(service)
        if service.name in services:
            raise ValidationError(f"duplicate service {service.name} in {unit.source}")
        services[service.name] = service
        for ident in resolve(service.name).identifiers():
            if ident in generated:
                raise ValidationError(
                    f"{ident} is generated for both {generated[ident]} and {service.name}"
                )
            generated[ident] = service.name

    modules: dict[str, str | None] = {}
    for service in unit.services:
        local_names = _method_locals(service)
        for method in service.methods:
            for ref in (method.input_type, method.output_type):
                if ref.name in RESERVED_NAMES or ref.name in local_names:
                    raise ValidationError(f"message type {ref.name} shadows a generated name")
                if ref.name in generated:
                    raise ValidationError(
                        f"message type {ref.name} collides with a name generated for "
                        f"{generated[ref.name]}"
                    )
                if ref.name in modules and modules[ref.name] != ref.module:
                    raise ValidationError(
                        f"message type {ref.name} is imported from both "
                        f"{modules[ref.name]} and {ref.module}"
                    )
                modules[ref.name] = ref.module

    logger.debug("validated %s: %d services", unit.source, len(unit.services))


def load(text: str) -> list[DescriptorUnit]:
    """Load descriptor units from JSON text: one unit object or a list of them.

    Raises:
        json.JSONDecodeError: text is not JSON.
        ValidationError: a unit is malformed or fails validation.
    """
    data = json.loads(text)
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValidationError("expected a descriptor unit or a list of units")

    units = []
    for item in data:
        if not isinstance(item, dict):
            raise ValidationError("expected a descriptor unit object")
        try:
            unit = DescriptorUnit.from_dict(item)
        except (KeyError, TypeError, ValueError, AttributeError) as err:
            raise ValidationError(f"malformed descriptor unit: {err}") from err
        validate(unit)
        units.append(unit)
    return units
