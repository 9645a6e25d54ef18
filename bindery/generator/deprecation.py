"""Deprecation markers for generated declarations.

A deprecated service marks each of its declaration groups once. A
deprecated method marks every entry that refers to it, whatever the status
of its service.
"""

from .types import DescriptorUnit, MethodDescriptor, ServiceDescriptor

DEPRECATION_NOTE = "Deprecated: do not use."


def service_marker(service: ServiceDescriptor) -> bool:
    return service.deprecated


def method_marker(method: MethodDescriptor) -> bool:
    return method.deprecated


def unit_marker(unit: DescriptorUnit) -> bool:
    return unit.deprecated


def docstring_lines(summary: list[str], deprecated: bool) -> list[str]:
    """Append the deprecation note, separated by a blank line, when marked."""
    if not deprecated:
        return list(summary)
    if not summary:
        return [DEPRECATION_NOTE]
    return [*summary, "", DEPRECATION_NOTE]
