"""Identifier helpers."""

import keyword
import re

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_snake_case(name: str) -> str:
    """Convert CamelCase to snake_case: CountUp -> count_up, HTTPGet -> http_get."""
    return _WORD_BOUNDARY.sub("_", name).lower()


def is_identifier(name: str) -> bool:
    """Check if name can be used as a Python identifier."""
    return name.isidentifier() and not keyword.iskeyword(name)
