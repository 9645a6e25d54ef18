"""Python code generator for RPC bindings."""

import logging

from jinja2 import Environment, PackageLoader

from bindery import __version__

from .deprecation import unit_marker
from .model import Entry, OutputUnit, build_unit
from .signatures import Envelope, Signature, Slot
from .types import DescriptorUnit

logger = logging.getLogger(__name__)

DEFAULT_RUNTIME_IMPORT = "bindery.rpc"

MAX_LINE = 100

env = Environment(
    loader=PackageLoader("bindery.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("python.py.j2")


def _escape(line: str) -> str:
    """Make a line safe to place inside a triple-quoted docstring."""
    line = line.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if line.endswith('"'):
        line = line[:-1] + '\\"'
    return line


def _docstring(lines: tuple[str, ...] | list[str], indent: str) -> str:
    """Render docstring lines at the given indentation."""
    lines = [_escape(line) for line in lines]
    if not lines:
        return ""
    if len(lines) == 1:
        return f'{indent}"""{lines[0]}"""'
    body = "\n".join(f"{indent}{line}" if line else "" for line in lines[1:])
    return f'{indent}"""{lines[0]}\n{body}\n{indent}"""'


def _annotation(slot: Slot) -> str:
    """Map a signature slot to a Python type annotation."""
    names = [p.type.name for p in slot.payloads]
    if slot.envelope is Envelope.NONE:
        return "None"
    if slot.envelope is Envelope.RAW:
        return names[0]
    if slot.envelope is Envelope.REQUEST:
        return f"Request[{names[0]}]"
    if slot.envelope is Envelope.RESPONSE:
        return f"Response[{names[0]}]"
    return f"{slot.adapter}[{', '.join(names)}]"


def _params(sig: Signature) -> str:
    return ", ".join(f"{p.name}: {_annotation(p)}" for p in sig.params)


def _signature(sig: Signature, name: str | None = None, method: bool = True) -> str:
    """Render a def line (without the trailing colon)."""
    params = _params(sig)
    if method:
        params = f"self, {params}" if params else "self"
    prefix = "async def" if sig.is_async else "def"
    return f"{prefix} {name or sig.method}({params}) -> {_annotation(sig.returns)}"


def _call_args(sig: Signature) -> str:
    return ", ".join(p.name for p in sig.params)


def _adapter_args(sig: Signature) -> str:
    """Arguments passed from a full-tier call to a simple-tier implementation."""
    return ", ".join(
        f"{p.name}.msg" if p.envelope is Envelope.REQUEST else p.name for p in sig.params
    )


def _kinds(sig: Signature) -> str:
    """Render the probe shape of a server signature as lookup() arguments."""
    params, returns = sig.probe_shape()
    rendered = ", ".join(f"Kind.{k.name}" for k in params)
    if len(params) == 1:
        rendered += ","
    return f"({rendered}), Kind.{returns.name}"


def _returns_value(sig: Signature) -> bool:
    return sig.returns.envelope is not Envelope.NONE


def _slots(entries: tuple[Entry, ...]) -> str:
    names = [f'"_{e.attr}"' for e in entries]
    if len(names) == 1:
        return f"({names[0]},)"
    return f"({', '.join(names)})"


def _init_params(entries: tuple[Entry, ...], suffix: str, stream_annotation: str = "_Impl") -> str:
    """Keyword-only __init__ parameters, one per method."""
    if not entries:
        return "self"
    params = []
    for e in entries:
        annotation = "_Impl" if e.stream_type is None else stream_annotation
        params.append(f"{e.attr}{suffix}: {annotation}")
    return "self, *, " + ", ".join(params)


def _import_line(module: str, names: tuple[str, ...]) -> str:
    line = f"from {module} import {', '.join(names)}"
    if len(line) <= MAX_LINE:
        return line
    body = "".join(f"    {name},\n" for name in names)
    return f"from {module} import (\n{body})"


def _module_docstring(unit: DescriptorUnit, deprecated: bool) -> str:
    source = f"{unit.source} is a deprecated file." if deprecated else unit.source
    lines = [
        "Code generated by bindery. DO NOT EDIT.",
        "",
        "Versions:",
        f"    bindery {__version__}",
        "",
        f"Source: {source}",
    ]
    return _docstring(lines, "")


def render_output(out: OutputUnit, runtime_import: str = DEFAULT_RUNTIME_IMPORT) -> str:
    """Render a built output unit to Python source code."""
    logger.debug("rendering %s (%d services)", out.unit.source, len(out.bindings))
    imports = [(runtime_import, out.runtime_names), *out.message_imports]
    imports.sort(key=lambda item: item[0])

    return template.render(
        out=out,
        imports=imports,
        module_docstring=_module_docstring(out.unit, unit_marker(out.unit)),
        docstring=_docstring,
        annotation=_annotation,
        params=_params,
        signature=_signature,
        call_args=_call_args,
        adapter_args=_adapter_args,
        kinds=_kinds,
        returns_value=_returns_value,
        slots=_slots,
        init_params=_init_params,
        import_line=_import_line,
    )


def render(unit: DescriptorUnit, runtime_import: str = DEFAULT_RUNTIME_IMPORT) -> str | None:
    """Render a descriptor unit to Python source code.

    Returns None when the unit declares no services.
    """
    out = build_unit(unit)
    if out is None:
        return None
    return render_output(out, runtime_import=runtime_import)


def output_filename(unit: DescriptorUnit) -> str:
    """File name of the module generated for a unit: ping/v1/ping.proto -> ping_bindery.py."""
    stem = unit.source.replace("\\", "/").rsplit("/", 1)[-1].split(".", 1)[0]
    return f"{stem}_bindery.py"
