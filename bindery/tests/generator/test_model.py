"""Tests for the declaration model and deprecation markers."""

from bindery.generator.deprecation import DEPRECATION_NOTE, docstring_lines
from bindery.generator.model import DeclKind, build_bindings, build_unit
from bindery.generator.types import DescriptorUnit, MethodDescriptor, ServiceDescriptor, TypeRef


def _method(name, **kwargs):
    return MethodDescriptor(
        name=name,
        input_type=TypeRef(f"{name}Request"),
        output_type=TypeRef(f"{name}Response"),
        **kwargs,
    )


def _service(*methods, deprecated=False):
    return ServiceDescriptor(
        name="Ping", full_name="ping.v1.Ping", methods=list(methods), deprecated=deprecated
    )


def describe_build_bindings():
    def emits_declarations_in_order(expect):
        bindings = build_bindings(_service(_method("Ping")), "ping.v1")
        expect([d.kind for d in bindings.declarations]) == list(DeclKind)

    def uses_the_naming_set(expect):
        bindings = build_bindings(_service(_method("Ping")), "ping.v1")
        expect(bindings.declaration(DeclKind.ADAPTIVE_HANDLER_CONSTRUCTOR).name) == "NewPingHandler"
        expect(bindings.declaration(DeclKind.CLIENT_IMPL).name) == "PingClient"

    def keeps_method_order(expect):
        service = _service(_method("B"), _method("A"), _method("C"))
        bindings = build_bindings(service, "ping.v1")
        for decl in bindings.declarations:
            expect([e.method.name for e in decl.entries]) == ["B", "A", "C"]

    def qualifies_method_names(expect):
        bindings = build_bindings(_service(_method("Ping")), "ping.v1")
        entry = bindings.declaration(DeclKind.UNIMPLEMENTED_SERVER).entries[0]
        expect(entry.qualified_name) == "ping.v1.Ping.Ping"


def describe_deprecation():
    def marks_every_mention_of_a_deprecated_method(expect):
        service = _service(_method("Ping"), _method("Old", deprecated=True))
        bindings = build_bindings(service, "ping.v1")
        for kind in (
            DeclKind.SIMPLE_CLIENT,
            DeclKind.FULL_CLIENT,
            DeclKind.FULL_SERVER,
            DeclKind.SIMPLE_SERVER,
            DeclKind.UNIMPLEMENTED_SERVER,
        ):
            ping, old = bindings.declaration(kind).entries
            expect(old.deprecated) == True
            expect(DEPRECATION_NOTE in old.doc) == True
            expect(DEPRECATION_NOTE in ping.doc) == False

    def marks_declarations_of_a_deprecated_service(expect):
        bindings = build_bindings(_service(_method("Ping"), deprecated=True), "ping.v1")
        for decl in bindings.declarations:
            expect(decl.deprecated) == True
            expect(decl.doc[-1]) == DEPRECATION_NOTE
            expect(decl.entries[0].deprecated) == False

    def separates_the_note_from_the_summary(expect):
        expect(docstring_lines(["Summary."], True)) == ["Summary.", "", DEPRECATION_NOTE]
        expect(docstring_lines([], True)) == [DEPRECATION_NOTE]
        expect(docstring_lines(["Summary."], False)) == ["Summary."]


def describe_build_unit():
    def skips_units_without_services(expect):
        expect(build_unit(DescriptorUnit(source="empty.proto"))) == None

    def imports_only_what_the_shapes_need(expect):
        unit = DescriptorUnit(source="ping.proto", services=[_service(_method("Ping"))])
        out = build_unit(unit)
        expect("new_client_func" in out.runtime_names) == True
        expect("new_client_stream" in out.runtime_names) == False
        expect(out.uses_asyncio) == False
        expect(list(out.runtime_names)) == sorted(out.runtime_names)

    def groups_message_imports_by_module(expect):
        method = MethodDescriptor(
            name="Ping",
            input_type=TypeRef("PingRequest", "acme.messages"),
            output_type=TypeRef("PingResponse", "acme.messages"),
        )
        unit = DescriptorUnit(source="ping.proto", services=[_service(method)])
        out = build_unit(unit)
        expect(out.message_imports) == (("acme.messages", ("PingRequest", "PingResponse")),)
