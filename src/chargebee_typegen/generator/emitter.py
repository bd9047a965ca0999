"""TypeScript emitter — renders the type model document as a declaration file."""

import json
import textwrap

from chargebee_typegen.generator.assembler import TypeModelDocument
from chargebee_typegen.generator.fixed import (
    ErrorNamespace,
    FunctionDecl,
    InterfaceDecl,
    Member,
    Parameter,
)
from chargebee_typegen.parser.base import (
    ArrayOfStruct,
    EntityType,
    EnumeratedString,
    FilterSet,
    MethodDescriptor,
    Module,
    Primitive,
    PropertyDescriptor,
    PropertyShape,
    Reference,
    Struct,
)
from chargebee_typegen.parser.naming import is_identifier, to_pascal_case

INDENT = "  "
DOC_WIDTH = 76
HEADER = "/* Generated by chargebee-typegen from the Chargebee API documentation. Do not edit. */"

RESERVED_WORDS = frozenset({
    "break", "case", "catch", "class", "const", "continue", "debugger",
    "default", "delete", "do", "else", "enum", "export", "extends", "false",
    "finally", "for", "function", "if", "import", "in", "instanceof", "new",
    "null", "return", "super", "switch", "this", "throw", "true", "try",
    "typeof", "var", "void", "while", "with", "implements", "interface",
    "let", "package", "private", "protected", "public", "static", "yield",
})


def _indent(lines: list[str]) -> list[str]:
    return [f"{INDENT}{line}" if line else line for line in lines]


def _join_blocks(blocks: list[list[str]]) -> list[str]:
    """Concatenate blocks with one blank line between them."""
    lines: list[str] = []
    for block in blocks:
        if not block:
            continue
        if lines:
            lines.append("")
        lines.extend(block)
    return lines


def _key(name: str) -> str:
    return name if is_identifier(name) else json.dumps(name)


def _doc_lines(doc: str, default: str | None = None) -> list[str]:
    text = textwrap.wrap(" ".join(doc.split()), DOC_WIDTH) if doc else []
    if default is not None:
        text.append(f"@default {default}")
    if not text:
        return []
    if len(text) == 1:
        return [f"/** {text[0]} */"]
    return ["/**"] + [f" * {line}" for line in text] + [" */"]


def _parameter_list(parameters: list[Parameter]) -> str:
    return ", ".join(f"{p.name}{'?' if p.optional else ''}: {p.type}" for p in parameters)


class TypeScriptEmitter:
    """Renders a TypeModelDocument as ``declare module "<module>" { ... }``."""

    def __init__(self, document: TypeModelDocument, module_name: str = "chargebee", root_namespace: str = "Chargebee"):
        self.document = document
        self.module_name = module_name
        self.root_namespace = root_namespace

    def render(self) -> str:
        fixed = self.document.fixed
        blocks = [
            self._error_namespace(fixed.errors),
            self._namespace(
                fixed.contracts.namespace,
                _join_blocks([self._interface_decl(i) for i in fixed.contracts.interfaces]),
            ),
            [line for f in fixed.root_functions for line in self._function_decl(f)],
        ]
        blocks += [self._module(module) for module in self.document.modules]
        if self.document.modules:
            blocks.append(self._exports([(m.prefixed_name, m.namespace_name) for m in self.document.modules]))

        root = self._namespace(self.root_namespace, _join_blocks(blocks))
        declaration = _join_blocks([root, [f"export = {self.root_namespace};"]])
        lines = [HEADER, f'declare module "{self.module_name}" {{'] + _indent(declaration) + ["}"]
        return "\n".join(lines) + "\n"

    # -- fixed content ---------------------------------------------------------

    def _namespace(self, name: str, body: list[str]) -> list[str]:
        if not body:
            return [f"namespace {name} {{}}"]
        return [f"namespace {name} {{"] + _indent(body) + ["}"]

    def _exports(self, aliases: list[tuple[str, str]]) -> list[str]:
        return ["export {"] + _indent([f"{local} as {exported}," for local, exported in aliases]) + ["};"]

    def _member(self, member: Member) -> list[str]:
        optional = "?" if member.optional else ""
        if member.parameters is not None:
            signature = f"{member.name}{optional}({_parameter_list(member.parameters)}): {member.type};"
        else:
            signature = f"{_key(member.name)}{optional}: {member.type};"
        return _doc_lines(member.doc, member.default) + [signature]

    def _interface_decl(self, interface: InterfaceDecl, extends: str | None = None) -> list[str]:
        head = f"interface {interface.name}"
        if interface.type_parameters:
            head += f"<{', '.join(interface.type_parameters)}>"
        if extends:
            head += f" extends {extends}"
        members = [line for m in interface.members for line in self._member(m)]
        return _doc_lines(interface.doc) + self._body(head, members)

    def _function_decl(self, function: FunctionDecl) -> list[str]:
        return _doc_lines(function.doc) + [
            f"function {function.name}({_parameter_list(function.parameters)}): {function.returns};"
        ]

    def _error_namespace(self, errors: ErrorNamespace) -> list[str]:
        blocks = [self._interface_decl(errors.base)]
        for error in errors.interfaces:
            # An error without a type discriminates on the absent field.
            members = ["type?: undefined;" if error.type is None else f"type: {json.dumps(error.type)};"]
            if error.codes:
                members.append(f"api_error_code: {' | '.join(json.dumps(c) for c in error.codes)};")
            head = f"interface {error.name} extends {errors.base.name}"
            blocks.append(_doc_lines(error.doc) + self._body(head, members))
        union = " | ".join(e.name for e in errors.interfaces)
        blocks.append([f"type {errors.union} = {union};"])
        return self._namespace(errors.namespace, _join_blocks(blocks))

    # -- modules ---------------------------------------------------------------

    def _body(self, head: str, members: list[str]) -> list[str]:
        if not members:
            return [f"{head} {{}}"]
        return [f"{head} {{"] + _indent(members) + ["}"]

    def _module(self, module: Module) -> list[str]:
        blocks = [self._entity(module.model, module)]
        blocks += [self._entity(t, module) for t in module.auxiliary_types]
        blocks += [self._method(m, module) for m in module.methods]
        aliases = [
            (f"_{m.name}", m.name) for m in module.methods if m.name in RESERVED_WORDS
        ]
        if aliases:
            blocks.append(self._exports(aliases))
        return self._namespace(module.prefixed_name, _join_blocks(blocks))

    def _entity(self, entity: EntityType, module: Module) -> list[str]:
        return self._body(f"interface {entity.name}", self._properties(entity.properties, module))

    def _properties(self, properties: list[PropertyDescriptor], module: Module) -> list[str]:
        return [line for prop in properties for line in self._property(prop, module)]

    def _property(self, prop: PropertyDescriptor, module: Module) -> list[str]:
        optional = "?" if prop.optional else ""
        shape = prop.shape
        if isinstance(shape, FilterSet):
            value = self._inline_type(shape.value, module)
            return [f"{_key(name)}{optional}: {value};" for name in prop.field_names()]
        if isinstance(shape, (Struct, ArrayOfStruct)):
            suffix = "[]" if isinstance(shape, ArrayOfStruct) else ""
            members = self._properties(shape.properties, module)
            return [f"{_key(prop.name)}{optional}: {{"] + _indent(members) + [f"}}{suffix};"]
        return [f"{_key(prop.name)}{optional}: {self._inline_type(shape, module)};"]

    def _inline_type(self, shape: PropertyShape, module: Module) -> str:
        if isinstance(shape, Primitive):
            return f"{shape.kind}[]" if shape.is_array else shape.kind
        if isinstance(shape, EnumeratedString):
            return " | ".join(json.dumps(value) for value in shape.values)
        if isinstance(shape, Reference):
            name = self.document.resolve(shape.type_name, module) or "unknown"
            return f"{name}[]" if shape.is_array else name
        raise TypeError(f"{type(shape).__name__} cannot be written inline")

    def _method(self, method: MethodDescriptor, module: Module) -> list[str]:
        type_prefix = to_pascal_case(method.name)
        response = f"{type_prefix}Response"
        blocks: list[list[str]] = []
        arguments: list[str] = []

        if method.has_string_parameter:
            arguments.append("id: string")
        if method.has_object_parameter:
            parameters = f"{type_prefix}Parameters"
            properties = method.parameter_properties or []
            blocks.append(self._body(f"interface {parameters}", self._properties(properties, module)))
            optional = "?" if all(p.optional for p in properties) else ""
            arguments.append(f"params{optional}: {parameters}")

        if method.is_list_result:
            members = [
                f"list: {{ {_key(module.namespace_name)}: {module.model.name} }}[];",
                "next_offset?: string;",
            ]
        else:
            members = []
        blocks.append(self._body(f"interface {response}", members))

        name = f"_{method.name}" if method.name in RESERVED_WORDS else method.name
        wrapper = self.document.fixed.request_wrapper
        blocks.append([f"function {name}({', '.join(arguments)}): {wrapper}<{response}>;"])
        return _join_blocks(blocks)
