"""Model Builder: one resource documentation page -> Module.

The page is walked in four steps. The first two (model class, primary
attribute list) are mandatory and fail the run when their markers are
missing. Auxiliary types and methods are elaborations controlled by
``ElaborationLevel``; they skip what they cannot find and record a
diagnostic instead.
"""

import logging
import re
from enum import Enum

from bs4.element import Tag

from chargebee_typegen.diagnostics import Diagnostics
from chargebee_typegen.errors import StructuralExpectationFailed
from chargebee_typegen.parser.attributes import extract_properties, is_fragment
from chargebee_typegen.parser.base import EntityType, MethodDescriptor, Module
from chargebee_typegen.parser.locator import (
    child_elements,
    concatenated_text,
    element_matcher,
    find_all_descendants,
    find_comment,
    find_descendant,
    has_class,
    is_text,
    next_element_sibling,
    text_of,
)
from chargebee_typegen.parser.naming import to_pascal_case

logger = logging.getLogger(__name__)

MODEL_CLASS_HEADING = "Model Class"
SAMPLE_RESULT_HEADING = "Sample Result"
ATTRIBUTES_MARKER = "attributes"
ATTRIBUTE_LIST_GROUP = "cb-list-group"
AUXILIARY_SUFFIX = "_attributes"
HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

NAMESPACE_PATTERN = re.compile(r"[a-z_]+(?:\.[a-z_]+)*")
LIST_RESULT_PREFIX = '{"list":[{'

_h4 = element_matcher("h4")
_js_code = element_matcher("pre", ("prettyprint", "lang-js"))
_pre = element_matcher("pre")


class ElaborationLevel(str, Enum):
    """How much of a page is turned into types."""

    MODEL = "model"  # model class + primary attributes
    TYPES = "types"  # + auxiliary types
    METHODS = "methods"  # + method signatures, parameters, responses

    def includes(self, other: "ElaborationLevel") -> bool:
        order = list(ElaborationLevel)
        return order.index(self) >= order.index(other)


def build_module(
    tree: Tag,
    diagnostics: Diagnostics,
    level: ElaborationLevel = ElaborationLevel.METHODS,
    provider: str = "chargebee",
) -> Module:
    """Build the Module for one resource page tree."""
    namespace_name = find_namespace_name(tree)
    model = build_model(tree, namespace_name, diagnostics)
    logger.debug("Namespace %s: %d attributes", namespace_name, len(model.properties))

    auxiliary_types: list[EntityType] = []
    if level.includes(ElaborationLevel.TYPES):
        auxiliary_types = build_auxiliary_types(tree, namespace_name, model.name, diagnostics)

    methods: list[MethodDescriptor] = []
    if level.includes(ElaborationLevel.METHODS):
        methods = build_methods(tree, namespace_name, provider, diagnostics)

    return Module(
        namespace_name=namespace_name,
        model=model,
        auxiliary_types=auxiliary_types,
        methods=methods,
    )


def _heading_reads(heading: Tag, value: str) -> bool:
    return any(is_text(child) and child.strip() == value for child in heading.contents)


def find_namespace_name(tree: Tag) -> str:
    """Namespace named by the code sample following the "Model Class" heading."""
    for heading in find_all_descendants(tree, _h4):
        if not _heading_reads(heading, MODEL_CLASS_HEADING):
            continue
        block = next_element_sibling(heading)
        if block is None:
            continue
        for code in find_all_descendants(block, _js_code, include_self=True):
            value = (text_of(code) or "").strip()
            if NAMESPACE_PATTERN.fullmatch(value):
                return value.split(".")[-1]
    raise StructuralExpectationFailed("model class declaration")


def build_model(tree: Tag, namespace_name: str, diagnostics: Diagnostics) -> EntityType:
    marker = find_comment(tree, ATTRIBUTES_MARKER)
    if marker is None:
        raise StructuralExpectationFailed("attributes marker", namespace_name)
    group = next_element_sibling(marker)
    if group is None or not has_class(group, ATTRIBUTE_LIST_GROUP):
        raise StructuralExpectationFailed("attribute list group", namespace_name)

    fragments = child_elements(group, is_fragment)
    if not fragments:
        raise StructuralExpectationFailed("model attributes", namespace_name)
    return EntityType(
        name=to_pascal_case(namespace_name),
        properties=extract_properties(fragments, diagnostics, namespace_name),
    )


def build_auxiliary_types(
    tree: Tag,
    namespace_name: str,
    model_name: str,
    diagnostics: Diagnostics,
) -> list[EntityType]:
    """Named types introduced by ``<prefix>_attributes`` headings."""
    types: list[EntityType] = []
    seen = {model_name}
    for heading in find_all_descendants(tree, element_matcher(HEADING_TAGS)):
        anchor = heading.get("id")
        if not isinstance(anchor, str) or not anchor.endswith(AUXILIARY_SUFFIX):
            continue
        prefix = anchor[: -len(AUXILIARY_SUFFIX)]
        if not prefix or prefix == namespace_name:
            continue

        fragments = []
        sibling = next_element_sibling(heading)
        while sibling is not None and is_fragment(sibling):
            fragments.append(sibling)
            sibling = next_element_sibling(sibling)

        context = f"{namespace_name}.{prefix}"
        if not fragments:
            diagnostics.warn("empty-type", "heading without attributes", context)
            continue
        name = to_pascal_case(prefix)
        if name in seen:
            diagnostics.warn("duplicate-type", f"type {name} already defined", context)
            continue
        seen.add(name)
        types.append(EntityType(name=name, properties=extract_properties(fragments, diagnostics, context)))
    return types


def build_methods(tree: Tag, namespace_name: str, provider: str, diagnostics: Diagnostics) -> list[MethodDescriptor]:
    """Sniff methods from each sample result and the call sample after it."""
    call_pattern = re.compile(rf"{re.escape(provider)}\.{re.escape(namespace_name)}\.([a-z_]+)\(")
    methods: list[MethodDescriptor] = []
    seen: set[str] = set()

    for heading in find_all_descendants(tree, _h4):
        if not _heading_reads(heading, SAMPLE_RESULT_HEADING):
            continue
        result_block = next_element_sibling(heading)
        if result_block is None:
            diagnostics.warn("method-skipped", "sample result without code block", namespace_name)
            continue
        is_list_result = _is_list_result(result_block)

        signature_block = result_block
        for _ in range(2):
            if signature_block is not None:
                signature_block = next_element_sibling(signature_block)
        if signature_block is None:
            diagnostics.warn("method-skipped", "sample result without call sample", namespace_name)
            continue

        signature = _code_text(signature_block)
        match = call_pattern.search(signature)
        if match is None:
            diagnostics.warn("method-skipped", "call sample without method call", namespace_name)
            continue
        name = match.group(1)
        context = f"{namespace_name}.{name}"
        if name in seen:
            diagnostics.warn("duplicate-method", f"method {name} documented twice", context)
            continue
        seen.add(name)

        arguments = _call_arguments(signature, match.end())
        has_string_parameter = re.match(r'\s*["\']', arguments) is not None
        has_object_parameter = "{" in arguments

        parameter_properties = None
        if has_object_parameter:
            parameter_block = next_element_sibling(signature_block)
            fragments = child_elements(parameter_block, is_fragment) if parameter_block is not None else []
            parameter_properties = extract_properties(fragments, diagnostics, context)

        methods.append(
            MethodDescriptor(
                name=name,
                has_string_parameter=has_string_parameter,
                has_object_parameter=has_object_parameter,
                parameter_properties=parameter_properties,
                is_list_result=is_list_result,
            )
        )
    return methods


def _code_text(block: Tag) -> str:
    code = find_descendant(block, _pre, include_self=True)
    return concatenated_text(code if code is not None else block)


def _is_list_result(block: Tag) -> bool:
    compact = re.sub(r"\s+", "", _code_text(block))
    return compact.startswith(LIST_RESULT_PREFIX)


def _call_arguments(signature: str, start: int) -> str:
    """Text between the opening parenthesis at ``start - 1`` and its match."""
    depth = 1
    quote = None
    for index in range(start, len(signature)):
        char = signature[index]
        if quote:
            if char == quote and signature[index - 1] != "\\":
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return signature[start:index]
    return signature[start:]
