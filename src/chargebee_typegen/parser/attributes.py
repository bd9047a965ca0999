"""Attribute Extractor: one documented property fragment -> PropertyDescriptor.

A property fragment looks like this in the vendor markup::

    <div class="cb-list-action">
      <div class="cb-list-item"><samp>status</samp></div>
      <div class="cb-list-desc">
        <dfn class="text-muted">enumerated string, optional</dfn>
        <div class="cb-enum-parent"><samp class="enum">active</samp>...</div>
      </div>
    </div>

Fragments without a list action class (``cb-list``) are interface
references: the name is a link to the referenced entity's page and the
definition names the referenced type.

An object property carries an ``a.toggle-attr`` beside its name and a
``cb-sublist`` of ``cb-sublist-action`` fragments somewhere below it.

The shape is chosen by ``SHAPE_RULES``, evaluated in order, first match
wins. Reordering or adding a rule is an edit to that table.
"""

import re
from dataclasses import dataclass
from typing import Callable, NamedTuple

from bs4.element import Tag

from chargebee_typegen.diagnostics import Diagnostics
from chargebee_typegen.errors import StructuralExpectationFailed, UnsupportedShape
from chargebee_typegen.parser.base import (
    ArrayOfStruct,
    EnumeratedString,
    FilterSet,
    Primitive,
    PropertyDescriptor,
    PropertyShape,
    Reference,
    Struct,
)
from chargebee_typegen.parser.locator import (
    any_class_matcher,
    child_elements,
    classes_of,
    concatenated_text,
    element_matcher,
    find_all_descendants,
    find_descendant,
    next_text_sibling,
    text_of,
)
from chargebee_typegen.parser.naming import reference_type

DIRECT_FRAGMENT_CLASSES = ("cb-list-action", "cb-sublist-action")
REFERENCE_FRAGMENT_CLASS = "cb-list"
FRAGMENT_CLASSES = DIRECT_FRAGMENT_CLASSES + (REFERENCE_FRAGMENT_CLASS,)

is_fragment = any_class_matcher(*FRAGMENT_CLASSES)

_item = element_matcher(classes=("cb-list-item",))
_description = element_matcher(classes=("cb-list-desc",))
_definition = element_matcher("dfn", ("text-muted",))
_sublist = element_matcher(classes=("cb-sublist",))
_object_toggle = element_matcher("a", ("toggle-attr",))
_nested_list_group = element_matcher(classes=("cb-list-group",))
_enum_value = element_matcher("samp", ("enum",))
_bold = element_matcher(("strong", "b"))

OPTIONAL_TOKEN = "optional"
FILTER_SUFFIX = "filter"
SORT_BY = "sort_by"
SORT_OPERATORS = ["asc", "desc"]
OPERATORS_LABEL = "Supported operators"

NUMBER_TOKENS = frozenset({
    "integer",
    "in cents",
    "timestamp(UTC) in seconds",
    "bigdecimal",
    "long",
    "double",
})

# Value type of every field of a filter family, keyed by the filter kind.
FILTER_VALUE_KINDS = {
    "string": "string",
    "integer": "number",
    "timestamp(UTC) in seconds": "number",
    "in cents": "number",
    "boolean": "boolean",
}

# The documentation never says what a jsonarray holds; these are known.
JSONARRAY_FIELDS = {
    "notes": Primitive(kind="string", is_array=True),
    "exemption_details": Primitive(kind="unknown", is_array=True),
}


@dataclass(frozen=True)
class Fragment:
    """A direct definition, read up to the point where its shape is decided."""

    element: Tag
    name: str
    optional: bool
    tokens: list[str]  # definition tokens, "optional" removed
    description: Tag
    context: str


class ShapeRule(NamedTuple):
    label: str
    matches: Callable[[Fragment], bool]
    build: Callable[[Fragment, Diagnostics], PropertyShape]


def is_direct_definition(element: Tag) -> bool:
    return any(c in DIRECT_FRAGMENT_CLASSES for c in classes_of(element))


def extract_properties(elements: list[Tag], diagnostics: Diagnostics, context: str = "") -> list[PropertyDescriptor]:
    """Extract every fragment in ``elements``; emitted field names must be unique."""
    properties = [extract_property(element, diagnostics, context) for element in elements]
    seen: set[str] = set()
    for prop in properties:
        for field_name in prop.field_names():
            if field_name in seen:
                raise UnsupportedShape(f"duplicate property '{field_name}'", context)
            seen.add(field_name)
    return properties


def extract_property(element: Tag, diagnostics: Diagnostics, context: str = "") -> PropertyDescriptor:
    """Classify one property fragment and build its descriptor."""
    if not is_direct_definition(element):
        return _extract_reference(element, context)

    fragment = read_fragment(element, context)
    shape = select_shape(fragment, diagnostics)
    name = shape.base_name if isinstance(shape, FilterSet) else fragment.name
    return PropertyDescriptor(name=name, optional=fragment.optional, shape=shape)


def read_fragment(element: Tag, context: str = "") -> Fragment:
    item = _property_item(element, context)
    samples = child_elements(item, element_matcher("samp"))
    name = text_of(samples[0]) if samples else None
    if name is None or not name.strip():
        raise StructuralExpectationFailed("property name", context)
    name = name.strip()
    qualified = f"{context}.{name}" if context else name

    description, optional, tokens = _read_definition(element, qualified)
    return Fragment(
        element=element,
        name=name,
        optional=optional,
        tokens=tokens,
        description=description,
        context=qualified,
    )


def select_shape(fragment: Fragment, diagnostics: Diagnostics) -> PropertyShape:
    # The last rule matches every fragment.
    rule = next(rule for rule in SHAPE_RULES if rule.matches(fragment))
    return rule.build(fragment, diagnostics)


# -- reading ------------------------------------------------------------------

def _property_item(element: Tag, context: str) -> Tag:
    items = child_elements(element, _item)
    if not items:
        raise StructuralExpectationFailed("property item element", context)
    return items[0]


def _read_definition(element: Tag, context: str) -> tuple[Tag, bool, list[str]]:
    """Return the description element, optionality and remaining tokens."""
    descriptions = child_elements(element, _description)
    if not descriptions:
        raise StructuralExpectationFailed("description element", context)
    description = descriptions[0]

    definitions = child_elements(description, _definition)
    if not definitions:
        raise StructuralExpectationFailed("definition element", context)
    definition = text_of(definitions[0])
    if definition is None or not definition.strip():
        raise StructuralExpectationFailed("definition text", context)

    attributes = [segment.strip() for segment in definition.split(", ")]
    optional = OPTIONAL_TOKEN in attributes
    tokens = [a for a in attributes if a and a != OPTIONAL_TOKEN]
    return description, optional, tokens


def _extract_reference(element: Tag, context: str) -> PropertyDescriptor:
    item = _property_item(element, context)
    links = child_elements(item, element_matcher("a"))
    name = text_of(links[0]) if links else None
    if name is None or not name.strip():
        raise StructuralExpectationFailed("reference name", context)
    name = name.strip()
    qualified = f"{context}.{name}" if context else name

    _, optional, tokens = _read_definition(element, qualified)
    if len(tokens) != 1:
        raise UnsupportedShape(f"reference definition '{', '.join(tokens)}'", qualified)
    type_name, is_array = reference_type(tokens[0])
    return PropertyDescriptor(
        name=name,
        optional=optional,
        shape=Reference(type_name=type_name, is_array=is_array),
    )


def _enum_shape(fragment: Fragment, diagnostics: Diagnostics) -> EnumeratedString | Primitive:
    values = []
    for sample in find_all_descendants(fragment.description, _enum_value):
        value = text_of(sample)
        if value is None:
            raise StructuralExpectationFailed("enum value text", fragment.context)
        values.append(value.strip())
    if not values:
        diagnostics.warn(
            "degraded-enum",
            "enumerated string without documented values, using string",
            fragment.context,
        )
        return Primitive(kind="string")
    return EnumeratedString(values=values)


def _filter_token(fragment: Fragment) -> str | None:
    for token in fragment.tokens:
        if token.endswith(FILTER_SUFFIX):
            return token
    return None


def _parse_operators(fragment: Fragment) -> list[str]:
    label = find_descendant(
        fragment.description,
        lambda node: _bold(node) and (text_of(node) or "").strip().startswith(OPERATORS_LABEL),
    )
    if label is None:
        raise StructuralExpectationFailed("supported operators label", fragment.context)
    raw = next_text_sibling(label)
    if raw is None:
        raise StructuralExpectationFailed("supported operators", fragment.context)

    text = raw.strip().lstrip(":").strip()
    operators = [op.strip() for op in text.split(", ")]
    if not text or not all(re.fullmatch(r"[a-z_]+", op) for op in operators):
        raise StructuralExpectationFailed("parseable filter operators", f"{fragment.context}: {raw!r}")
    return operators


# -- rules --------------------------------------------------------------------

def _is_object(fragment: Fragment) -> bool:
    # An attribute toggle beside the name marks an object.
    item = child_elements(fragment.element, _item)[0]
    if child_elements(item, _object_toggle):
        return True
    return bool(child_elements(fragment.element, _sublist))


def _outermost_fragments(container: Tag) -> list[Tag]:
    """Fragments under ``container`` that are not inside another fragment, in page order."""
    fragments: list[Tag] = []
    stack = list(reversed(child_elements(container)))
    while stack:
        node = stack.pop()
        if is_fragment(node):
            fragments.append(node)
        else:
            stack.extend(reversed(child_elements(node)))
    return fragments


def _build_sublist(fragment: Fragment, diagnostics: Diagnostics) -> PropertyShape:
    container = find_descendant(fragment.element, _sublist)
    if container is None:
        raise StructuralExpectationFailed("nested sub-object properties", fragment.context)

    is_array = False
    headers = child_elements(container)
    header = headers[0] if headers else None
    if header is not None and not is_fragment(header) and find_descendant(header, is_fragment) is None:
        title = find_descendant(header, _bold, include_self=True)
        name = text_of(title) if title is not None else None
        if name is None or not name.strip():
            raise StructuralExpectationFailed("nested sub-object name", fragment.context)
        if name.strip() != fragment.name:
            diagnostics.warn(
                "sub-object-name-mismatch",
                f"nested object titled '{name.strip()}'",
                fragment.context,
            )
        muted = find_all_descendants(header, lambda n: n.name == "dfn" or "text-muted" in classes_of(n))
        is_array = any(re.search(r"\bArray\b", concatenated_text(node)) for node in muted)

    nested = _outermost_fragments(container)
    if not nested:
        raise StructuralExpectationFailed("nested sub-object properties", fragment.context)
    properties = extract_properties(nested, diagnostics, fragment.context)
    if is_array:
        return ArrayOfStruct(properties=properties)
    return Struct(properties=properties)


def _is_filter(fragment: Fragment) -> bool:
    return _filter_token(fragment) is not None


def _build_filter(fragment: Fragment, diagnostics: Diagnostics) -> PropertyShape:
    kind = _filter_token(fragment)[: -len(FILTER_SUFFIX)].strip()
    base_name = fragment.name[:-1] if fragment.name.endswith("[") else fragment.name

    if kind == "enumerated string":
        value = _enum_shape(fragment, diagnostics)
    elif kind in FILTER_VALUE_KINDS:
        value = Primitive(kind=FILTER_VALUE_KINDS[kind])
    else:
        raise UnsupportedShape(f"filter kind '{kind}'", fragment.context)

    if base_name == SORT_BY:
        operators = list(SORT_OPERATORS)
    else:
        operators = _parse_operators(fragment)
    return FilterSet(base_name=base_name, operators=operators, value=value)


def _has_nested_list(fragment: Fragment) -> bool:
    return find_descendant(fragment.description, _nested_list_group) is not None


def _build_nested_list(fragment: Fragment, diagnostics: Diagnostics) -> PropertyShape:
    group = find_descendant(fragment.description, _nested_list_group)
    nested = child_elements(group, is_fragment)
    if not nested:
        raise StructuralExpectationFailed("nested property list entries", fragment.context)
    return Struct(properties=extract_properties(nested, diagnostics, fragment.context))


def _has_token(*tokens: str) -> Callable[[Fragment], bool]:
    def matches(fragment: Fragment) -> bool:
        return any(token in fragment.tokens for token in tokens)

    return matches


def _build_string(fragment: Fragment, diagnostics: Diagnostics) -> PropertyShape:
    # "list of string" is an array of strings, not a nested object.
    return Primitive(kind="string", is_array="string" not in fragment.tokens)


def _primitive(kind: str) -> Callable[[Fragment, Diagnostics], PropertyShape]:
    def build(fragment: Fragment, diagnostics: Diagnostics) -> PropertyShape:
        return Primitive(kind=kind)

    return build


def _build_jsonarray(fragment: Fragment, diagnostics: Diagnostics) -> PropertyShape:
    shape = JSONARRAY_FIELDS.get(fragment.name)
    if shape is None:
        raise UnsupportedShape(f"jsonarray field '{fragment.name}'", fragment.context)
    if shape.kind == "string":
        diagnostics.warn("assumed-array", "jsonarray assumed to hold strings", fragment.context)
    return shape


def _build_unknown(fragment: Fragment, diagnostics: Diagnostics) -> PropertyShape:
    diagnostics.warn("unknown-type", f"no rule for '{', '.join(fragment.tokens)}'", fragment.context)
    return Primitive(kind="unknown")


SHAPE_RULES: tuple[ShapeRule, ...] = (
    ShapeRule("nested sub-object", _is_object, _build_sublist),
    ShapeRule("filter", _is_filter, _build_filter),
    ShapeRule("nested property list", _has_nested_list, _build_nested_list),
    ShapeRule("string", _has_token("string", "list of string"), _build_string),
    ShapeRule("number", _has_token(*sorted(NUMBER_TOKENS)), _primitive("number")),
    ShapeRule("boolean", _has_token("boolean"), _primitive("boolean")),
    ShapeRule("jsonobject", _has_token("jsonobject"), _primitive("object")),
    ShapeRule("jsonarray", _has_token("jsonarray"), _build_jsonarray),
    ShapeRule("enumerated string", _has_token("enumerated string"), _enum_shape),
    ShapeRule("unknown", lambda fragment: True, _build_unknown),
)
