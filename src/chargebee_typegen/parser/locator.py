"""Tree-search primitives over BeautifulSoup nodes.

No domain knowledge lives here. Every function is total: absence is
reported as ``None`` or an empty list and the caller decides whether it is
fatal. Positions are located by identity (``is``) because BeautifulSoup
compares tags structurally, and two sibling blocks can look the same.
"""

from typing import Callable

from bs4.element import Comment, NavigableString, PageElement, PreformattedString, Tag

Predicate = Callable[[Tag], bool]


def is_element(node: PageElement | None) -> bool:
    return isinstance(node, Tag)


def is_text(node: PageElement | None) -> bool:
    """Plain text nodes only; comments, doctypes and CDATA are not text."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def classes_of(node: Tag) -> list[str]:
    value = node.get("class")
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return list(value)


def has_class(node: PageElement | None, name: str) -> bool:
    return is_element(node) and name in classes_of(node)


def element_matcher(tag: str | tuple[str, ...] | None = None, classes: tuple[str, ...] = ()) -> Predicate:
    """Build a predicate testing the tag name and class-list membership.

    ``tag`` may be a single name or a tuple of alternatives; every entry of
    ``classes`` must be present.
    """
    names = (tag,) if isinstance(tag, str) else tag

    def matches(node: Tag) -> bool:
        if names is not None and node.name not in names:
            return False
        node_classes = classes_of(node)
        return all(c in node_classes for c in classes)

    return matches


def any_class_matcher(*classes: str) -> Predicate:
    """Predicate for elements carrying at least one of ``classes``."""

    def matches(node: Tag) -> bool:
        node_classes = classes_of(node)
        return any(c in node_classes for c in classes)

    return matches


def _position(node: PageElement, parent: Tag) -> int | None:
    for index, child in enumerate(parent.contents):
        if child is node:
            return index
    return None


def next_element_sibling(node: PageElement, parent: Tag | None = None) -> Tag | None:
    """First element after ``node`` among ``parent``'s children."""
    parent = parent if parent is not None else node.parent
    if parent is None:
        return None
    index = _position(node, parent)
    if index is None:
        return None
    for child in parent.contents[index + 1:]:
        if is_element(child):
            return child
    return None


def next_text_sibling(node: PageElement, parent: Tag | None = None) -> str | None:
    """Value of the first text node after ``node`` among ``parent``'s children."""
    parent = parent if parent is not None else node.parent
    if parent is None:
        return None
    index = _position(node, parent)
    if index is None:
        return None
    for child in parent.contents[index + 1:]:
        if is_text(child):
            return str(child)
    return None


def child_elements(node: Tag, predicate: Predicate | None = None) -> list[Tag]:
    return [
        child for child in node.contents
        if is_element(child) and (predicate is None or predicate(child))
    ]


def _walk(root: Tag, include_self: bool):
    # Pre-order without recursion: pages nest deeply.
    stack = [root] if include_self else list(reversed(child_elements(root)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(child_elements(node)))


def find_descendant(root: Tag, predicate: Predicate, include_self: bool = False) -> Tag | None:
    for node in _walk(root, include_self):
        if predicate(node):
            return node
    return None


def find_all_descendants(root: Tag, predicate: Predicate, include_self: bool = False) -> list[Tag]:
    return [node for node in _walk(root, include_self) if predicate(node)]


def text_of(node: PageElement | None) -> str | None:
    """Value of the first direct text-node child, or ``None``."""
    if not is_element(node):
        return None
    for child in node.contents:
        if is_text(child):
            return str(child)
    return None


def concatenated_text(node: PageElement | None) -> str:
    """All descendant text of ``node`` joined without separators."""
    if node is None:
        return ""
    if is_text(node):
        return str(node)
    if not is_element(node):
        return ""
    return "".join(str(s) for s in node.descendants if is_text(s))


def find_comment(root: Tag, value: str) -> Comment | None:
    """First comment under ``root`` whose stripped text equals ``value``."""
    for node in root.descendants:
        if isinstance(node, Comment) and node.strip() == value:
            return node
    return None
