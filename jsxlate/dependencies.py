"""Dependency capture for translation fragments.

A dependency is anything a translation function must receive as a parameter to
re-render the fragment: component names used as tags and free identifiers used
in expressions.
"""

from __future__ import annotations

from typing import Iterable, List

from tree_sitter import Node

from .errors import UsageError
from .syntax import (
    ELEMENT_TYPES,
    FUNCTION_TYPES,
    TAG_NAME_PARENTS,
    JsxChild,
    JsxExpression,
    JsxTag,
    JsxText,
    element_name,
    node_line,
    node_text,
    same_node,
)

_ACCESS_TYPES = frozenset({"member_expression", "subscript_expression"})
_TAG_PATH_TYPES = frozenset({"member_expression", "nested_identifier"})


def is_component_name(name: str) -> bool:
    """Tags whose first character is unchanged by upper-casing are components."""
    return bool(name) and name[0] == name[0].upper()


def capture_dependencies(
    children: Iterable[JsxChild],
    source: bytes,
    *,
    filename: str,
    tag: str,
) -> List[str]:
    """Return the sorted, de-duplicated dependencies referenced by ``children``."""
    deps: List[str] = []
    for child in children:
        if isinstance(child, JsxText):
            continue
        if isinstance(child, (JsxTag, JsxExpression)):
            _visit(child.node, source, deps, filename=filename, tag=tag)
    return sorted(set(deps))


def _visit(node: Node, source: bytes, deps: List[str], *, filename: str, tag: str) -> None:
    kind = node.type
    if kind == "this":
        raise UsageError(filename, node_line(node), f"'this' is not allowed within <{tag}>-tags")
    if node.is_named and kind in FUNCTION_TYPES:
        raise UsageError(filename, node_line(node), "translation tags cannot have inline functions")
    if kind in ELEMENT_TYPES and element_name(node, source) == tag:
        raise UsageError(filename, node_line(node), f"translation <{tag}>-tags cannot be nested")

    if kind in ("identifier", "property_identifier"):
        name = _identifier_dependency(node, source)
        if name is not None:
            deps.append(name)
    elif kind == "shorthand_property_identifier":
        deps.append(node_text(node, source))

    for child in node.children:
        _visit(child, source, deps, filename=filename, tag=tag)


def _identifier_dependency(node: Node, source: bytes) -> str | None:
    name = node_text(node, source)
    if _is_tag_name_segment(node):
        # plain html tags are not dependencies; every segment of <Foo.Bar> is checked
        return name if is_component_name(name) else None
    if node.type == "property_identifier":
        return None
    parent = node.parent
    if parent is None:
        return name
    if parent.type in _ACCESS_TYPES:
        return name if same_node(node, parent.child_by_field_name("object")) else None
    return name


def _is_tag_name_segment(node: Node) -> bool:
    parent = node.parent
    while parent is not None and parent.type in _TAG_PATH_TYPES:
        parent = parent.parent
    return parent is not None and parent.type in TAG_NAME_PARENTS


__all__ = ["capture_dependencies", "is_component_name"]
