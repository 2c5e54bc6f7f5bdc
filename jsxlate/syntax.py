"""Tree-sitter powered JSX query helpers.

The rest of jsxlate never touches tree-sitter node types directly for JSX
children; it consumes the closed variant set produced by :func:`iter_children`
(:class:`JsxText`, :class:`JsxTag`, :class:`JsxExpression`).
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Union

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser, Tree

ELEMENT_TYPES = frozenset({"jsx_element", "jsx_self_closing_element"})
TAG_NAME_PARENTS = frozenset(
    {"jsx_opening_element", "jsx_closing_element", "jsx_self_closing_element", "jsx_namespace_name"}
)
FUNCTION_TYPES = frozenset({"arrow_function", "function_expression", "function", "generator_function"})
_TAG_NAME_TYPES = frozenset({"identifier", "member_expression", "nested_identifier", "jsx_namespace_name"})

_ESCAPES: Dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}
_ESCAPE_PATTERN = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])"
)

_LANGUAGE: Optional[Language] = None


def javascript_language() -> Language:
    """Return the JavaScript (with JSX) grammar, loaded once per process."""
    global _LANGUAGE
    if _LANGUAGE is None:
        _LANGUAGE = Language(tree_sitter_javascript.language())
    return _LANGUAGE


def parse_source(source: bytes) -> Tree:
    """Parse JavaScript/JSX ``source`` into a tree-sitter tree."""
    parser = Parser(javascript_language())
    return parser.parse(source)


@dataclass(frozen=True)
class JsxText:
    """Raw text between structural children of a JSX element."""

    text: str
    start_byte: int
    end_byte: int


@dataclass(frozen=True)
class JsxTag:
    """A nested JSX element (regular or self-closing)."""

    node: Node


@dataclass(frozen=True)
class JsxExpression:
    """A ``{...}`` expression container."""

    node: Node


JsxChild = Union[JsxText, JsxTag, JsxExpression]


def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8")


def node_line(node: Node) -> int:
    """Return the 1-based line on which ``node`` starts."""
    return node.start_point[0] + 1


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and all descendants in document (pre-)order."""
    yield node
    for child in node.children:
        yield from walk(child)


def first_error(node: Node) -> Optional[Node]:
    """Return the first ERROR or MISSING node below ``node``, if any."""
    if not node.has_error:
        return None
    for candidate in walk(node):
        if candidate.type == "ERROR" or candidate.is_missing:
            return candidate
    return node


def same_node(a: Optional[Node], b: Optional[Node]) -> bool:
    if a is None or b is None:
        return False
    return a.start_byte == b.start_byte and a.end_byte == b.end_byte and a.type == b.type


def opening_element(element: Node) -> Node:
    """Return the node that carries the tag name and attributes of ``element``."""
    if element.type == "jsx_self_closing_element":
        return element
    for child in element.children:
        if child.type == "jsx_opening_element":
            return child
    return element


def closing_element(element: Node) -> Optional[Node]:
    if element.type != "jsx_element":
        return None
    for child in reversed(element.children):
        if child.type == "jsx_closing_element":
            return child
    return None


def element_name(element: Node, source: bytes) -> Optional[str]:
    """Return the tag name of ``element`` (``None`` for fragments ``<>``)."""
    if element.type not in ELEMENT_TYPES:
        return None
    opening = opening_element(element)
    name = opening.child_by_field_name("name")
    if name is None:
        for child in opening.named_children:
            if child.type in _TAG_NAME_TYPES:
                name = child
                break
        else:
            return None
    return node_text(name, source)


def is_tag(node: Node, source: bytes, tag: str) -> bool:
    return node.type in ELEMENT_TYPES and element_name(node, source) == tag


def element_attributes(element: Node) -> List[Node]:
    """Return ``jsx_attribute`` and spread ``jsx_expression`` nodes of ``element``."""
    opening = opening_element(element)
    return [
        child
        for child in opening.named_children
        if child.type in {"jsx_attribute", "jsx_expression"}
    ]


def attribute_parts(attribute: Node, source: bytes) -> tuple[str, Optional[Node]]:
    """Split a ``jsx_attribute`` into its name and optional value node."""
    parts = [child for child in attribute.named_children if child.type != "comment"]
    name = node_text(parts[0], source) if parts else ""
    value = parts[1] if len(parts) > 1 else None
    return name, value


def expression_of(container: Node) -> Optional[Node]:
    """Return the expression wrapped by a ``{...}`` container, skipping comments."""
    for child in container.named_children:
        if child.type != "comment":
            return child
    return None


def unwrap_parentheses(node: Node) -> Node:
    while node.type == "parenthesized_expression":
        inner = expression_of(node)
        if inner is None:
            break
        node = inner
    return node


def children_span(element: Node) -> tuple[int, int]:
    """Return the byte span between the opening and closing tags of ``element``."""
    opening = opening_element(element)
    closing = closing_element(element)
    if closing is None:
        return opening.end_byte, opening.end_byte
    return opening.end_byte, closing.start_byte


def iter_children(element: Node, source: bytes) -> Iterator[JsxChild]:
    """Yield the children of a JSX element as :data:`JsxChild` variants.

    Text is taken verbatim from the gaps between structural children so that
    whitespace and character references survive untouched.
    """
    start, end = children_span(element)
    cursor = start
    for child in element.children:
        if child.start_byte < start or child.end_byte > end:
            continue
        if child.type in ELEMENT_TYPES:
            variant: JsxChild = JsxTag(child)
        elif child.type == "jsx_expression":
            variant = JsxExpression(child)
        else:
            continue
        if child.start_byte > cursor:
            yield JsxText(source[cursor : child.start_byte].decode("utf-8"), cursor, child.start_byte)
        yield variant
        cursor = child.end_byte
    if end > cursor:
        yield JsxText(source[cursor:end].decode("utf-8"), cursor, end)


def string_value(node: Node, source: bytes) -> str:
    """Decode a JavaScript string literal node."""
    raw = node_text(node, source)[1:-1]
    return _ESCAPE_PATTERN.sub(_decode_escape, raw)


def jsx_string_value(node: Node, source: bytes) -> str:
    """Decode a JSX attribute string; JSX applies HTML entities, not backslash escapes."""
    return html.unescape(node_text(node, source)[1:-1])


def _decode_escape(match: "re.Match[str]") -> str:
    escape = match.group(1)
    if escape.startswith("u{"):
        return chr(int(escape[2:-1], 16))
    if escape.startswith("u") and len(escape) == 5:
        return chr(int(escape[1:], 16))
    if escape.startswith("x") and len(escape) == 3:
        return chr(int(escape[1:], 16))
    if escape in {"\n", "\r\n", "\r", "\u2028", "\u2029"}:
        return ""
    return _ESCAPES.get(escape, escape)


__all__ = [
    "ELEMENT_TYPES",
    "FUNCTION_TYPES",
    "JsxChild",
    "JsxExpression",
    "JsxTag",
    "JsxText",
    "attribute_parts",
    "children_span",
    "closing_element",
    "element_attributes",
    "element_name",
    "expression_of",
    "first_error",
    "is_tag",
    "iter_children",
    "javascript_language",
    "jsx_string_value",
    "node_line",
    "node_text",
    "opening_element",
    "parse_source",
    "same_node",
    "string_value",
    "unwrap_parentheses",
    "walk",
]
