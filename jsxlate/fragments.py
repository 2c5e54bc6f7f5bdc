"""Fragment processing: validate a ``<T>`` element and derive its key."""

from __future__ import annotations

import hashlib
from typing import List, Optional, Tuple

from tree_sitter import Node

from .dependencies import capture_dependencies
from .errors import UsageError
from .logging import get_logger
from .models import Fragment
from .normalizer import get_normalizer
from .syntax import (
    ELEMENT_TYPES,
    attribute_parts,
    closing_element,
    element_attributes,
    expression_of,
    first_error,
    is_tag,
    iter_children,
    jsx_string_value,
    node_line,
    node_text,
    opening_element,
    parse_source,
    walk,
)

DEFAULT_TAG = "T"
KEY_LENGTH = 12

# Attributes React or its dev tooling may put on any element.
_IGNORED_ATTRIBUTES = frozenset({"key", "style", "__self", "__source"})

_logger = get_logger("fragments")


def compute_key(signature: str) -> str:
    """Return the 12 hex character content key for ``signature``."""
    return hashlib.sha256(signature.encode("utf-8")).hexdigest()[:KEY_LENGTH]


def build_signature(normalized_body: str, context: str, deps: List[str] | Tuple[str, ...]) -> str:
    return normalized_body + "\0" + context + "\0" + ",".join(deps)


def process_node(
    node: Node,
    source: bytes,
    *,
    filename: str,
    normalizer_version: int = 0,
    tag: str = DEFAULT_TAG,
) -> Fragment:
    """Validate the translation element ``node`` and turn it into a :class:`Fragment`."""
    normalizer = get_normalizer(normalizer_version)
    line = node_line(node)

    if not is_tag(node, source, tag):
        raise UsageError(filename, line, "expected translation tag node")
    _assert_not_nested(node, source, filename=filename, tag=tag)

    opening = opening_element(node)
    closing = closing_element(node)
    if node.type != "jsx_element" or closing is None:
        raise UsageError(filename, line, f"translation <{tag}>-tags must have a closing tag")

    body = source[opening.end_byte : closing.start_byte].decode("utf-8")
    deps, context, key_attribute = _parse_attributes(node, source, filename=filename)
    deps.extend(capture_dependencies(iter_children(node, source), source, filename=filename, tag=tag))
    unique_deps = tuple(sorted(set(deps)))

    signature = build_signature(normalizer(body), context, unique_deps)
    key = compute_key(signature)

    is_multiline = node.end_point[0] > node.start_point[0]
    if is_multiline:
        indent = _line_indentation(source, opening.start_byte)
        lines = tuple(
            part[len(indent) :] if part.startswith(indent) else part
            for part in body.split("\n")
        )
    else:
        lines = (body,)

    return Fragment(
        key=key,
        signature=signature,
        body=body,
        context=context,
        deps=unique_deps,
        is_multiline=is_multiline,
        lines=lines,
        path=filename,
        line=line,
        start_byte=node.start_byte,
        end_byte=node.end_byte,
        key_attribute=key_attribute,
    )


def find_translation_nodes(root: Node, source: bytes, *, tag: str = DEFAULT_TAG) -> List[Node]:
    """Return every ``<tag>`` element below ``root`` in document order."""
    return [node for node in walk(root) if node.type in ELEMENT_TYPES and is_tag(node, source, tag)]


def extract_fragments(
    filename: str,
    source: bytes,
    *,
    normalizer_version: int = 0,
    tag: str = DEFAULT_TAG,
) -> List[Fragment]:
    """Parse ``source`` and process every translation tag found in it."""
    tree = parse_source(source)
    error = first_error(tree.root_node)
    if error is not None:
        raise UsageError(filename, node_line(error), "syntax error")
    fragments = [
        process_node(
            node,
            source,
            filename=filename,
            normalizer_version=normalizer_version,
            tag=tag,
        )
        for node in find_translation_nodes(tree.root_node, source, tag=tag)
    ]
    _logger.debug("%s: %d fragment(s)", filename, len(fragments))
    return fragments


def _assert_not_nested(node: Node, source: bytes, *, filename: str, tag: str) -> None:
    parent = node.parent
    while parent is not None:
        if is_tag(parent, source, tag):
            raise UsageError(filename, node_line(node), f"translation <{tag}>-tags cannot be nested")
        parent = parent.parent


def _parse_attributes(
    node: Node, source: bytes, *, filename: str
) -> Tuple[List[str], str, Optional[str]]:
    deps: List[str] = []
    context = ""
    key_attribute: Optional[str] = None

    for attribute in element_attributes(node):
        if attribute.type != "jsx_attribute":
            raise UsageError(filename, node_line(attribute), "spread attributes are not allowed on translation tags")
        name, value = attribute_parts(attribute, source)
        if name == "deps":
            deps.extend(_parse_deps(attribute, value, source, filename=filename))
        elif name == "context":
            if value is None or value.type != "string":
                where = value if value is not None else attribute
                raise UsageError(filename, node_line(where), "expected string literal for 'context' attribute")
            context = jsx_string_value(value, source)
        elif name in _IGNORED_ATTRIBUTES:
            if name == "key":
                key_attribute = node_text(attribute, source)
        else:
            raise UsageError(filename, node_line(node), f"invalid attribute name: '{name}'")

    return deps, context, key_attribute


def _parse_deps(attribute: Node, value: Optional[Node], source: bytes, *, filename: str) -> List[str]:
    if value is None or value.type != "jsx_expression":
        where = value if value is not None else attribute
        raise UsageError(filename, node_line(where), "expected jsx expression for 'deps' attribute")
    array = expression_of(value)
    if array is None or array.type != "array":
        where = array if array is not None else value
        raise UsageError(
            filename,
            node_line(where),
            "expected jsx expression containing array for 'deps' attribute",
        )
    names: List[str] = []
    for element in array.named_children:
        if element.type == "comment":
            continue
        if element.type != "identifier":
            raise UsageError(
                filename,
                node_line(element),
                f"expected Identifier in 'deps' array, got {element.type}",
            )
        names.append(node_text(element, source))
    return names


def _line_indentation(source: bytes, offset: int) -> str:
    """Return the spaces and tabs that start the physical line holding ``offset``."""
    line_start = source.rfind(b"\n", 0, offset) + 1
    end = line_start
    while end < offset and source[end : end + 1] in (b" ", b"\t"):
        end += 1
    return source[line_start:end].decode("utf-8")


__all__ = [
    "DEFAULT_TAG",
    "build_signature",
    "compute_key",
    "extract_fragments",
    "find_translation_nodes",
    "process_node",
]
