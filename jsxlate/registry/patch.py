"""Export/import side-channel for translators.

``export`` turns the content of every ``<O>`` marker in every translation
function into a JSON node tree. ``import`` renders such trees back to JSX and
splices them into the matching marker slots of the existing function bodies.
"""

from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field
from tree_sitter import Node

from ..errors import PatchError
from ..logging import get_logger
from ..models import Registry, TranslationFunction
from ..syntax import (
    ELEMENT_TYPES,
    JsxExpression,
    JsxTag,
    JsxText,
    attribute_parts,
    element_attributes,
    element_name,
    iter_children,
    jsx_string_value,
    node_text,
    parse_source,
    walk,
)

# Elements HTML renders without children; imported as self-closing tags.
VOID_TAGS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "keygen",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

_STUB_PREFIX = "()=>"

_logger = get_logger("registry.patch")


class TextAttributeValue(BaseModel):
    type: Literal["text"] = "text"
    quote: Literal['"', "'"] = '"'
    value: str


class ExprAttributeValue(BaseModel):
    type: Literal["expr"] = "expr"
    code: str


AttributeValue = Annotated[
    Union[TextAttributeValue, ExprAttributeValue], Field(discriminator="type")
]


class Attribute(BaseModel):
    name: str
    value: Optional[AttributeValue] = None


class TextNode(BaseModel):
    type: Literal["text"] = "text"
    value: str


class ExprNode(BaseModel):
    type: Literal["expr"] = "expr"
    code: str


class TagNode(BaseModel):
    type: Literal["tag"] = "tag"
    name: str
    attributes: List[Attribute] = Field(default_factory=list)
    children: List["PatchNode"] = Field(default_factory=list)


PatchNode = Annotated[Union[TextNode, TagNode, ExprNode], Field(discriminator="type")]

TagNode.model_rebuild()


class TranslationPatch(BaseModel):
    lang: str
    markers: List[List[PatchNode]] = Field(default_factory=list)


class PatchEntry(BaseModel):
    key: str
    is_new: Optional[bool] = None
    is_deleted: bool = False
    translations: List[TranslationPatch] = Field(default_factory=list)


class PatchDocument(BaseModel):
    """Top-level export/import document."""

    entries: List[PatchEntry] = Field(default_factory=list)


def export_patch(registry: Registry, *, marker_tag: str = "O") -> PatchDocument:
    """Describe the marker contents of every translation function in ``registry``."""
    entries: List[PatchEntry] = []
    for entry in registry.entries:
        translations = [
            TranslationPatch(lang=function.lang, markers=_export_markers(function.body, marker_tag))
            for function in entry.functions
        ]
        entries.append(
            PatchEntry(
                key=entry.key,
                is_new=entry.is_new,
                is_deleted=entry.is_deleted,
                translations=translations,
            )
        )
    return PatchDocument(entries=entries)


def apply_patch(
    registry: Registry,
    document: PatchDocument,
    *,
    marker_tag: str = "O",
    indent: str = "\t",
) -> List[str]:
    """Splice ``document`` into the function bodies of ``registry``.

    Returns the keys of the entries that were patched. Keys or languages absent
    from the registry are skipped.
    """
    patches: Dict[str, PatchEntry] = {patch.key: patch for patch in document.entries}
    patched: List[str] = []
    for entry in registry.entries:
        patch = patches.get(entry.key)
        if patch is None:
            continue
        if patch.is_new is not None:
            entry.is_new = patch.is_new
        for translation in patch.translations:
            function = entry.function(translation.lang)
            if function is None:
                _logger.warning("Skipping %s/%s: no such translation", entry.key, translation.lang)
                continue
            function.body = _patch_function(
                entry.key, function, translation.markers, marker_tag=marker_tag, indent=indent
            )
        patched.append(entry.key)
    return patched


def marker_ranges(body: str, marker_tag: str = "O") -> List[Tuple[int, int]]:
    """Return ``(start, end)`` character ranges of every marker element in ``body``."""
    code = _STUB_PREFIX + body
    source = code.encode("utf-8")
    tree = parse_source(source)
    if tree.root_node.has_error:
        raise PatchError(f"function body does not parse: {body!r}")
    offset = len(_STUB_PREFIX)
    ranges: List[Tuple[int, int]] = []
    for node in walk(tree.root_node):
        if node.type in ELEMENT_TYPES and element_name(node, source) == marker_tag:
            start = len(source[: node.start_byte].decode("utf-8")) - offset
            end = len(source[: node.end_byte].decode("utf-8")) - offset
            ranges.append((start, end))
    return ranges


def nodes_to_code(nodes: List[PatchNode], indent: str = "\t") -> str:
    return "".join(node_to_code(node, indent) for node in nodes)


def node_to_code(node: PatchNode, indent: str = "\t") -> str:
    """Render one patch node as JSX source."""
    if isinstance(node, TextNode):
        text = node.value.replace("\r\n", "\n").replace("\r", "\n")
        return text.replace("\n", "\n" + indent * 4)
    if isinstance(node, ExprNode):
        return node.code
    attributes = "".join(_attribute_code(attribute) for attribute in node.attributes)
    if node.name.lower() in VOID_TAGS:
        return f"<{node.name}{attributes}/>"
    return f"<{node.name}{attributes}>{nodes_to_code(node.children, indent)}</{node.name}>"


def quoteattr(value: str) -> str:
    """Escape ``value`` for use inside a quoted JSX attribute."""
    return (
        value.replace("&", "&amp;")
        .replace("'", "&apos;")
        .replace('"', "&quot;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace("\r\n", "&#13;")
        .replace("\r", "&#13;")
        .replace("\n", "&#13;")
    )


def _attribute_code(attribute: Attribute) -> str:
    value = attribute.value
    if value is None:
        return f" {attribute.name}"
    if isinstance(value, TextAttributeValue):
        return f" {attribute.name}={value.quote}{quoteattr(value.value)}{value.quote}"
    return f" {attribute.name}={value.code}"


def _patch_function(
    key: str,
    function: TranslationFunction,
    markers: List[List[PatchNode]],
    *,
    marker_tag: str,
    indent: str,
) -> str:
    expected = len(markers)

    def locate(body: str) -> List[Tuple[int, int]]:
        ranges = marker_ranges(body, marker_tag)
        if len(ranges) != expected:
            raise PatchError(
                f"{key}/{function.lang}: found unexpected number of <{marker_tag}>-tags "
                f"(expected {expected}, found {len(ranges)})"
            )
        if function.kind == "expression" and expected != 1:
            raise PatchError(
                f"{key}/{function.lang}: expected only one <{marker_tag}>-tag for "
                f"expression function body, but found {expected}"
            )
        return ranges

    body = function.body
    for index, nodes in enumerate(markers):
        start, end = locate(body)[index]
        replacement = f"<{marker_tag}>{nodes_to_code(nodes, indent)}</{marker_tag}>"
        body = body[:start] + replacement + body[end:]
    locate(body)
    return body


def _export_markers(body: str, marker_tag: str) -> List[List[PatchNode]]:
    code = _STUB_PREFIX + body
    source = code.encode("utf-8")
    tree = parse_source(source)
    markers: List[List[PatchNode]] = []
    for node in walk(tree.root_node):
        if node.type in ELEMENT_TYPES and element_name(node, source) == marker_tag:
            markers.append(_export_children(node, source))
    return markers


def _export_children(element: Node, source: bytes) -> List[PatchNode]:
    if element.type != "jsx_element":
        return []
    nodes: List[PatchNode] = []
    for child in iter_children(element, source):
        if isinstance(child, JsxText):
            nodes.append(TextNode(value=child.text))
        elif isinstance(child, JsxExpression):
            nodes.append(ExprNode(code=node_text(child.node, source)))
        elif isinstance(child, JsxTag):
            nodes.append(_export_tag(child.node, source))
    return nodes


def _export_tag(element: Node, source: bytes) -> TagNode:
    attributes: List[Attribute] = []
    for attribute in element_attributes(element):
        if attribute.type != "jsx_attribute":
            raise PatchError(f"cannot export spread attribute {node_text(attribute, source)!r}")
        name, value = attribute_parts(attribute, source)
        if value is None:
            attributes.append(Attribute(name=name))
        elif value.type == "string":
            quote = node_text(value, source)[0]
            attributes.append(
                Attribute(name=name, value=TextAttributeValue(quote=quote, value=jsx_string_value(value, source)))
            )
        elif value.type == "jsx_expression":
            attributes.append(Attribute(name=name, value=ExprAttributeValue(code=node_text(value, source))))
        else:
            raise PatchError(f"unhandled tag attribute value type: {value.type}")
    return TagNode(
        name=element_name(element, source) or "",
        attributes=attributes,
        children=_export_children(element, source),
    )


__all__ = [
    "Attribute",
    "ExprAttributeValue",
    "ExprNode",
    "PatchDocument",
    "PatchEntry",
    "PatchNode",
    "TagNode",
    "TextAttributeValue",
    "TextNode",
    "TranslationPatch",
    "VOID_TAGS",
    "apply_patch",
    "export_patch",
    "marker_ranges",
    "node_to_code",
    "nodes_to_code",
    "quoteattr",
]
