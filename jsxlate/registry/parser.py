"""Parser for the translations registry module.

The registry is a JavaScript module whose only meaningful content is one
``export default { ... }`` object literal. Everything before the export is an
opaque preamble that is written back byte for byte.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Set

from tree_sitter import Node

from ..dependencies import capture_dependencies
from ..errors import CorruptRegistryError, UsageError
from ..fragments import DEFAULT_TAG
from ..logging import get_logger
from ..models import Ref, Registry, RegistryEntry, TranslationFunction
from ..syntax import (
    ELEMENT_TYPES,
    children_span,
    first_error,
    iter_children,
    node_line,
    node_text,
    parse_source,
    string_value,
    unwrap_parentheses,
)

_logger = get_logger("registry.parser")


class _Context:
    def __init__(self, source: bytes, path: Optional[str], tag: str) -> None:
        self.source = source
        self.path = path
        self.tag = tag

    def corrupt(self, node: Optional[Node], reason: str) -> CorruptRegistryError:
        line = node_line(node) if node is not None else None
        return CorruptRegistryError(reason, line=line, path=self.path)

    def expect(self, node: Optional[Node], *types: str) -> Node:
        if node is None:
            raise self.corrupt(None, f"expected {' or '.join(types)}; got nothing")
        if types and node.type not in types:
            raise self.corrupt(node, f"expected {' or '.join(types)}; got {node.type}")
        return node

    def text(self, node: Node) -> str:
        return node_text(node, self.source)


def parse_registry(
    text: str,
    *,
    path: Path | str | None = None,
    tag: str = DEFAULT_TAG,
) -> Registry:
    """Parse registry ``text`` into a :class:`Registry`.

    Raises :class:`CorruptRegistryError` on any deviation from the expected shape.
    """
    source = text.encode("utf-8")
    ctx = _Context(source, str(path) if path is not None else None, tag)
    tree = parse_source(source)
    root = tree.root_node

    error = first_error(root)
    if error is not None:
        raise ctx.corrupt(error, "syntax error")

    exports = [child for child in root.named_children if _is_default_export(child)]
    if not exports:
        line = max(1, len(text.splitlines()))
        raise CorruptRegistryError("found no default export", line=line, path=ctx.path)
    if len(exports) > 1:
        raise ctx.corrupt(exports[1], "found multiple exports")
    export = exports[0]

    trailing = source[export.end_byte :]
    if trailing.strip():
        offset = len(trailing) - len(trailing.lstrip())
        line = source[: export.end_byte + offset].count(b"\n") + 1
        raise CorruptRegistryError("unexpected content after the default export", line=line, path=ctx.path)

    declaration = ctx.expect(export.child_by_field_name("value"), "object")

    entries: List[RegistryEntry] = []
    seen: Set[str] = set()
    for prop in _properties(declaration):
        ctx.expect(prop, "pair")
        key = _property_name(ctx, prop)
        if key in seen:
            raise ctx.corrupt(prop, f"duplicate key {key!r}")
        seen.add(key)
        value = ctx.expect(prop.child_by_field_name("value"), "object")
        entries.append(_parse_entry(ctx, key, value, node_line(prop)))

    preamble = source[: export.start_byte].decode("utf-8")
    registry_path = Path(path) if path is not None else None
    _logger.debug("Parsed %d registry entries", len(entries))
    return Registry(preamble=preamble, entries=entries, path=registry_path)


def _is_default_export(node: Node) -> bool:
    if node.type != "export_statement":
        return False
    return any(child.type == "default" for child in node.children)


def _properties(obj: Node) -> List[Node]:
    return [child for child in obj.named_children if child.type != "comment"]


def _property_name(ctx: _Context, prop: Node) -> str:
    key = ctx.expect(prop.child_by_field_name("key"), "string", "property_identifier")
    if key.type == "string":
        return string_value(key, ctx.source)
    return ctx.text(key)


def _parse_entry(ctx: _Context, key: str, body: Node, line: int) -> RegistryEntry:
    entry = RegistryEntry(key=key, line=line)
    deps: Optional[List[str]] = None

    for prop in _properties(body):
        ctx.expect(prop, "pair")
        target = _property_name(ctx, prop)
        value = ctx.expect(prop.child_by_field_name("value"))

        if target.startswith("#"):
            entry.metadata.append(ctx.text(prop))
        elif target in ("_new", "_deleted"):
            _expect_true(ctx, target, value)
            if target == "_new":
                entry.is_new = True
            else:
                entry.is_deleted = True
        elif target == "_context":
            entry.context = string_value(ctx.expect(value, "string"), ctx.source)
        elif target == "_refs":
            entry.refs.extend(_parse_legacy_refs(ctx, value))
        else:
            function, params = _parse_function(ctx, target, value)
            if deps is None:
                deps = params
            elif deps != params:
                raise ctx.corrupt(
                    value,
                    "function param mismatch with earlier function; all must be identical",
                )
            entry.functions.append(function)

    entry.deps = deps or []
    return entry


def _expect_true(ctx: _Context, field: str, value: Node) -> None:
    ctx.expect(value, "true", "false")
    if value.type != "true":
        raise ctx.corrupt(value, f"only 'true' is a valid value for {field}")


def _parse_legacy_refs(ctx: _Context, value: Node) -> List[Ref]:
    refs: List[Ref] = []
    for element in _properties(ctx.expect(value, "array")):
        ctx.expect(element, "string")
        raw = string_value(element, ctx.source)
        path, sep, line_str = raw.rpartition(":")
        if not sep or not path:
            raise ctx.corrupt(element, "ref not on <path>:<line> form")
        if not line_str.isdigit():
            raise ctx.corrupt(element, "invalid line number in ref")
        refs.append(Ref(path, int(line_str)))
    return refs


def _parse_function(ctx: _Context, lang: str, value: Node) -> tuple[TranslationFunction, List[str]]:
    ctx.expect(value, "arrow_function")
    params = _parse_params(ctx, value)
    body = ctx.expect(value.child_by_field_name("body"))

    kind = "block" if body.type == "statement_block" else "expression"
    inlinable = False
    inline_children = ""
    if kind == "expression":
        inner = unwrap_parentheses(body)
        if inner.type in ELEMENT_TYPES:
            inlinable = _is_self_contained(ctx, inner, params)
            if inlinable and inner.type == "jsx_element":
                start, end = children_span(inner)
                inline_children = ctx.source[start:end].decode("utf-8")

    function = TranslationFunction(
        lang=lang,
        kind=kind,
        body=ctx.text(body),
        inlinable=inlinable,
        inline_children=inline_children,
        line=node_line(value),
    )
    return function, params


def _parse_params(ctx: _Context, function: Node) -> List[str]:
    single = function.child_by_field_name("parameter")
    if single is not None:
        return [ctx.text(ctx.expect(single, "identifier"))]
    params = function.child_by_field_name("parameters")
    if params is None:
        return []
    return [ctx.text(ctx.expect(param, "identifier")) for param in _properties(params)]


def _is_self_contained(ctx: _Context, element: Node, params: List[str]) -> bool:
    """Whether ``element`` references nothing beyond the function parameters."""
    if element.type != "jsx_element":
        return True
    try:
        body_deps = capture_dependencies(
            iter_children(element, ctx.source),
            ctx.source,
            filename=ctx.path or "<registry>",
            tag=ctx.tag,
        )
    except UsageError as exc:
        _logger.debug("Translation at line %d cannot be inlined: %s", node_line(element), exc.message)
        return False
    return set(body_deps) <= set(params)


__all__ = ["parse_registry"]
