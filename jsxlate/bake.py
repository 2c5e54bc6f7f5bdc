"""Build-time substitution of translation tags.

Two modes exist. Key tagging (no bake language) rewrites every ``<T>`` to carry
its key and dependencies so a runtime can look the translation up. Baking
replaces every ``<T>`` with a concrete language's translation, inlining the
translation markup when it only depends on the declared parameters.

Nothing here mutates a parse tree: :func:`bake` and :func:`tag_replacement`
describe a replacement and :func:`transform_source` applies all of a file's
replacements in one pass.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .errors import LookupMissError
from .fragments import DEFAULT_TAG, extract_fragments
from .logging import get_logger
from .models import Fragment, Registry
from .syntax import node_text, parse_source, string_value, walk

IS_BAKED_CONSTANT = "JSXLATE_IS_BAKED"
LANG_CONSTANT = "JSXLATE_LANG"

_logger = get_logger("bake")


@dataclass(frozen=True)
class Replacement:
    """Describes the element that takes the place of one translation tag."""

    start_byte: int
    end_byte: int
    tag: str
    attributes: Tuple[str, ...] = ()
    children: Optional[str] = None

    @property
    def is_self_closing(self) -> bool:
        return self.children is None

    def render(self) -> str:
        opening = self.tag + "".join(f" {attribute}" for attribute in self.attributes)
        if self.children is None:
            return f"<{opening}/>"
        return f"<{opening}>{self.children}</{self.tag}>"


def key_deps_attributes(key: str, deps: Sequence[str]) -> Tuple[str, str]:
    return (f'k="{key}"', "deps={[" + ", ".join(deps) + "]}")


def _with_key_attribute(attributes: Sequence[str], fragment: Fragment) -> Tuple[str, ...]:
    if fragment.key_attribute is None:
        return tuple(attributes)
    return (*attributes, fragment.key_attribute)


def tag_replacement(fragment: Fragment, *, keep_children: bool = True, tag: str = DEFAULT_TAG) -> Replacement:
    """Key-tagging replacement: ``<T k=... deps={[...]}>``."""
    attributes = _with_key_attribute(key_deps_attributes(fragment.key, fragment.deps), fragment)
    return Replacement(
        start_byte=fragment.start_byte,
        end_byte=fragment.end_byte,
        tag=tag,
        attributes=attributes,
        children=fragment.body if keep_children else None,
    )


def bake(
    fragment: Fragment,
    registry: Registry,
    langs: Sequence[str],
    *,
    tag: str = DEFAULT_TAG,
) -> Replacement:
    """Replace ``fragment`` with the first translation found among ``langs``.

    Raises :class:`LookupMissError` when no candidate language has one.
    """
    function = None
    for lang in langs:
        function = registry.lookup(fragment.key, lang)
        if function is not None:
            break
    if function is None:
        raise LookupMissError(fragment.key, langs, location=str(fragment.loc))

    if function.inlinable:
        attributes: Tuple[str, ...] = ()
        children = function.inline_children
    else:
        attributes = key_deps_attributes(fragment.key, fragment.deps)
        children = ""
    return Replacement(
        start_byte=fragment.start_byte,
        end_byte=fragment.end_byte,
        tag=tag,
        attributes=_with_key_attribute(attributes, fragment),
        children=children,
    )


def transform_source(
    filename: str,
    source: bytes,
    *,
    registry: Optional[Registry] = None,
    langs: Sequence[str] = (),
    keep_children: bool = True,
    normalizer_version: int = 0,
    tag: str = DEFAULT_TAG,
) -> str:
    """Apply every replacement of one source file and return the new text.

    With a ``registry`` and ``langs`` the file is baked; otherwise its tags are
    key-tagged. Build-time constant strings are substituted in both modes.
    """
    baking = registry if langs else None
    fragments = extract_fragments(filename, source, normalizer_version=normalizer_version, tag=tag)

    edits: List[Tuple[int, int, str]] = []
    for fragment in fragments:
        if baking is not None:
            replacement = bake(fragment, baking, langs, tag=tag)
        else:
            replacement = tag_replacement(fragment, keep_children=keep_children, tag=tag)
        edits.append((replacement.start_byte, replacement.end_byte, replacement.render()))

    spans = [(fragment.start_byte, fragment.end_byte) for fragment in fragments]
    edits.extend(_constant_edits(source, spans, lang=langs[0] if baking is not None else None))

    output = source
    for start, end, text in sorted(edits, key=lambda edit: edit[0], reverse=True):
        output = output[:start] + text.encode("utf-8") + output[end:]
    _logger.debug("%s: %d replacement(s)", filename, len(edits))
    return output.decode("utf-8")


def _constant_edits(
    source: bytes, skip: Sequence[Tuple[int, int]], *, lang: Optional[str]
) -> List[Tuple[int, int, str]]:
    tree = parse_source(source)
    edits: List[Tuple[int, int, str]] = []
    for node in walk(tree.root_node):
        if node.type != "string":
            continue
        if any(start <= node.start_byte and node.end_byte <= end for start, end in skip):
            continue
        value = string_value(node, source)
        if value == IS_BAKED_CONSTANT:
            edits.append((node.start_byte, node.end_byte, "true" if lang else "false"))
        elif value == LANG_CONSTANT and lang:
            quote = node_text(node, source)[0]
            literal = json.dumps(lang, ensure_ascii=False)
            if quote == "'":
                literal = "'" + literal[1:-1].replace("'", "\\'") + "'"
            edits.append((node.start_byte, node.end_byte, literal))
    return edits


def bake_registry(registry: Registry, langs: Sequence[str], *, indent: str = "\t") -> str:
    """Reduce the registry module to the non-inlinable functions of the chosen language."""
    lines = [registry.preamble, "export default {\n"]
    for entry in registry.entries:
        function = None
        for lang in langs:
            function = entry.function(lang)
            if function is not None:
                break
        if function is None:
            raise LookupMissError(entry.key, langs)
        if function.inlinable:
            continue
        params = ", ".join(entry.deps)
        lines.append(f"{indent}{json.dumps(entry.key)}: ({params}) => {function.body},\n")
    lines.append("}\n")
    return "".join(lines)


__all__ = [
    "IS_BAKED_CONSTANT",
    "LANG_CONSTANT",
    "Replacement",
    "bake",
    "bake_registry",
    "key_deps_attributes",
    "tag_replacement",
    "transform_source",
]
