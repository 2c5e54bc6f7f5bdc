"""Serialization of a :class:`~jsxlate.models.Registry` back to module text."""

from __future__ import annotations

import json

from ..models import Registry, RegistryEntry

NEW_MARKER = '"_new": true, // FIXME remove this line when translation is done'
DELETED_MARKER = (
    '"_deleted": true, // FIXME translation has no references; '
    "delete this entire section if you no longer need it"
)


def _json(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def serialize_entry(entry: RegistryEntry, indent: str = "\t") -> str:
    tab1, tab2 = indent, indent * 2
    parts = [f"{tab1}{_json(entry.key)}: {{\n"]
    for metadata in entry.metadata:
        parts.append(f"{tab2}{metadata},\n")
    if entry.is_new:
        parts.append(f"{tab2}{NEW_MARKER}\n")
    if entry.is_deleted:
        parts.append(f"{tab2}{DELETED_MARKER}\n")
    if entry.context:
        parts.append(f"{tab2}\"_context\": {_json(entry.context)},\n")
    params = ", ".join(entry.deps)
    for function in entry.functions:
        parts.append(f"{tab2}{_json(function.lang)}: ({params}) => {function.body},\n")
    parts.append(f"{tab1}}},\n")
    return "".join(parts)


def serialize_registry(registry: Registry, indent: str = "\t") -> str:
    """Render ``registry`` as module text: preamble, then the default export."""
    blocks = [serialize_entry(entry, indent) for entry in registry.entries]
    return registry.preamble + "export default {\n" + "\n".join(blocks) + "}\n"


__all__ = ["DELETED_MARKER", "NEW_MARKER", "serialize_entry", "serialize_registry"]
