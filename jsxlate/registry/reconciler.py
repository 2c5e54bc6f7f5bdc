"""Reconcile the translations registry against fragments observed in source.

Reconciliation discovers new keys, recomputes every entry's references, flags
entries without references as deleted (and restores them when references come
back), picks a diff-friendly insertion point for each new entry and finally
renders the registry text.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from ..logging import get_logger
from ..models import Fragment, Ref, Registry, RegistryEntry, TranslationFunction
from .writer import serialize_registry

_logger = get_logger("registry.reconciler")


@dataclass
class ReconcileOptions:
    """Knobs that influence reconciliation and serialization."""

    langs: Sequence[str] = ("en",)
    append: bool = False
    indent: str = "\t"
    patch_mode: bool = False
    marker_tag: str = "O"


@dataclass
class ReconcileResult:
    text: str
    added: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    restored: List[str] = field(default_factory=list)
    refs: Dict[str, List[Ref]] = field(default_factory=dict)


def reconcile(
    registry: Registry,
    observed: Mapping[str, Sequence[Fragment]],
    options: ReconcileOptions,
    *,
    file_exists: Callable[[str], bool] = os.path.exists,
) -> ReconcileResult:
    """Update ``registry`` in place from ``observed`` fragments and render it.

    ``observed`` maps every file scanned during this run to the fragments found
    in it (an empty list for scanned files without fragments). Files are
    processed in sorted path order.
    """
    known = set(registry.keys())
    seen_refs: Dict[str, List[Ref]] = {}
    new_entries: Dict[str, RegistryEntry] = {}

    for path in sorted(observed):
        for fragment in observed[path]:
            ref = Ref(path, fragment.line)
            seen_refs.setdefault(fragment.key, []).append(ref)
            if fragment.key in known:
                continue
            entry = new_entries.get(fragment.key)
            if entry is None:
                entry = new_entry(fragment, options)
                new_entries[fragment.key] = entry
            entry.refs.append(ref)

    result = ReconcileResult(text="")
    exists_cache: Dict[str, bool] = {}

    def exists(path: str) -> bool:
        if path not in exists_cache:
            exists_cache[path] = file_exists(path)
        return exists_cache[path]

    for entry in registry.entries:
        refs = [ref for ref in entry.refs if ref.path not in observed and exists(ref.path)]
        refs.extend(seen_refs.get(entry.key, []))
        entry.refs = sorted(set(refs))

        if options.patch_mode:
            continue
        if not entry.refs and not entry.is_deleted:
            entry.is_deleted = True
            result.deleted.append(entry.key)
        elif entry.refs and entry.is_deleted:
            entry.is_deleted = False
            result.restored.append(entry.key)

    for key, entry in new_entries.items():
        entry.refs = sorted(set(entry.refs))
        if options.append:
            registry.entries.append(entry)
        else:
            index = insertion_index(registry.entries, entry.refs[0])
            _logger.debug("Inserting new entry %s at position %d", key, index)
            registry.entries.insert(index, entry)
        result.added.append(key)

    result.text = serialize_registry(registry, options.indent)
    result.refs = registry.refs_by_key()
    return result


def new_entry(fragment: Fragment, options: ReconcileOptions) -> RegistryEntry:
    """Build the ``_new`` stub entry for a key seen for the first time."""
    if fragment.is_multiline:
        kind = "block"
        body = _block_template(fragment.lines, options.indent, options.marker_tag)
    else:
        kind = "expression"
        marker = options.marker_tag
        body = f"<{marker}>{fragment.body}</{marker}>"
    return RegistryEntry(
        key=fragment.key,
        deps=list(fragment.deps),
        context=fragment.context,
        is_new=True,
        functions=[TranslationFunction(lang=lang, kind=kind, body=body) for lang in options.langs],
    )


def _block_template(lines: Sequence[str], indent: str, marker: str) -> str:
    remaining = list(lines)
    last_line = remaining.pop() if remaining else ""
    first_line = remaining.pop(0) if remaining else ""
    tab2, tab3, tab4 = indent * 2, indent * 3, indent * 4
    out = ["{\n", f"{tab3}return (\n", f"{tab4}<{marker}>{first_line}\n"]
    out.extend(f"{tab4}{line}\n" for line in remaining)
    out.append(f"{tab4}{last_line}</{marker}>\n")
    out.append(f"{tab3});\n")
    out.append(f"{tab2}}}")
    return "".join(out)


def insertion_index(entries: Sequence[RegistryEntry], ref: Ref) -> int:
    """Return the list position at which an entry referenced at ``ref`` belongs.

    Precedence: right after the entry holding the closest preceding reference in
    the same file; else right before the entry holding the lowest reference in
    the same file; else right after the entry holding the last reference of the
    closest preceding file; else the front.
    """
    best_distance: Optional[int] = None
    best_index: Optional[int] = None
    lowest_line: Optional[int] = None
    lowest_index: Optional[int] = None
    closest: Optional[Ref] = None
    closest_index: Optional[int] = None

    for index, entry in enumerate(entries):
        for existing in entry.refs:
            if existing.path != ref.path:
                if existing.path < ref.path and (closest is None or existing >= closest):
                    closest = existing
                    closest_index = index
                continue

            if lowest_line is None or existing.line < lowest_line:
                lowest_line = existing.line
                lowest_index = index

            distance = ref.line - existing.line
            if distance < 1:
                continue
            if best_distance is None or distance < best_distance:
                best_distance = distance
                best_index = index

    if best_index is not None:
        return best_index + 1
    if lowest_index is not None:
        return lowest_index
    if closest_index is not None:
        return closest_index + 1
    return 0


__all__ = [
    "ReconcileOptions",
    "ReconcileResult",
    "insertion_index",
    "new_entry",
    "reconcile",
]
