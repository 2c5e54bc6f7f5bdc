"""Tests for reconciling the registry with observed fragments."""

from __future__ import annotations

import pytest

from jsxlate.models import Fragment, Ref, RegistryEntry
from jsxlate.registry.parser import parse_registry
from jsxlate.registry.reconciler import ReconcileOptions, insertion_index, new_entry, reconcile
from jsxlate.registry.writer import DELETED_MARKER, NEW_MARKER

EMPTY = "export default {\n}\n"


def _fragment(key: str, path: str, line: int, body: str = "Hello", **kwargs) -> Fragment:
    kwargs.setdefault("lines", (body,))
    return Fragment(
        key=key,
        signature="",
        body=body,
        context=kwargs.pop("context", ""),
        deps=kwargs.pop("deps", ()),
        is_multiline=kwargs.pop("is_multiline", False),
        path=path,
        line=line,
        **kwargs,
    )


def _entry(key: str, *refs: Ref) -> RegistryEntry:
    return RegistryEntry(key=key, refs=list(refs))


def _always(_path: str) -> bool:
    return True


def test_new_fragment_gets_stub_for_every_language() -> None:
    registry = parse_registry(EMPTY)
    observed = {"src/App.jsx": [_fragment("k1", "src/App.jsx", 3)]}

    result = reconcile(registry, observed, ReconcileOptions(langs=["en", "sv"]), file_exists=_always)

    assert result.text == (
        "export default {\n"
        '\t"k1": {\n'
        f"\t\t{NEW_MARKER}\n"
        '\t\t"en": () => <O>Hello</O>,\n'
        '\t\t"sv": () => <O>Hello</O>,\n'
        "\t},\n"
        "}\n"
    )
    assert result.added == ["k1"]
    assert result.refs == {"k1": [Ref("src/App.jsx", 3)]}


def test_reconcile_is_idempotent() -> None:
    observed = {
        "src/App.jsx": [_fragment("k1", "src/App.jsx", 3), _fragment("k2", "src/App.jsx", 9, "Bye")],
        "src/Menu.jsx": [_fragment("k1", "src/Menu.jsx", 1)],
    }
    options = ReconcileOptions(langs=["en"])
    first = reconcile(parse_registry(EMPTY), observed, options, file_exists=_always)
    second = reconcile(parse_registry(first.text), observed, options, file_exists=_always)

    assert second.text == first.text
    assert second.added == [] and second.deleted == [] and second.restored == []
    assert second.refs["k1"] == [Ref("src/App.jsx", 3), Ref("src/Menu.jsx", 1)]


def test_entry_without_refs_is_flagged_deleted_then_restored() -> None:
    registry = parse_registry('export default {\n\t"k1": {\n\t\t"en": () => <O>Hello</O>,\n\t},\n}\n')
    registry.get("k1").refs = [Ref("src/App.jsx", 3)]

    gone = reconcile(registry, {"src/App.jsx": []}, ReconcileOptions(), file_exists=_always)
    assert gone.deleted == ["k1"]
    assert DELETED_MARKER in gone.text

    back = reconcile(
        parse_registry(gone.text),
        {"src/App.jsx": [_fragment("k1", "src/App.jsx", 7)]},
        ReconcileOptions(),
        file_exists=_always,
    )
    assert back.restored == ["k1"]
    assert DELETED_MARKER not in back.text
    assert back.refs == {"k1": [Ref("src/App.jsx", 7)]}


def test_refs_in_unscanned_files_survive_only_while_the_file_exists() -> None:
    text = 'export default {\n\t"k1": {\n\t\t"en": () => <O>Hello</O>,\n\t},\n}\n'
    observed = {"src/App.jsx": []}

    registry = parse_registry(text)
    registry.get("k1").refs = [Ref("src/Other.jsx", 4)]
    kept = reconcile(registry, observed, ReconcileOptions(), file_exists=_always)
    assert kept.deleted == []
    assert kept.refs == {"k1": [Ref("src/Other.jsx", 4)]}

    registry = parse_registry(text)
    registry.get("k1").refs = [Ref("src/Other.jsx", 4)]
    dropped = reconcile(registry, observed, ReconcileOptions(), file_exists=lambda path: False)
    assert dropped.deleted == ["k1"]


def test_patch_mode_never_flags_entries() -> None:
    registry = parse_registry('export default {\n\t"k1": {\n\t\t"en": () => <O>Hello</O>,\n\t},\n}\n')

    result = reconcile(registry, {}, ReconcileOptions(patch_mode=True), file_exists=_always)

    assert result.deleted == []
    assert DELETED_MARKER not in result.text


def test_new_entry_lands_between_neighbours() -> None:
    registry = parse_registry(
        'export default {\n\t"a": {\n\t\t"en": () => <O>a</O>,\n\t},\n\n\t"b": {\n\t\t"en": () => <O>b</O>,\n\t},\n}\n'
    )
    registry.get("a").refs = [Ref("fileA", 10)]
    registry.get("b").refs = [Ref("fileA", 30)]
    observed = {
        "fileA": [
            _fragment("a", "fileA", 10, "a"),
            _fragment("c", "fileA", 20, "c"),
            _fragment("b", "fileA", 30, "b"),
        ]
    }

    result = reconcile(registry, observed, ReconcileOptions(), file_exists=_always)

    assert registry.keys() == ["a", "c", "b"]
    assert result.added == ["c"]


def test_append_mode_puts_new_entries_last() -> None:
    registry = parse_registry(
        'export default {\n\t"a": {\n\t\t"en": () => <O>a</O>,\n\t},\n\n\t"b": {\n\t\t"en": () => <O>b</O>,\n\t},\n}\n'
    )
    observed = {
        "fileA": [
            _fragment("a", "fileA", 10, "a"),
            _fragment("c", "fileA", 20, "c"),
            _fragment("b", "fileA", 30, "b"),
        ]
    }

    reconcile(registry, observed, ReconcileOptions(append=True), file_exists=_always)

    assert registry.keys() == ["a", "b", "c"]


@pytest.mark.parametrize(
    ("ref", "expected"),
    [
        (Ref("fileB", 20), 1),  # closest preceding line in the same file
        (Ref("fileB", 99), 3),
        (Ref("fileB", 1), 0),  # before the lowest line in the same file
        (Ref("fileC", 1), 3),  # after the last ref of the closest preceding file
        (Ref("fileA", 1), 0),
    ],
)
def test_insertion_index(ref: Ref, expected: int) -> None:
    entries = [
        _entry("x", Ref("fileB", 10)),
        _entry("y", Ref("fileB", 30)),
        _entry("z", Ref("fileB", 40)),
    ]
    assert insertion_index(entries, ref) == expected


def test_new_multiline_entry_uses_block_template() -> None:
    fragment = _fragment(
        "k",
        "src/App.jsx",
        3,
        "\n    Hello\n    {name}\n  ",
        deps=("name",),
        is_multiline=True,
        lines=("", "  Hello", "  {name}", ""),
    )

    entry = new_entry(fragment, ReconcileOptions(langs=["en"]))

    assert entry.is_new is True
    assert entry.deps == ["name"]
    (function,) = entry.functions
    assert function.kind == "block"
    assert function.body == (
        "{\n"
        "\t\t\treturn (\n"
        "\t\t\t\t<O>\n"
        "\t\t\t\t  Hello\n"
        "\t\t\t\t  {name}\n"
        "\t\t\t\t</O>\n"
        "\t\t\t);\n"
        "\t\t}"
    )
