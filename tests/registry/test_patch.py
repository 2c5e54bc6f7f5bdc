"""Tests for the translator export/import document."""

from __future__ import annotations

import json

import pytest

from jsxlate.errors import PatchError
from jsxlate.registry.parser import parse_registry
from jsxlate.registry.patch import (
    Attribute,
    ExprAttributeValue,
    ExprNode,
    PatchDocument,
    PatchEntry,
    TagNode,
    TextAttributeValue,
    TextNode,
    TranslationPatch,
    apply_patch,
    export_patch,
    marker_ranges,
    node_to_code,
    quoteattr,
)

REGISTRY = (
    "export default {\n"
    '\t"k1": {\n'
    '\t\t"_new": true,\n'
    '\t\t"en": (url) => <O>Hello <a href="/world" title={url}>world</a>{"!"}</O>,\n'
    '\t\t"sv": (url) => <O>Hej <a href="/world" title={url}>världen</a>{"!"}</O>,\n'
    "\t},\n"
    "\n"
    '\t"k2": {\n'
    '\t\t"en": (x) => {\n'
    "\t\t\tif (x) return <O>one</O>;\n"
    "\t\t\treturn <O>two</O>;\n"
    "\t\t},\n"
    "\t},\n"
    "}\n"
)


def _document(key: str, lang: str, *markers, is_new=None) -> PatchDocument:
    return PatchDocument(
        entries=[
            PatchEntry(
                key=key,
                is_new=is_new,
                translations=[TranslationPatch(lang=lang, markers=list(markers))],
            )
        ]
    )


def test_export_describes_marker_children() -> None:
    document = export_patch(parse_registry(REGISTRY))

    first = document.entries[0]
    assert first.key == "k1"
    assert first.is_new is True
    assert [translation.lang for translation in first.translations] == ["en", "sv"]
    assert first.translations[0].markers == [
        [
            TextNode(value="Hello "),
            TagNode(
                name="a",
                attributes=[
                    Attribute(name="href", value=TextAttributeValue(value="/world")),
                    Attribute(name="title", value=ExprAttributeValue(code="{url}")),
                ],
                children=[TextNode(value="world")],
            ),
            ExprNode(code='{"!"}'),
        ]
    ]
    assert len(document.entries[1].translations[0].markers) == 2


def test_export_document_survives_json() -> None:
    document = export_patch(parse_registry(REGISTRY))
    restored = PatchDocument.model_validate_json(document.model_dump_json())
    assert restored == document


def test_import_replaces_marker_contents() -> None:
    registry = parse_registry(REGISTRY)
    document = _document(
        "k1",
        "sv",
        [TextNode(value="Hallå "), TagNode(name="i", children=[TextNode(value="världen")])],
        is_new=False,
    )

    patched = apply_patch(registry, document)

    assert patched == ["k1"]
    entry = registry.get("k1")
    assert entry.is_new is False
    assert entry.function("sv").body == "<O>Hallå <i>världen</i></O>"
    assert entry.function("en").body.startswith("<O>Hello ")


def test_import_patches_every_marker_of_a_block_body() -> None:
    registry = parse_registry(REGISTRY)

    apply_patch(registry, _document("k2", "en", [TextNode(value="uno")], [TextNode(value="dos")]))

    body = registry.get("k2").function("en").body
    assert "return <O>uno</O>;" in body
    assert "return <O>dos</O>;" in body


def test_import_rejects_marker_count_mismatch() -> None:
    registry = parse_registry(REGISTRY)
    with pytest.raises(PatchError, match="unexpected number of <O>-tags"):
        apply_patch(registry, _document("k2", "en", [TextNode(value="only one")]))


def test_import_rejects_multiple_markers_for_expression_body() -> None:
    registry = parse_registry(
        'export default {\n\t"k": {\n\t\t"en": () => <div><O>a</O><O>b</O></div>,\n\t},\n}\n'
    )
    with pytest.raises(PatchError, match="expression function body"):
        apply_patch(registry, _document("k", "en", [TextNode(value="x")], [TextNode(value="y")]))


def test_import_skips_unknown_keys_and_languages() -> None:
    registry = parse_registry(REGISTRY)
    document = PatchDocument.model_validate_json(
        json.dumps(
            {
                "entries": [
                    {"key": "missing", "translations": []},
                    {"key": "k1", "translations": [{"lang": "de", "markers": [[{"type": "text", "value": "x"}]]}]},
                ]
            }
        )
    )

    assert apply_patch(registry, document) == ["k1"]
    assert registry.get("k1").function("de") is None


def test_node_to_code() -> None:
    assert node_to_code(TagNode(name="br")) == "<br/>"
    assert node_to_code(TextNode(value="a\nb")) == "a\n\t\t\t\tb"
    assert node_to_code(TextNode(value="a\r\nb"), indent="  ") == "a\n        b"
    tag = TagNode(
        name="a",
        attributes=[
            Attribute(name="href", value=TextAttributeValue(value='say "hi"')),
            Attribute(name="onClick", value=ExprAttributeValue(code="{go}")),
            Attribute(name="hidden"),
        ],
        children=[ExprNode(code="{name}")],
    )
    assert node_to_code(tag) == '<a href="say &quot;hi&quot;" onClick={go} hidden>{name}</a>'


def test_quoteattr() -> None:
    assert quoteattr("<a & 'b'>") == "&lt;a &amp; &apos;b&apos;&gt;"
    assert quoteattr("line\nbreak") == "line&#13;break"


def test_marker_ranges_are_character_offsets() -> None:
    body = "<div>å<O>x</O></div>"
    ((start, end),) = marker_ranges(body)
    assert body[start:end] == "<O>x</O>"


def test_marker_ranges_reject_unparsable_body() -> None:
    with pytest.raises(PatchError, match="does not parse"):
        marker_ranges("<O>broken</O")
