"""Tests for registry serialization."""

from __future__ import annotations

from jsxlate.models import Registry, RegistryEntry, TranslationFunction
from jsxlate.registry.parser import parse_registry
from jsxlate.registry.writer import DELETED_MARKER, NEW_MARKER, serialize_entry, serialize_registry

CANONICAL = (
    "const O = React.Fragment;\n"
    "\n"
    "export default {\n"
    '\t"abc123abc123": {\n'
    '\t\t"#comment": "greeting",\n'
    f"\t\t{NEW_MARKER}\n"
    '\t\t"_context": "menu",\n'
    '\t\t"en": () => <O>Hello</O>,\n'
    '\t\t"sv": () => <O>Hej</O>,\n'
    "\t},\n"
    "\n"
    '\t"def456def456": {\n'
    f"\t\t{DELETED_MARKER}\n"
    '\t\t"en": (name) => {\n'
    "\t\t\treturn (\n"
    "\t\t\t\t<O>Hi {name}</O>\n"
    "\t\t\t);\n"
    "\t\t},\n"
    "\t},\n"
    "}\n"
)


def test_canonical_registry_is_a_fixed_point() -> None:
    assert serialize_registry(parse_registry(CANONICAL)) == CANONICAL


def test_empty_registry() -> None:
    assert serialize_registry(Registry(preamble="// header\n")) == "// header\nexport default {\n}\n"


def test_entry_uses_configured_indent_and_keeps_unicode() -> None:
    entry = RegistryEntry(
        key="k",
        deps=["a", "b"],
        context="väg",
        functions=[TranslationFunction(lang="sv", kind="expression", body="<O>{a} och {b}</O>")],
    )

    assert serialize_entry(entry, indent="  ") == (
        '  "k": {\n'
        '    "_context": "väg",\n'
        '    "sv": (a, b) => <O>{a} och {b}</O>,\n'
        "  },\n"
    )
