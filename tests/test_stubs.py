"""Tests for the init file templates."""

from __future__ import annotations

from pathlib import Path

from jsxlate.config import load_config
from jsxlate.registry.parser import parse_registry
from jsxlate.stubs import StubBuilder, module_specifier


def test_module_specifier() -> None:
    root = Path("/project")
    assert module_specifier(root / "src" / "jsxlate.js", root / "src" / "jsxlate-translations.js") == (
        "./jsxlate-translations"
    )
    assert module_specifier(root / "src" / "jsxlate.js", root / "src" / "i18n" / "t.js") == "./i18n/t"
    assert module_specifier(root / "src" / "app" / "jsxlate.js", root / "src" / "t.js") == "../t"


def test_translations_stub_is_an_empty_registry(tmp_path: Path) -> None:
    (tmp_path / ".jsxlate.yml").write_text("langs: [sv, en]\nmarker_tag: Out\n", encoding="utf-8")
    config = load_config(tmp_path, environ={})

    text = StubBuilder().render_translations(config)

    registry = parse_registry(text)
    assert registry.entries == []
    assert "const Out = React.Fragment;" in registry.preamble
    assert '"sv": () => <Out>Hello world!</Out>' in text
    assert text.endswith("export default {\n}\n")


def test_import_stub_wires_translations_and_tag(tmp_path: Path) -> None:
    (tmp_path / ".jsxlate.yml").write_text(
        "langs: [sv]\ntranslation_tag: Trans\ntranslations_file: src/i18n/translations.js\n",
        encoding="utf-8",
    )
    config = load_config(tmp_path, environ={})

    text = StubBuilder().render_import(config)

    assert "import translations from './i18n/translations';" in text
    assert 'default_lang: "sv",' in text
    assert 'if ("JSXLATE_IS_BAKED") {' in text
    assert 'lang: "JSXLATE_LANG",' in text
    assert "export { Trans, Provider, Consumer }" in text
