"""Renders the starter files written by ``jsxlate init``."""

from __future__ import annotations

import os
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from .config import JsxlateConfig

TEMPLATES_DIR = Path(__file__).with_name("templates")


class StubBuilder:
    """Fills the translations and import file templates for a configuration."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def render_translations(self, config: JsxlateConfig) -> str:
        template = self._env.get_template("translations.js.j2")
        return template.render(
            marker_tag=config.marker_tag,
            default_lang=config.langs[0],
            import_file=config.import_file,
        )

    def render_import(self, config: JsxlateConfig) -> str:
        template = self._env.get_template("import.js.j2")
        return template.render(
            translations_import=module_specifier(config.import_path, config.translations_path),
            default_lang=config.langs[0],
            translation_tag=config.translation_tag,
        )


def module_specifier(importer: Path, target: Path) -> str:
    """Return the relative, extension-less import specifier for ``target``."""
    relative = Path(os.path.relpath(target, importer.parent))
    specifier = relative.with_suffix("").as_posix()
    if not specifier.startswith("."):
        specifier = "./" + specifier
    return specifier


__all__ = ["StubBuilder", "module_specifier"]
