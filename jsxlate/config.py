"""Configuration loading for jsxlate (.jsxlate.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .errors import ConfigError
from .normalizer import get_normalizer

CONFIG_FILENAME = ".jsxlate.yml"
INSERT_MODES = ("relative", "append")


@dataclass
class BuildConfig:
    """Settings for ``jsxlate build``."""

    lang: Optional[str] = None
    fallback_lang: Optional[str] = None
    keep_children: bool = True

    @property
    def langs(self) -> List[str]:
        """Candidate languages for baking, in priority order."""
        langs = [lang for lang in (self.lang, self.fallback_lang) if lang]
        return langs if self.lang else []


@dataclass
class JsxlateConfig:
    """Represents the settings defined in .jsxlate.yml."""

    root: Path
    langs: List[str] = field(default_factory=lambda: ["en"])
    src_dirs: List[str] = field(default_factory=lambda: ["src"])
    extensions: List[str] = field(default_factory=lambda: ["js", "jsx"])
    exclude_dirs: List[str] = field(default_factory=list)
    exclude_files: List[str] = field(default_factory=list)
    insert_mode: str = "relative"
    translations_file: str = "src/jsxlate-translations.js"
    import_file: str = "src/jsxlate.js"
    refs_file: str = ".jsxlate/refs.json"
    indent: str = "\t"
    normalizer_version: int = 0
    translation_tag: str = "T"
    marker_tag: str = "O"
    build: BuildConfig = field(default_factory=BuildConfig)

    @property
    def append(self) -> bool:
        return self.insert_mode == "append"

    @property
    def translations_path(self) -> Path:
        return self.root / self.translations_file

    @property
    def import_path(self) -> Path:
        return self.root / self.import_file

    @property
    def refs_path(self) -> Path:
        return self.root / self.refs_file

    def describe(self) -> Dict[str, str]:
        """Effective options, formatted for logging."""
        return {
            "langs": ",".join(self.langs),
            "src_dirs": ",".join(self.src_dirs),
            "extensions": ",".join(self.extensions),
            "insert mode": "append" if self.append else "relative insert",
            "translations_file": self.translations_file,
            "normalizer_version": str(self.normalizer_version),
        }


def load_config(config_path: Path, *, environ: Mapping[str, str] | None = None) -> JsxlateConfig:
    """Load configuration from disk, then apply ``JSXLATE_*`` environment overrides."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    env = os.environ if environ is None else environ

    data: Dict[str, Any] = {}
    if config_file.exists():
        loaded = _read_config(config_file)
        if not isinstance(loaded, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
        data = loaded

    config = JsxlateConfig(root=root)
    if "langs" in data:
        config.langs = _as_str_list(data.get("langs"))
    if "src_dirs" in data:
        config.src_dirs = _as_str_list(data.get("src_dirs"))
    if "extensions" in data:
        config.extensions = [ext.lstrip(".") for ext in _as_str_list(data.get("extensions"))]
    config.exclude_dirs = _as_str_list(data.get("exclude_dirs"))
    config.exclude_files = _as_str_list(data.get("exclude_files"))
    config.insert_mode = _as_str(data.get("insert_mode")) or config.insert_mode
    config.translations_file = _as_str(data.get("translations_file")) or config.translations_file
    config.import_file = _as_str(data.get("import_file")) or config.import_file
    config.refs_file = _as_str(data.get("refs_file")) or config.refs_file
    if "indent" in data:
        config.indent = _as_str(data.get("indent")) or ""
    if "normalizer_version" in data:
        config.normalizer_version = _as_version(data.get("normalizer_version"))
    config.translation_tag = _as_str(data.get("translation_tag")) or config.translation_tag
    config.marker_tag = _as_str(data.get("marker_tag")) or config.marker_tag

    build_data = _as_dict(data.get("build"))
    if build_data:
        keep_children = _as_bool(build_data.get("keep_children"))
        config.build = BuildConfig(
            lang=_as_str(build_data.get("lang")),
            fallback_lang=_as_str(build_data.get("fallback_lang")),
            keep_children=True if keep_children is None else keep_children,
        )

    _apply_env(config, env)
    _validate(config)
    return config


def _apply_env(config: JsxlateConfig, env: Mapping[str, str]) -> None:
    if env.get("JSXLATE_LANGS"):
        config.langs = [lang.strip() for lang in env["JSXLATE_LANGS"].split(",") if lang.strip()]
    if env.get("JSXLATE_TRANSLATIONS_FILE"):
        config.translations_file = env["JSXLATE_TRANSLATIONS_FILE"]
    if env.get("JSXLATE_NORMALIZER_VERSION"):
        config.normalizer_version = _as_version(env["JSXLATE_NORMALIZER_VERSION"])
    if env.get("JSXLATE_INSERT_MODE"):
        config.insert_mode = env["JSXLATE_INSERT_MODE"]
    if env.get("JSXLATE_BAKE_LANG"):
        config.build.lang = env["JSXLATE_BAKE_LANG"]
    if env.get("JSXLATE_FALLBACK_LANG"):
        config.build.fallback_lang = env["JSXLATE_FALLBACK_LANG"]
    if env.get("JSXLATE_KEEP_CHILDREN"):
        keep_children = _as_bool(env["JSXLATE_KEEP_CHILDREN"])
        if keep_children is None:
            raise ConfigError(f"invalid JSXLATE_KEEP_CHILDREN value: {env['JSXLATE_KEEP_CHILDREN']!r}")
        config.build.keep_children = keep_children


def _validate(config: JsxlateConfig) -> None:
    if not config.langs:
        raise ConfigError("at least one language must be configured in 'langs'")
    if not config.src_dirs:
        raise ConfigError("at least one source directory must be configured in 'src_dirs'")
    if config.insert_mode not in INSERT_MODES:
        raise ConfigError(
            f"invalid insert_mode {config.insert_mode!r} (expected one of: {', '.join(INSERT_MODES)})"
        )
    if not config.indent:
        raise ConfigError("'indent' must not be empty")
    get_normalizer(config.normalizer_version)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_version(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ConfigError(f"invalid signature normalizer version: {value!r}")


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool)]
    return []


__all__ = ["BuildConfig", "CONFIG_FILENAME", "JsxlateConfig", "load_config"]
