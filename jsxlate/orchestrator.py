"""Pipeline orchestration for init/update/hashes/export/import/rekey/build flows."""

from __future__ import annotations

import difflib
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from .bake import bake_registry, transform_source
from .config import JsxlateConfig, load_config
from .errors import ConfigError, RekeyError
from .fragments import extract_fragments
from .logging import get_logger
from .models import Fragment, Registry
from .registry.parser import parse_registry
from .registry.patch import PatchDocument, apply_patch, export_patch
from .registry.reconciler import ReconcileOptions, ReconcileResult, reconcile
from .repo_scanner import RepoScanner, SourceFile
from .stores import RefsStore
from .stubs import StubBuilder
from .utils import atomic_write, relative_posix

DEFAULT_EXPORT_FILENAME = "jsxlate-export.json"
DEFAULT_BUILD_DIR = "build/jsxlate"


@dataclass
class UpdateOutcome:
    """Result of a registry write-back."""

    path: Path
    diff: str
    dry_run: bool
    added: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    restored: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.diff)


@dataclass
class RekeyOutcome:
    """Result of migrating registry keys to another normalizer version."""

    remap: Dict[str, str]
    update: UpdateOutcome


class Orchestrator:
    """Coordinates the jsxlate pipelines over one project root."""

    def __init__(
        self,
        stub_builder: StubBuilder | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.stub_builder = stub_builder or StubBuilder()
        self.environ = environ
        self.logger = get_logger("orchestrator")

    def load_config(self, path: str | Path) -> JsxlateConfig:
        root = Path(path).expanduser().resolve()
        if not root.exists():
            raise FileNotFoundError(f"Project path not found: {path}")
        config = load_config(root, environ=self.environ)
        for name, value in config.describe().items():
            self.logger.debug("option %s: %s", name, value)
        return config

    def run_init(self, path: str | Path) -> List[Path]:
        """Create the translations and import files when they are missing."""
        config = self.load_config(path)
        targets = (
            (config.translations_path, self.stub_builder.render_translations),
            (config.import_path, self.stub_builder.render_import),
        )
        created: List[Path] = []
        for target, render in targets:
            if target.exists():
                self.logger.info("%s already exists; leaving it alone", target)
                continue
            atomic_write(target, render(config))
            self.logger.info("Created %s", target)
            created.append(target)
        if not created:
            raise FileExistsError(
                f"{config.translations_file} and {config.import_file} already exist"
            )
        return created

    def run_update(
        self,
        path: str | Path,
        *,
        append: Optional[bool] = None,
        dry_run: bool = False,
    ) -> UpdateOutcome:
        """Scan sources and reconcile the translations registry with them."""
        config = self.load_config(path)
        registry, original = self._load_registry(config)
        store = RefsStore(config.refs_path)
        store.apply_to(registry)

        observed = self._collect(config, self._scan(config), config.normalizer_version)
        options = self._reconcile_options(config, append=append)
        result = reconcile(registry, observed, options, file_exists=self._exists_in(config.root))
        return self._commit(config, original, result, store, dry_run=dry_run)

    def dump_hashes(self, path: str | Path) -> List[str]:
        """Return ``path:line<TAB>key`` for every fragment, sorted by location."""
        config = self.load_config(path)
        observed = self._collect(config, self._scan(config), config.normalizer_version)
        fragments = [fragment for items in observed.values() for fragment in items]
        fragments.sort(key=lambda fragment: fragment.loc)
        return [f"{fragment.loc}\t{fragment.key}" for fragment in fragments]

    def run_export(self, path: str | Path, output: str | Path | None = None) -> Path:
        """Write the marker contents of every translation to a JSON patch document."""
        config = self.load_config(path)
        registry, _ = self._load_registry(config)
        document = export_patch(registry, marker_tag=config.marker_tag)
        target = Path(output) if output is not None else config.root / DEFAULT_EXPORT_FILENAME
        atomic_write(target, document.model_dump_json(indent=2) + "\n")
        self.logger.info("Exported %d entries to %s", len(document.entries), target)
        return target

    def run_import(self, path: str | Path, patch_path: str | Path, *, dry_run: bool = False) -> UpdateOutcome:
        """Splice a patch document into the registry without touching flags or refs."""
        config = self.load_config(path)
        document = PatchDocument.model_validate_json(Path(patch_path).read_text(encoding="utf-8"))
        registry, original = self._load_registry(config)
        store = RefsStore(config.refs_path)
        store.apply_to(registry)

        patched = apply_patch(registry, document, marker_tag=config.marker_tag, indent=config.indent)
        self.logger.info("Patched %d entries", len(patched))
        options = self._reconcile_options(config, patch_mode=True)
        result = reconcile(registry, {}, options, file_exists=self._exists_in(config.root))
        return self._commit(config, original, result, store, dry_run=dry_run)

    def run_rekey(
        self,
        path: str | Path,
        old_version: int,
        new_version: int,
        *,
        dry_run: bool = False,
    ) -> RekeyOutcome:
        """Migrate registry keys computed with ``old_version`` to ``new_version``."""
        config = self.load_config(path)
        registry, original = self._load_registry(config)
        store = RefsStore(config.refs_path)
        store.apply_to(registry)

        files = self._scan(config)
        old = self._collect(config, files, old_version)
        new = self._collect(config, files, new_version)
        keymap = _build_keymap(old, new)

        remap = registry.map_keys(keymap)
        options = self._reconcile_options(config)
        result = reconcile(registry, new, options, file_exists=self._exists_in(config.root))
        outcome = self._commit(config, original, result, store, dry_run=dry_run)
        if config.normalizer_version != new_version:
            self.logger.warning(
                "Set normalizer_version: %d in .jsxlate.yml to keep using the migrated keys",
                new_version,
            )
        return RekeyOutcome(remap=remap, update=outcome)

    def run_build(
        self,
        path: str | Path,
        files: Sequence[str | Path],
        *,
        out_dir: str | Path | None = None,
    ) -> List[Path]:
        """Key-tag or bake ``files`` and write the results below ``out_dir``."""
        config = self.load_config(path)
        langs = config.build.langs
        registry: Registry | None = None
        if langs:
            if not config.translations_path.exists():
                raise ConfigError(
                    f"baking with lang {config.build.lang!r} requires the translations file "
                    f"{config.translations_file} to exist"
                )
            registry, _ = self._load_registry(config)
            self.logger.info("Baking language(s) %s", ", ".join(langs))

        target_root = Path(out_dir) if out_dir is not None else config.root / DEFAULT_BUILD_DIR
        written: List[Path] = []
        for item in files:
            source_path = Path(item)
            if not source_path.is_absolute():
                source_path = config.root / source_path
            rel = relative_posix(source_path, config.root)
            source = source_path.read_bytes()
            if registry is not None and _same_file(source_path, config.translations_path):
                output = bake_registry(registry, langs, indent=config.indent)
            else:
                output = transform_source(
                    rel,
                    source,
                    registry=registry,
                    langs=langs,
                    keep_children=config.build.keep_children,
                    normalizer_version=config.normalizer_version,
                    tag=config.translation_tag,
                )
            target = target_root / rel
            atomic_write(target, output)
            written.append(target)
        self.logger.info("Wrote %d file(s) to %s", len(written), target_root)
        return written

    # ------------------------------------------------------------------
    # Internal helpers

    def _scan(self, config: JsxlateConfig) -> List[SourceFile]:
        scanner = RepoScanner(
            src_dirs=config.src_dirs,
            extensions=config.extensions,
            exclude_dirs=config.exclude_dirs,
            exclude_files=config.exclude_files,
        )
        registry_rel = relative_posix(config.translations_path, config.root)
        return [item for item in scanner.scan(config.root) if item.path != registry_rel]

    def _collect(
        self, config: JsxlateConfig, files: Sequence[SourceFile], version: int
    ) -> Dict[str, List[Fragment]]:
        observed: Dict[str, List[Fragment]] = {}
        for item in files:
            observed[item.path] = extract_fragments(
                item.path,
                item.source,
                normalizer_version=version,
                tag=config.translation_tag,
            )
        self.logger.debug(
            "Found %d fragments in %d files",
            sum(len(fragments) for fragments in observed.values()),
            len(observed),
        )
        return observed

    def _load_registry(self, config: JsxlateConfig) -> tuple[Registry, str]:
        registry_path = config.translations_path
        if not registry_path.exists():
            raise FileNotFoundError(
                f"{config.translations_file} not found. Run `jsxlate init` first."
            )
        text = registry_path.read_text(encoding="utf-8")
        registry = parse_registry(text, path=config.translations_file, tag=config.translation_tag)
        return registry, text

    @staticmethod
    def _reconcile_options(
        config: JsxlateConfig,
        *,
        append: Optional[bool] = None,
        patch_mode: bool = False,
    ) -> ReconcileOptions:
        return ReconcileOptions(
            langs=list(config.langs),
            append=config.append if append is None else append,
            indent=config.indent,
            patch_mode=patch_mode,
            marker_tag=config.marker_tag,
        )

    @staticmethod
    def _exists_in(root: Path) -> Callable[[str], bool]:
        def exists(rel_path: str) -> bool:
            return (root / rel_path).exists()

        return exists

    def _commit(
        self,
        config: JsxlateConfig,
        original: str,
        result: ReconcileResult,
        store: RefsStore,
        *,
        dry_run: bool,
    ) -> UpdateOutcome:
        registry_path = config.translations_path
        diff = self._diff(original, result.text, config.translations_file)
        outcome = UpdateOutcome(
            path=registry_path,
            diff=diff,
            dry_run=dry_run,
            added=list(result.added),
            deleted=list(result.deleted),
            restored=list(result.restored),
        )
        self.logger.info(
            "added: %d, deleted: %d, restored: %d",
            len(result.added),
            len(result.deleted),
            len(result.restored),
        )
        if dry_run:
            return outcome

        if result.text != original:
            atomic_write(registry_path, result.text)
            self.logger.info("Registry updated at %s", registry_path)
        store.replace(result.refs)
        store.persist()
        return outcome

    @staticmethod
    def _diff(original: str, updated: str, name: str) -> str:
        diff = difflib.unified_diff(
            original.splitlines(keepends=True),
            updated.splitlines(keepends=True),
            fromfile=f"{name} (original)",
            tofile=f"{name} (updated)",
        )
        return "".join(diff)


def _build_keymap(
    old: Mapping[str, Sequence[Fragment]], new: Mapping[str, Sequence[Fragment]]
) -> Dict[str, str]:
    keymap: Dict[str, str] = {}
    for path, old_fragments in old.items():
        for before, after in zip(old_fragments, new.get(path, [])):
            mapped = keymap.setdefault(before.key, after.key)
            if mapped != after.key:
                raise RekeyError(
                    f"key {before.key} maps to both {mapped} and {after.key} (at {after.loc})"
                )
    return keymap


def _same_file(a: Path, b: Path) -> bool:
    try:
        return os.path.samefile(a, b)
    except FileNotFoundError:
        return False


__all__ = ["Orchestrator", "RekeyOutcome", "UpdateOutcome"]
