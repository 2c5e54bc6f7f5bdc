"""Source tree scanning for files that may contain translation tags."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .logging import get_logger

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".jsxlate",
}

_logger = get_logger("scanner")


@dataclass(frozen=True)
class SourceFile:
    """A scanned source file: root-relative POSIX path plus raw bytes."""

    path: str
    source: bytes


@dataclass(frozen=True)
class IgnoreRule:
    """One ``.gitignore`` pattern."""

    pattern: str
    directory_only: bool = False
    anchored: bool = False
    negate: bool = False

    @classmethod
    def parse(cls, line: str) -> Optional["IgnoreRule"]:
        line = line.strip()
        if not line or line.startswith("#"):
            return None
        negate = line.startswith("!")
        pattern = line[1:] if negate else line
        directory_only = pattern.endswith("/")
        pattern = pattern.rstrip("/")
        # a slash anywhere but the end anchors the pattern to the root
        anchored = "/" in pattern
        pattern = pattern.lstrip("/")
        if not pattern:
            return None
        return cls(pattern, directory_only=directory_only, anchored=anchored, negate=negate)

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        if self.anchored:
            return fnmatchcase(rel_path, self.pattern)
        return fnmatchcase(rel_path.rsplit("/", 1)[-1], self.pattern)


class IgnoreRules:
    """Ordered ``.gitignore`` rules of a project root; the last matching rule wins."""

    def __init__(self, rules: Sequence[IgnoreRule] = ()) -> None:
        self.rules = list(rules)

    @classmethod
    def load(cls, root: Path) -> "IgnoreRules":
        path = root / ".gitignore"
        if not path.is_file():
            return cls()
        lines = path.read_text(encoding="utf-8").splitlines()
        return cls([rule for rule in map(IgnoreRule.parse, lines) if rule is not None])

    def ignores(self, rel_path: str, is_dir: bool) -> bool:
        ignored = False
        for rule in self.rules:
            if rule.matches(rel_path, is_dir):
                ignored = not rule.negate
        return ignored


class RepoScanner:
    """Collects source files below the configured source directories."""

    def __init__(
        self,
        *,
        src_dirs: Sequence[str] = ("src",),
        extensions: Sequence[str] = ("js", "jsx"),
        exclude_dirs: Sequence[str] = (),
        exclude_files: Sequence[str] = (),
    ) -> None:
        self.src_dirs = list(src_dirs)
        self.suffixes = {"." + ext.lower().lstrip(".") for ext in extensions}
        self.skip_dirs = _EXCLUDED_DIRS | set(exclude_dirs)
        self.skip_files = set(exclude_files)

    def scan(self, root: str | Path) -> List[SourceFile]:
        """Return matching files sorted by their root-relative path."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {root}")

        ignore = IgnoreRules.load(root_path)
        found: Dict[str, Path] = {}
        for src_dir in self.src_dirs:
            start = (root_path / src_dir).resolve()
            if not start.exists():
                raise FileNotFoundError(f"Source directory not found: {src_dir}")
            for rel_path, path in self._walk(root_path, start, ignore):
                found[rel_path] = path

        files = [SourceFile(path=rel_path, source=found[rel_path].read_bytes()) for rel_path in sorted(found)]
        _logger.debug("Scanned %d source file(s) below %s", len(files), ", ".join(self.src_dirs))
        return files

    def _walk(self, root: Path, start: Path, ignore: IgnoreRules) -> Iterator[Tuple[str, Path]]:
        if start.is_file():
            rel_path = start.relative_to(root).as_posix()
            if self._accepts(rel_path, ignore):
                yield rel_path, start
            return

        for dirpath, dirnames, filenames in os.walk(start):
            base = Path(dirpath).relative_to(root).as_posix()
            dirnames[:] = [
                name
                for name in dirnames
                if name not in self.skip_dirs and not ignore.ignores(_join(base, name), True)
            ]
            for filename in filenames:
                rel_path = _join(base, filename)
                if self._accepts(rel_path, ignore):
                    yield rel_path, Path(dirpath) / filename

    def _accepts(self, rel_path: str, ignore: IgnoreRules) -> bool:
        name = rel_path.rsplit("/", 1)[-1]
        if name in self.skip_files or Path(name).suffix.lower() not in self.suffixes:
            return False
        return not ignore.ignores(rel_path, False)


def _join(base: str, name: str) -> str:
    return name if base == "." else f"{base}/{name}"


__all__ = ["IgnoreRule", "IgnoreRules", "RepoScanner", "SourceFile"]
