"""Core data models for fragments and the translations registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, NamedTuple, Optional, Tuple

from .errors import RekeyError
from .logging import get_logger


class Ref(NamedTuple):
    """A source location referencing a registry key."""

    path: str
    line: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}"


@dataclass(frozen=True)
class Fragment:
    """One ``<T>`` occurrence found while scanning a source file."""

    key: str
    signature: str
    body: str
    context: str
    deps: Tuple[str, ...]
    is_multiline: bool
    lines: Tuple[str, ...]
    path: str
    line: int
    start_byte: int = 0
    end_byte: int = 0
    key_attribute: Optional[str] = None

    @property
    def loc(self) -> Ref:
        return Ref(self.path, self.line)


@dataclass
class TranslationFunction:
    """A per-language arrow function stored in the registry."""

    lang: str
    kind: str
    body: str
    inlinable: bool = False
    inline_children: str = ""
    line: Optional[int] = None


@dataclass
class RegistryEntry:
    """A single key's record in the translations registry."""

    key: str
    deps: List[str] = field(default_factory=list)
    context: str = ""
    is_new: bool = False
    is_deleted: bool = False
    refs: List[Ref] = field(default_factory=list)
    metadata: List[str] = field(default_factory=list)
    functions: List[TranslationFunction] = field(default_factory=list)
    line: Optional[int] = None

    def function(self, lang: str) -> Optional[TranslationFunction]:
        for candidate in self.functions:
            if candidate.lang == lang:
                return candidate
        return None

    @property
    def langs(self) -> List[str]:
        return [function.lang for function in self.functions]


@dataclass
class Registry:
    """Parsed translations registry: verbatim preamble plus ordered entries."""

    preamble: str
    entries: List[RegistryEntry] = field(default_factory=list)
    path: Optional[Path] = None

    def keys(self) -> List[str]:
        return [entry.key for entry in self.entries]

    def get(self, key: str) -> Optional[RegistryEntry]:
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def lookup(self, key: str, lang: str) -> Optional[TranslationFunction]:
        """Return the ``lang`` function for ``key`` if the registry has one."""
        entry = self.get(key)
        if entry is None:
            return None
        return entry.function(lang)

    def can_inline(self, key: str, lang: str) -> bool:
        function = self.lookup(key, lang)
        return bool(function and function.inlinable)

    def refs_by_key(self) -> Dict[str, List[Ref]]:
        return {entry.key: list(entry.refs) for entry in self.entries}

    def map_keys(self, keymap: Mapping[str, str]) -> Dict[str, str]:
        """Rename entry keys according to ``keymap``.

        Every live entry must be mapped. Deleted entries keep their key since
        nothing in source can be used to derive a new one. Returns the applied
        ``old -> new`` renames.
        """
        logger = get_logger("registry")
        remap: Dict[str, str] = {}
        for entry in self.entries:
            if entry.is_deleted:
                continue
            new_key = keymap.get(entry.key)
            if not new_key:
                raise RekeyError(
                    f"key {entry.key} could not be mapped: refusing to continue; "
                    "did you forget to update translations before this operation?"
                )
            if new_key != entry.key:
                remap[entry.key] = new_key

        targets: Dict[str, str] = {}
        for old_key, new_key in remap.items():
            if new_key in targets:
                raise RekeyError(
                    f"cannot map old keys {targets[new_key]} and {old_key} to the same new key {new_key}"
                )
            targets[new_key] = old_key

        untouched = {entry.key for entry in self.entries if entry.key not in remap}
        for old_key, new_key in remap.items():
            if new_key in untouched:
                raise RekeyError(
                    f"cannot map old key ({old_key}) to new key ({new_key}) because the registry already has it"
                )

        for entry in self.entries:
            new_key = remap.get(entry.key)
            if new_key is None:
                continue
            logger.info("Will map key %s to %s", entry.key, new_key)
            entry.key = new_key
        return remap


__all__ = [
    "Fragment",
    "Ref",
    "Registry",
    "RegistryEntry",
    "TranslationFunction",
]
