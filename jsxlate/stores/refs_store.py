"""Out-of-band store for registry references.

References (``path:line`` locations of every key) change on almost every edit
of the source tree, so they live in a JSON file next to the project rather
than in the registry module itself.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from ..errors import ConfigError
from ..logging import get_logger
from ..models import Ref, Registry
from ..utils import atomic_write

_STORE_VERSION = 1

_logger = get_logger("stores.refs")


class RefsStore:
    """Persists ``key -> [path:line, ...]`` for the translations registry."""

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._refs: Dict[str, List[Ref]] = {}
        self._dirty = False
        if self._path is not None:
            self._load(self._path)

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def get(self, key: str) -> List[Ref]:
        return list(self._refs.get(key, []))

    def keys(self) -> List[str]:
        return sorted(self._refs)

    def apply_to(self, registry: Registry) -> None:
        """Merge stored references into the registry entries.

        References already on an entry (the legacy in-registry ``_refs`` field)
        are kept alongside the stored ones.
        """
        for entry in registry.entries:
            stored = self._refs.get(entry.key)
            if stored:
                entry.refs = sorted(set(entry.refs) | set(stored))

    def replace(self, refs: Mapping[str, Sequence[Ref]]) -> None:
        updated = {key: sorted(set(values)) for key, values in refs.items()}
        if updated != self._refs:
            self._refs = updated
            self._dirty = True

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        atomic_write(self._path, self.render())
        self._dirty = False

    def render(self) -> str:
        """Return the JSON document :meth:`persist` would write."""
        payload = {
            "version": _STORE_VERSION,
            "refs": {key: [str(ref) for ref in refs] for key, refs in self._refs.items()},
        }
        return json.dumps(payload, indent=2, sort_keys=True) + "\n"

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Unreadable reference store {path}: {exc}") from exc
        if not isinstance(data, dict) or data.get("version") != _STORE_VERSION:
            raise ConfigError(f"Reference store {path} has an unknown layout")
        entries = data.get("refs")
        if not isinstance(entries, dict):
            raise ConfigError(f"Reference store {path} has no refs mapping")
        loaded: Dict[str, List[Ref]] = {}
        for key, raw in entries.items():
            if not isinstance(raw, list):
                raise ConfigError(f"Reference store {path}: refs for {key!r} are not a list")
            loaded[key] = sorted({_ref_from_str(path, key, item) for item in raw})
        _logger.debug("Loaded references for %d keys from %s", len(loaded), path)
        self._refs = loaded
        self._dirty = False


def _ref_from_str(store: Path, key: str, value: object) -> Ref:
    if isinstance(value, str):
        path, sep, line = value.rpartition(":")
        if sep and path and line.isdigit():
            return Ref(path, int(line))
    raise ConfigError(f"Reference store {store}: invalid ref {value!r} for {key!r}")


__all__ = ["RefsStore"]
