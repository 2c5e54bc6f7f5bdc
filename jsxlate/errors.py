"""Error taxonomy shared by the extraction, registry and build pipelines."""

from __future__ import annotations

from typing import Optional, Sequence


class JsxlateError(RuntimeError):
    """Base class for every fatal jsxlate error."""


class ConfigError(JsxlateError):
    """Raised when configuration is invalid or a required companion file is missing."""


class UsageError(JsxlateError):
    """Raised when a translation tag in source violates the authoring rules."""

    def __init__(self, filename: str, line: Optional[int], message: str) -> None:
        where = line if line is not None else "???"
        super().__init__(f"at {filename}:{where}: {message}")
        self.filename = filename
        self.line = line
        self.message = message


class CorruptRegistryError(JsxlateError):
    """Raised when the translations registry does not match its structural contract."""

    def __init__(self, reason: str, line: Optional[int] = None, path: Optional[str] = None) -> None:
        location = path or ""
        if line is not None:
            location = f"{location}:{line}"
        prefix = f"corrupt registry {location}" if location else "corrupt registry"
        super().__init__(f"{prefix}: {reason}")
        self.reason = reason
        self.line = line
        self.path = path


class LookupMissError(JsxlateError):
    """Raised at bake time when no candidate language has a translation for a key."""

    def __init__(self, key: str, langs: Sequence[str], location: Optional[str] = None) -> None:
        message = f"translation not found: lookup({key!r}, {list(langs)!r}) failed"
        if location:
            message = f"at {location}: {message}"
        super().__init__(message)
        self.key = key
        self.langs = list(langs)


class PatchError(JsxlateError):
    """Raised when an imported patch does not line up with the registry's marker slots."""


class RekeyError(JsxlateError):
    """Raised when registry keys cannot be migrated between normalizer versions."""


__all__ = [
    "ConfigError",
    "CorruptRegistryError",
    "JsxlateError",
    "LookupMissError",
    "PatchError",
    "RekeyError",
    "UsageError",
]
