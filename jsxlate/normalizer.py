"""Signature normalizers used to derive fragment keys.

Each normalizer strips whitespace that should not influence a fragment's key.
Registries in the wild hold keys computed with every version listed here, so
versions are append-only: a new policy gets a new index and old indices keep
their exact behaviour.
"""

from __future__ import annotations

import re
from typing import Callable, List

from .errors import ConfigError

# Line anchors follow JavaScript multiline semantics, where \r, U+2028 and
# U+2029 terminate lines as well as \n.
_LINE_TERMINATORS = "\n\r\u2028\u2029"
_LEADING_WS = re.compile(rf"(?<![^{_LINE_TERMINATORS}])[ \t]+")
_TRAILING_WS = re.compile(rf"[ \t]+(?![^{_LINE_TERMINATORS}])")
_WS_RUN = re.compile(r"[ \t]+")


def _normalize_v0(body: str) -> str:
    body = _LEADING_WS.sub("", body)
    body = _TRAILING_WS.sub("", body)
    return _WS_RUN.sub(" ", body)


def _normalize_v1(body: str) -> str:
    body = body.replace("\r", "")
    body = _LEADING_WS.sub("", body)
    body = _TRAILING_WS.sub("", body)
    body = body.replace("\n", " ")
    return _WS_RUN.sub(" ", body)


NORMALIZERS: List[Callable[[str], str]] = [
    _normalize_v0,
    _normalize_v1,
]


def get_normalizer(version: int) -> Callable[[str], str]:
    """Return the normalizer for ``version`` or raise :class:`ConfigError`."""
    if isinstance(version, bool) or not isinstance(version, int):
        raise ConfigError(f"invalid signature normalizer version: {version!r}")
    if version < 0 or version >= len(NORMALIZERS):
        raise ConfigError(
            f"invalid signature normalizer version: {version} "
            f"(known versions: 0..{len(NORMALIZERS) - 1})"
        )
    return NORMALIZERS[version]


def normalize(body: str, version: int) -> str:
    """Canonicalize ``body`` for hashing under normalizer ``version``."""
    return get_normalizer(version)(body)


__all__ = ["NORMALIZERS", "get_normalizer", "normalize"]
