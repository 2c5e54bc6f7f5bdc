"""Filesystem helpers shared by the pipelines."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from .logging import get_logger

_logger = get_logger("utils")


def atomic_write(path: Path, data: str) -> None:
    """Atomically replace ``path`` with ``data``.

    The text goes to a temporary file in the same directory, is fsynced and then
    moved over the target, so readers never observe a half-written file. The
    target's permission bits are kept when it already exists.
    """
    directory = path.parent
    directory.mkdir(parents=True, exist_ok=True)
    try:
        original_mode: int | None = path.stat().st_mode & 0o777
    except FileNotFoundError:
        original_mode = None

    handle = tempfile.NamedTemporaryFile(
        "w",
        delete=False,
        dir=directory,
        prefix=f".{path.name}.",
        encoding="utf-8",
        newline="",
    )
    try:
        with handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(handle.name, path)
    except BaseException:
        Path(handle.name).unlink(missing_ok=True)
        raise

    if original_mode is not None:
        try:
            os.chmod(path, original_mode)
        except OSError:
            _logger.debug("Failed to restore permissions on %s", path)


def relative_posix(path: Path, root: Path) -> str:
    """Return ``path`` relative to ``root`` in POSIX form, or as-is when outside it."""
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


__all__ = ["atomic_write", "relative_posix"]
