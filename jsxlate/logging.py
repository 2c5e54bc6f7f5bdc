"""Logger setup shared by every jsxlate command.

All loggers live below the ``jsxlate`` namespace. Console output goes to stderr
so that commands printing data (``jsxlate hashes``) stay pipe-friendly.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_ROOT = "jsxlate"
_CONSOLE_FORMAT = "[jsxlate] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``jsxlate.<name>`` (or the namespace logger itself)."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def _console_level(verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route jsxlate logs to stderr and, optionally, to ``log_file`` at debug level."""
    console_level = _console_level(verbose, quiet)
    logger = get_logger()
    logger.propagate = False

    # main() may run several times in one process (tests); start from scratch each time.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    level = console_level
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)
        level = logging.DEBUG

    logger.setLevel(level)
    return logger


__all__ = ["configure_logging", "get_logger"]
