"""Persistent stores used by jsxlate pipelines."""

from .refs_store import RefsStore

__all__ = ["RefsStore"]
