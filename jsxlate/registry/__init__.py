"""Translations registry: parsing, reconciliation, serialization and patches."""

from .parser import parse_registry
from .reconciler import ReconcileOptions, ReconcileResult, reconcile
from .writer import serialize_registry

__all__ = [
    "ReconcileOptions",
    "ReconcileResult",
    "parse_registry",
    "reconcile",
    "serialize_registry",
]
