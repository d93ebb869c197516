"""Reconciliation of local and remote record collections."""

from __future__ import annotations

from .engine import MergeReport, ReconciliationEngine, merge_collections
from .policy import Resolution, ResolveConflict, TieBreak, last_writer_wins

__all__ = [
    "MergeReport",
    "ReconciliationEngine",
    "Resolution",
    "ResolveConflict",
    "TieBreak",
    "last_writer_wins",
    "merge_collections",
]
