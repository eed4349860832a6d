"""Freshness reconciliation."""

from ragsync.reconcile.locks import ProjectLocks
from ragsync.reconcile.reconciler import (
    Reconciler,
    apply_plan,
    compute_plan,
    drop_project,
    read_file,
)

__all__ = [
    "ProjectLocks",
    "Reconciler",
    "apply_plan",
    "compute_plan",
    "drop_project",
    "read_file",
]
