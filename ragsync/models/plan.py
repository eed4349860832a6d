"""Reconciliation plan and apply result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class ReconciliationPlan:
    """Delta between a project manifest and a filesystem snapshot.

    to_add, to_update and to_remove are pairwise disjoint. Together with
    unchanged and unreadable they cover every path in either input exactly
    once. fingerprints holds the snapshot fingerprint for every add/update.
    """

    project_id: str
    root: Path
    to_add: list[str] = field(default_factory=list)
    to_update: list[str] = field(default_factory=list)
    to_remove: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    unreadable: list[str] = field(default_factory=list)
    fingerprints: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True when the store already matches the snapshot."""
        return not (self.to_add or self.to_update or self.to_remove)

    @property
    def action_count(self) -> int:
        return len(self.to_add) + len(self.to_update) + len(self.to_remove)

    def summary(self) -> str:
        return (
            f"add {len(self.to_add)}, update {len(self.to_update)}, "
            f"remove {len(self.to_remove)}, unchanged {len(self.unchanged)}"
        )


@dataclass
class ApplyResult:
    """Outcome of applying a plan. Per-path failures never raise."""

    project_id: str
    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    aborted: bool = False
    error: str | None = None

    @property
    def applied_count(self) -> int:
        return len(self.added) + len(self.updated) + len(self.removed)

    @property
    def success(self) -> bool:
        """True if every planned path was applied."""
        return not self.failed and not self.skipped and not self.aborted

    @property
    def partial_success(self) -> bool:
        """True if some paths were applied but not all."""
        return self.applied_count > 0 and not self.success

    def summary(self) -> str:
        return (
            f"added {len(self.added)}, updated {len(self.updated)}, "
            f"removed {len(self.removed)}, failed {len(self.failed)}, "
            f"skipped {len(self.skipped)}"
        )
