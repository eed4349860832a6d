"""Data types: manifests, snapshots, plans and apply results."""

from ragsync.models.manifest import ManifestEntry, ProjectManifest, ProjectState, STALE_FINGERPRINT
from ragsync.models.plan import ApplyResult, ReconciliationPlan
from ragsync.models.snapshot import FilesystemSnapshot, SnapshotEntry, normalize_path

__all__ = [
    "ApplyResult",
    "FilesystemSnapshot",
    "ManifestEntry",
    "ProjectManifest",
    "ProjectState",
    "ReconciliationPlan",
    "STALE_FINGERPRINT",
    "SnapshotEntry",
    "normalize_path",
]
