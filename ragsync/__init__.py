"""ragsync: keep a per-project knowledge store fresh without full rebuilds."""

from ragsync.core.errors import (
    CrawlError,
    EmbeddingError,
    FingerprintError,
    IndexerUnavailable,
    ManifestCorrupt,
    RAGSyncError,
    StorageError,
)
from ragsync.crawl import FilesystemWalker, sha256_fingerprint
from ragsync.manifest import InMemoryManifestRegistry, JsonManifestRegistry
from ragsync.models import (
    ApplyResult,
    FilesystemSnapshot,
    ManifestEntry,
    ProjectManifest,
    ProjectState,
    ReconciliationPlan,
    SnapshotEntry,
)
from ragsync.reconcile import ProjectLocks, Reconciler, apply_plan, compute_plan, drop_project

__all__ = [
    "ApplyResult",
    "CrawlError",
    "EmbeddingError",
    "FilesystemSnapshot",
    "FilesystemWalker",
    "FingerprintError",
    "InMemoryManifestRegistry",
    "IndexerUnavailable",
    "JsonManifestRegistry",
    "ManifestCorrupt",
    "ManifestEntry",
    "ProjectLocks",
    "ProjectManifest",
    "ProjectState",
    "RAGSyncError",
    "ReconciliationPlan",
    "Reconciler",
    "SnapshotEntry",
    "StorageError",
    "apply_plan",
    "compute_plan",
    "drop_project",
    "sha256_fingerprint",
]
