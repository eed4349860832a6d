"""Core error types shared by every pipeline stage."""

from ragsync.core.errors import (
    CrawlError,
    EmbeddingError,
    FingerprintError,
    IndexerUnavailable,
    ManifestCorrupt,
    RAGSyncError,
    StorageError,
)

__all__ = [
    "CrawlError",
    "EmbeddingError",
    "FingerprintError",
    "IndexerUnavailable",
    "ManifestCorrupt",
    "RAGSyncError",
    "StorageError",
]
