"""Error hierarchy for the reconciliation pipeline.

All errors include retry semantics to enable graceful failure handling.
Check the .retryable attribute to determine if an operation can be retried.

Per-path errors (FingerprintError, EmbeddingError) are recorded in an
ApplyResult and never abort a reconciliation. Store and registry errors
(IndexerUnavailable, ManifestCorrupt) propagate to the caller.
"""

from __future__ import annotations


class RAGSyncError(Exception):
    """Base error for the reconciliation pipeline.

    All ragsync-specific errors inherit from this.
    """

    retryable: bool = False


# =============================================================================
# Crawl Errors
# =============================================================================


class FingerprintError(RAGSyncError):
    """Could not compute a file's fingerprint.

    Attributes:
        path: The file that failed to fingerprint
        reason: Human-readable error description

    Retry: Never retryable within a run - the path is dropped from the plan
    and picked up again by the next reconciliation.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to fingerprint {path}: {reason}")


class CrawlError(RAGSyncError):
    """Project root could not be walked.

    Attributes:
        source_path: The root that failed to crawl
        reason: Human-readable error description
    """

    def __init__(self, source_path: str, reason: str) -> None:
        self.source_path = source_path
        self.reason = reason
        super().__init__(f"Failed to crawl {source_path}: {reason}")


# =============================================================================
# Storage Errors
# =============================================================================


class StorageError(RAGSyncError):
    """Storage operation failed.

    Attributes:
        operation: The operation that failed (upsert, delete, search)
        reason: Human-readable error description
        retryable: Whether the operation can be retried
        retry_after_seconds: Suggested wait time before retry (None if not retryable)

    Retry: Check .retryable - True for transient failures like timeouts.
    """

    def __init__(
        self,
        operation: str,
        reason: str,
        retryable: bool = False,
        retry_after_seconds: int | None = None,
    ) -> None:
        self.operation = operation
        self.reason = reason
        self.retryable = retryable
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Storage {operation} failed: {reason}")


class IndexerUnavailable(StorageError):
    """Content store cannot be reached or refused the operation.

    Aborts the remaining paths of the current apply. Paths applied before
    the failure are kept; re-running the reconciliation is safe.

    Attributes:
        result: Partial ApplyResult, attached by apply_plan before re-raising.

    Retry: Always retryable as a whole.
    """

    def __init__(
        self,
        operation: str,
        reason: str,
        retry_after_seconds: int | None = None,
    ) -> None:
        super().__init__(
            operation=operation,
            reason=reason,
            retryable=True,
            retry_after_seconds=retry_after_seconds,
        )
        self.result = None


class ManifestCorrupt(RAGSyncError):
    """A persisted manifest could not be parsed.

    Attributes:
        project_id: The project whose manifest is unreadable
        reason: Human-readable error description

    Retry: Never retryable - drop the project and re-ingest it.
    """

    def __init__(self, project_id: str, reason: str) -> None:
        self.project_id = project_id
        self.reason = reason
        super().__init__(f"Manifest for {project_id} is corrupt: {reason}")


# =============================================================================
# Embedding Errors
# =============================================================================


class EmbeddingError(RAGSyncError):
    """Embedding failed.

    Attributes:
        text_preview: First 100 chars of text that failed
        reason: Human-readable error description

    Retry: Sometimes retryable - depends on cause (rate limit vs invalid input).
    """

    def __init__(self, text: str, reason: str) -> None:
        self.text_preview = text[:100] + "..." if len(text) > 100 else text
        self.reason = reason
        super().__init__(f"Embedding failed: {reason}")
