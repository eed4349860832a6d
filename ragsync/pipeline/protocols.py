"""Collaborator protocols (structural interfaces).

The reconciler depends only on these contracts -- any implementation that
satisfies them can be injected. No base classes, no inheritance.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from ragsync.models.manifest import ProjectManifest


class Fingerprinter(Protocol):
    """Deterministic, change-sensitive digest of a file's content."""

    def __call__(self, path: Path) -> str:
        """Return the fingerprint. Raises FingerprintError on failure."""
        ...


class ContentIndexer(Protocol):
    """Stores per-path content for a project. Every call is idempotent."""

    def upsert(self, project_id: str, path: str, content: bytes) -> None:
        """Replace everything stored for (project_id, path) with content."""
        ...

    def delete_where(self, project_id: str, path: str | None = None) -> int:
        """Delete rows for (project_id, path), or the whole project if path is None.

        Returns the number of rows deleted.
        """
        ...


class ManifestRegistry(Protocol):
    """Durable per-project manifest storage."""

    def load(self, project_id: str) -> ProjectManifest | None:
        """Return the manifest, or None if the project was never ingested.

        Raises ManifestCorrupt if a stored manifest cannot be parsed.
        """
        ...

    def save(self, manifest: ProjectManifest) -> None:
        """Persist the manifest, replacing any previous version."""
        ...

    def drop(self, project_id: str) -> None:
        """Delete the manifest. Dropping an unknown project is a no-op."""
        ...

    def projects(self) -> list[str]:
        """Project ids with a stored manifest."""
        ...
