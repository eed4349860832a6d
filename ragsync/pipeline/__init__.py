"""Pipeline collaborator protocols."""

from ragsync.pipeline.protocols import ContentIndexer, Fingerprinter, ManifestRegistry

__all__ = ["ContentIndexer", "Fingerprinter", "ManifestRegistry"]
