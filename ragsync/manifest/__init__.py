"""Manifest persistence."""

from ragsync.manifest.registry import (
    InMemoryManifestRegistry,
    JsonManifestRegistry,
    manifest_slug,
)

__all__ = ["InMemoryManifestRegistry", "JsonManifestRegistry", "manifest_slug"]
