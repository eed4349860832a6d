"""Manifest registries: durable per-project manifest storage.

JsonManifestRegistry keeps one JSON document per project and replaces it
atomically, so a crash mid-save leaves the previous manifest intact.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import tempfile
from copy import deepcopy
from pathlib import Path

from ragsync.config import MANIFEST_VERSION
from ragsync.core.errors import ManifestCorrupt
from ragsync.models.manifest import ProjectManifest

logger = logging.getLogger(__name__)

MANIFEST_SUFFIX = ".manifest.json"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def manifest_slug(project_id: str) -> str:
    """Filesystem-safe file stem for a project id.

    Readable prefix plus a short hash, so ids differing only in unsafe
    characters ("a/b" vs "a_b") never share a file.
    """
    readable = _UNSAFE_CHARS.sub("_", project_id).strip("._")[:64] or "project"
    digest = hashlib.sha256(project_id.encode()).hexdigest()[:8]
    return f"{readable}-{digest}"


class JsonManifestRegistry:
    """Satisfies the ManifestRegistry protocol with JSON files on disk."""

    def __init__(self, directory: Path) -> None:
        """Initialize the registry.

        Args:
            directory: Directory holding <slug>.manifest.json files.
                       Created if it doesn't exist.
        """
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, project_id: str) -> Path:
        return self._dir / f"{manifest_slug(project_id)}{MANIFEST_SUFFIX}"

    def load(self, project_id: str) -> ProjectManifest | None:
        """Load a project's manifest.

        Returns:
            The manifest, or None if the project has never been ingested.

        Raises:
            ManifestCorrupt: File exists but is not a valid manifest.
        """
        path = self.path_for(project_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ManifestCorrupt(project_id, f"unreadable: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ManifestCorrupt(project_id, f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ManifestCorrupt(project_id, "top-level value is not an object")

        version = data.get("version")
        if version != MANIFEST_VERSION:
            raise ManifestCorrupt(project_id, f"unsupported version {version!r}")

        try:
            manifest = ProjectManifest.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ManifestCorrupt(project_id, f"malformed manifest: {e}") from e

        if manifest.project_id != project_id:
            raise ManifestCorrupt(
                project_id, f"file belongs to project {manifest.project_id!r}"
            )
        return manifest

    def save(self, manifest: ProjectManifest) -> None:
        """Write the manifest atomically (temp file + rename)."""
        path = self.path_for(manifest.project_id)
        payload = json.dumps(manifest.to_dict(MANIFEST_VERSION), indent=2)

        fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=".tmp-", suffix=MANIFEST_SUFFIX)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("manifest_saved project=%s entries=%d", manifest.project_id, len(manifest))

    def drop(self, project_id: str) -> None:
        """Delete the manifest file. No-op if it doesn't exist."""
        self.path_for(project_id).unlink(missing_ok=True)
        logger.info("manifest_dropped project=%s", project_id)

    def projects(self) -> list[str]:
        """Project ids with a readable manifest on disk."""
        ids: list[str] = []
        for path in sorted(self._dir.glob(f"*{MANIFEST_SUFFIX}")):
            if path.name.startswith(".tmp-"):
                continue
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                ids.append(str(data["project_id"]))
            except (OSError, ValueError, KeyError, TypeError):
                logger.warning("manifest_unreadable path=%s", path)
        return ids


class InMemoryManifestRegistry:
    """Satisfies the ManifestRegistry protocol without touching disk.

    Stores deep copies so callers mutating a loaded manifest do not change
    the registry until they save it.
    """

    def __init__(self) -> None:
        self._manifests: dict[str, ProjectManifest] = {}

    def load(self, project_id: str) -> ProjectManifest | None:
        manifest = self._manifests.get(project_id)
        return deepcopy(manifest) if manifest is not None else None

    def save(self, manifest: ProjectManifest) -> None:
        self._manifests[manifest.project_id] = deepcopy(manifest)

    def drop(self, project_id: str) -> None:
        self._manifests.pop(project_id, None)

    def projects(self) -> list[str]:
        return sorted(self._manifests)
