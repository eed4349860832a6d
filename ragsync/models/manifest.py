"""Project manifest types for tracking what the store holds."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


# Recorded for a path whose update may have partly reached the store.
# Never produced by a fingerprinter, so the path is always re-planned.
STALE_FINGERPRINT = "stale:"


class ProjectState(Enum):
    """Lifecycle of a project in the knowledge store.

    A project is never durably "partially ingested": the manifest only
    lists paths whose content the store confirmed.
    """

    UNINITIALIZED = "uninitialized"
    INGESTED = "ingested"


def utc_now() -> str:
    """ISO-8601 UTC timestamp used for manifest bookkeeping."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ManifestEntry:
    """Per-path record: content fingerprint plus the generation it was last seen in."""

    fingerprint: str
    last_seen: int


@dataclass
class ProjectManifest:
    """Root manifest for one project. Serialized to <slug>.manifest.json.

    Every file the store holds content for has an entry, keyed by
    normalized relative path. `generation` is a logical clock bumped once
    per applied plan.
    """

    project_id: str
    entries: dict[str, ManifestEntry] = field(default_factory=dict)
    generation: int = 0
    created_at: str = ""
    updated_at: str = ""

    def fingerprints(self) -> dict[str, str]:
        """Map of path -> fingerprint."""
        return {path: e.fingerprint for path, e in self.entries.items()}

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, path: object) -> bool:
        return path in self.entries

    def to_dict(self, version: int) -> dict[str, Any]:
        return {
            "version": version,
            "project_id": self.project_id,
            "generation": self.generation,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "entries": {
                path: {"fingerprint": e.fingerprint, "last_seen": e.last_seen}
                for path, e in sorted(self.entries.items())
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectManifest:
        """Rebuild a manifest from its JSON form.

        Raises:
            KeyError, TypeError, ValueError: malformed data. The registry
                turns these into ManifestCorrupt.
        """
        raw_entries = data["entries"]
        if not isinstance(raw_entries, dict):
            raise TypeError("entries must be an object")
        entries: dict[str, ManifestEntry] = {}
        for path, raw in raw_entries.items():
            fingerprint = raw["fingerprint"]
            if not isinstance(fingerprint, str) or not fingerprint:
                raise ValueError(f"bad fingerprint for {path!r}")
            entries[path] = ManifestEntry(
                fingerprint=fingerprint,
                last_seen=int(raw["last_seen"]),
            )
        project_id = data["project_id"]
        if not isinstance(project_id, str):
            raise TypeError("project_id must be a string")
        return cls(
            project_id=project_id,
            entries=entries,
            generation=int(data["generation"]),
            created_at=str(data.get("created_at", "")),
            updated_at=str(data.get("updated_at", "")),
        )
