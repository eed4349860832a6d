"""Filesystem snapshot types produced by the walker."""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass, field
from pathlib import Path, PurePath, PureWindowsPath


def normalize_path(path: str | PurePath) -> str:
    """Normalize a relative path into a manifest key.

    POSIX separators, case preserved, no leading "./", no trailing slash.
    Windows paths (PureWindowsPath input, or any input on Windows) have
    their backslashes turned into separators so their keys match keys built
    elsewhere. On POSIX a backslash is part of the file name.
    """
    if isinstance(path, PureWindowsPath):
        if path.drive or path.root:
            raise ValueError(f"Path escapes the project root: {path!r}")
        text = path.as_posix()
    elif os.sep == "\\":
        text = str(path).replace("\\", "/")
    else:
        text = str(path)
    normalized = posixpath.normpath(text)
    if normalized == ".":
        raise ValueError(f"Empty relative path: {path!r}")
    if normalized.startswith("/") or normalized == ".." or normalized.startswith("../"):
        raise ValueError(f"Path escapes the project root: {path!r}")
    return normalized


@dataclass(frozen=True)
class SnapshotEntry:
    """One file seen during a walk.

    fingerprint is None when the file could not be read or hashed; error
    then carries the reason.
    """

    path: str
    fingerprint: str | None
    error: str | None = None

    @property
    def readable(self) -> bool:
        return self.fingerprint is not None


@dataclass
class FilesystemSnapshot:
    """Transient enumeration of a project tree. Never persisted."""

    project_id: str
    root: Path
    entries: dict[str, SnapshotEntry] = field(default_factory=dict)

    def add(self, path: str | PurePath, fingerprint: str | None, error: str | None = None) -> None:
        key = normalize_path(path)
        self.entries[key] = SnapshotEntry(path=key, fingerprint=fingerprint, error=error)

    @property
    def failed_paths(self) -> list[str]:
        return sorted(p for p, e in self.entries.items() if not e.readable)

    def __len__(self) -> int:
        return len(self.entries)
