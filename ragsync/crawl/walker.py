"""FilesystemWalker: builds a fingerprinted snapshot of a project tree.

Walks the project root, skips excluded directories and files, and
fingerprints everything else. Unreadable files are recorded with a null
fingerprint instead of aborting the walk.
"""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Iterable, Iterator

from ragsync.config import DEFAULT_EXCLUDES
from ragsync.core.errors import CrawlError, FingerprintError
from ragsync.crawl.fingerprint import sha256_fingerprint
from ragsync.models.snapshot import FilesystemSnapshot
from ragsync.pipeline.protocols import Fingerprinter

logger = logging.getLogger(__name__)


class FilesystemWalker:
    """Walks a project root and produces a FilesystemSnapshot.

    Exclusion patterns are fnmatch globs matched case-sensitively against
    each entry's base name, so "node_modules" prunes every node_modules
    directory and "*.pyc" skips compiled files at any depth.
    """

    def __init__(
        self,
        exclude: Iterable[str] = DEFAULT_EXCLUDES,
        fingerprinter: Fingerprinter = sha256_fingerprint,
        include_hidden: bool = False,
        max_file_bytes: int | None = None,
    ) -> None:
        """Initialize the walker.

        Args:
            exclude: Name patterns to skip (directories are pruned).
            fingerprinter: Callable mapping a file path to its fingerprint.
            include_hidden: Walk dot-files and dot-directories too.
            max_file_bytes: Skip files larger than this many bytes.
        """
        self._exclude = tuple(sorted(set(exclude)))
        self._fingerprint = fingerprinter
        self._include_hidden = include_hidden
        self._max_file_bytes = max_file_bytes

    def snapshot(self, project_id: str, root: Path) -> FilesystemSnapshot:
        """Walk root and fingerprint every included file.

        Args:
            project_id: Project the snapshot belongs to.
            root: Project root directory.

        Returns:
            Snapshot keyed by normalized relative path.

        Raises:
            CrawlError: If root is not a readable directory.
        """
        root = Path(root)
        if not root.is_dir():
            raise CrawlError(str(root), "not a directory")

        snap = FilesystemSnapshot(project_id=project_id, root=root)
        for file_path in self._walk(root, is_root=True):
            relative = file_path.relative_to(root)
            try:
                fingerprint = self._fingerprint(file_path)
            except (FingerprintError, OSError) as e:
                reason = e.reason if isinstance(e, FingerprintError) else (e.strerror or str(e))
                logger.warning("fingerprint_failed project=%s path=%s reason=%s", project_id, relative, reason)
                snap.add(relative, None, reason)
                continue
            snap.add(relative, fingerprint)

        logger.debug(
            "snapshot_built project=%s files=%d unreadable=%d",
            project_id,
            len(snap),
            len(snap.failed_paths),
        )
        return snap

    def is_excluded(self, name: str) -> bool:
        """True if a base name matches any exclusion pattern or is hidden."""
        if not self._include_hidden and name.startswith("."):
            return True
        return any(fnmatch.fnmatchcase(name, pattern) for pattern in self._exclude)

    def _walk(self, directory: Path, is_root: bool = False) -> Iterator[Path]:
        """Yield included files under directory in sorted order.

        Symlinked directories are not followed.
        """
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            if is_root:
                raise CrawlError(str(directory), str(e)) from e
            logger.warning("directory_unreadable path=%s reason=%s", directory, e)
            return

        for entry in entries:
            if self.is_excluded(entry.name):
                continue
            if entry.is_dir():
                if entry.is_symlink():
                    continue
                yield from self._walk(entry)
            elif entry.is_file():
                if self._max_file_bytes is not None and self._too_large(entry):
                    continue
                yield entry

    def _too_large(self, path: Path) -> bool:
        try:
            return path.stat().st_size > (self._max_file_bytes or 0)
        except OSError:
            # Let the fingerprinter report the failure
            return False
