"""Tests for FilesystemWalker and fingerprints."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

import pytest

from ragsync.core.errors import CrawlError, FingerprintError
from ragsync.crawl.fingerprint import fingerprint_bytes, sha256_fingerprint
from ragsync.crawl.walker import FilesystemWalker
from tests.fixtures.projects import write_tree


class TestFingerprint:
    """Content fingerprints."""

    def test_identical_content_same_fingerprint(self, tmp_path: Path) -> None:
        """Two files with the same bytes share a fingerprint."""
        write_tree(tmp_path, {"a.txt": "same", "b.txt": "same"})
        assert sha256_fingerprint(tmp_path / "a.txt") == sha256_fingerprint(tmp_path / "b.txt")

    def test_content_change_changes_fingerprint(self, tmp_path: Path) -> None:
        """One byte of difference changes the fingerprint."""
        write_tree(tmp_path, {"a.txt": "v1"})
        before = sha256_fingerprint(tmp_path / "a.txt")
        (tmp_path / "a.txt").write_text("v2")
        assert sha256_fingerprint(tmp_path / "a.txt") != before

    def test_file_and_bytes_agree(self, tmp_path: Path) -> None:
        """Streaming a file matches hashing its bytes in memory."""
        data = os.urandom(200_000)
        write_tree(tmp_path, {"blob.bin": data})
        assert sha256_fingerprint(tmp_path / "blob.bin") == fingerprint_bytes(data)

    def test_prefixed_with_algorithm(self) -> None:
        """Fingerprints name their algorithm."""
        assert fingerprint_bytes(b"").startswith("sha256:")

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """Missing file -> FingerprintError, not OSError."""
        with pytest.raises(FingerprintError) as exc_info:
            sha256_fingerprint(tmp_path / "nope.py")
        assert exc_info.value.path.endswith("nope.py")


class TestWalker:
    """Snapshot construction."""

    def test_relative_posix_keys(self, tmp_path: Path) -> None:
        """Keys are relative to the root with forward slashes."""
        write_tree(tmp_path, {"src/app/main.py": "x", "README.md": "y"})
        snap = FilesystemWalker().snapshot("svc", tmp_path)

        assert sorted(snap.entries) == ["README.md", "src/app/main.py"]
        assert snap.project_id == "svc"
        assert snap.root == tmp_path

    def test_default_excludes_dependency_dirs(self, tmp_path: Path) -> None:
        """node_modules, .git, __pycache__ and friends are pruned."""
        write_tree(
            tmp_path,
            {
                "index.ts": "x",
                "node_modules/left-pad/index.js": "x",
                "pkg/__pycache__/mod.cpython-312.pyc": "x",
                ".git/HEAD": "ref",
                "vendor/lib.go": "x",
            },
        )
        snap = FilesystemWalker().snapshot("svc", tmp_path)
        assert list(snap.entries) == ["index.ts"]

    def test_custom_glob_excludes(self, tmp_path: Path) -> None:
        """Glob patterns match base names at any depth."""
        write_tree(tmp_path, {"a.py": "x", "deep/b.log": "x", "deep/c.py": "x", "generated/d.py": "x"})
        walker = FilesystemWalker(exclude=["*.log", "generated"])

        snap = walker.snapshot("svc", tmp_path)
        assert sorted(snap.entries) == ["a.py", "deep/c.py"]

    def test_exclusion_is_case_sensitive(self, tmp_path: Path) -> None:
        """Pattern "build" does not prune "Build"."""
        write_tree(tmp_path, {"Build/x.py": "x", "build/y.py": "y"})
        snap = FilesystemWalker(exclude=["build"]).snapshot("svc", tmp_path)
        assert list(snap.entries) == ["Build/x.py"]

    def test_hidden_files_opt_in(self, tmp_path: Path) -> None:
        """Dot-files are skipped unless include_hidden is set."""
        write_tree(tmp_path, {".env.example": "x", "a.py": "y"})

        assert list(FilesystemWalker().snapshot("svc", tmp_path).entries) == ["a.py"]
        hidden = FilesystemWalker(exclude=[], include_hidden=True).snapshot("svc", tmp_path)
        assert sorted(hidden.entries) == [".env.example", "a.py"]

    def test_max_file_bytes(self, tmp_path: Path) -> None:
        """Oversized files are left out of the snapshot."""
        write_tree(tmp_path, {"small.txt": "x", "big.txt": "x" * 1000})
        snap = FilesystemWalker(max_file_bytes=100).snapshot("svc", tmp_path)
        assert list(snap.entries) == ["small.txt"]

    def test_fingerprint_failure_is_recorded(self, tmp_path: Path) -> None:
        """A failing fingerprint yields a null entry instead of aborting."""
        write_tree(tmp_path, {"ok.py": "x", "locked.py": "y"})

        def flaky(path: Path) -> str:
            if path.name == "locked.py":
                raise FingerprintError(str(path), "permission denied")
            return sha256_fingerprint(path)

        snap = FilesystemWalker(fingerprinter=flaky).snapshot("svc", tmp_path)

        assert snap.entries["ok.py"].readable
        assert snap.entries["locked.py"].fingerprint is None
        assert snap.entries["locked.py"].error == "permission denied"
        assert snap.failed_paths == ["locked.py"]

    def test_os_error_from_plain_fingerprinter(self, tmp_path: Path) -> None:
        """A caller's fingerprinter raising OSError only marks that file."""
        write_tree(tmp_path, {"ok.py": "x", "locked.py": "y"})

        def md5(path: Path) -> str:
            if path.name == "locked.py":
                raise PermissionError(13, "Permission denied", str(path))
            return "md5:" + hashlib.md5(path.read_bytes()).hexdigest()

        snap = FilesystemWalker(fingerprinter=md5).snapshot("svc", tmp_path)

        assert snap.failed_paths == ["locked.py"]
        assert snap.entries["locked.py"].error == "Permission denied"
        assert snap.entries["ok.py"].fingerprint.startswith("md5:")

    def test_deterministic(self, tmp_path: Path) -> None:
        """Walking twice yields identical snapshots."""
        write_tree(tmp_path, {f"d{i}/f{j}.py": f"{i}{j}" for i in range(3) for j in range(3)})
        walker = FilesystemWalker()
        assert walker.snapshot("svc", tmp_path).entries == walker.snapshot("svc", tmp_path).entries

    def test_symlinked_dirs_not_followed(self, tmp_path: Path) -> None:
        """A directory symlink is skipped."""
        write_tree(tmp_path, {"real/a.py": "x"})
        try:
            (tmp_path / "link").symlink_to(tmp_path / "real", target_is_directory=True)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks unsupported")

        snap = FilesystemWalker().snapshot("svc", tmp_path)
        assert list(snap.entries) == ["real/a.py"]

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        """Non-directory root -> CrawlError."""
        with pytest.raises(CrawlError):
            FilesystemWalker().snapshot("svc", tmp_path / "missing")

    def test_file_root_raises(self, tmp_path: Path) -> None:
        """A file is not a project root."""
        write_tree(tmp_path, {"a.py": "x"})
        with pytest.raises(CrawlError):
            FilesystemWalker().snapshot("svc", tmp_path / "a.py")

    def test_is_excluded(self) -> None:
        """Exclusion check on names."""
        walker = FilesystemWalker(exclude=["*.egg-info", "node_modules"])
        assert walker.is_excluded("ragsync.egg-info")
        assert walker.is_excluded("node_modules")
        assert walker.is_excluded(".hidden")
        assert not walker.is_excluded("src")
