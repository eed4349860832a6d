"""Tests for LanceContentIndexer against a real embedded LanceDB."""

from __future__ import annotations

from pathlib import Path

import pytest

from ragsync.config import LANCE_DIR, MANIFEST_DIR
from ragsync.core.errors import EmbeddingError
from ragsync.crawl.fingerprint import fingerprint_bytes
from ragsync.factory import open_reconciler
from ragsync.indexing.embedder import HashEmbedder
from ragsync.indexing.lance_indexer import LanceContentIndexer, make_chunk_id
from ragsync.manifest.registry import JsonManifestRegistry
from ragsync.reconcile.reconciler import Reconciler
from tests.fixtures.projects import write_tree

DIM = 16


@pytest.fixture
def indexer(tmp_path: Path) -> LanceContentIndexer:
    store = LanceContentIndexer(str(tmp_path / "test.lance"), HashEmbedder(dimension=DIM))
    store.create_or_open()
    return store


def _words(n: int, tag: str = "w") -> bytes:
    return " ".join(f"{tag}{i}" for i in range(n)).encode()


class TestUpsert:
    """Per-path upserts."""

    def test_create_table(self, indexer: LanceContentIndexer) -> None:
        """Fresh table is empty."""
        assert indexer.count() == 0

    def test_upsert_stores_rows(self, indexer: LanceContentIndexer) -> None:
        """Upsert writes chunks tagged with project and path."""
        indexer.upsert("svc", "src/a.py", b"def a(): return 1\n")

        assert indexer.count("svc") == 1
        assert indexer.paths("svc") == ["src/a.py"]
        assert indexer.fingerprints("svc") == {"src/a.py": fingerprint_bytes(b"def a(): return 1\n")}

    def test_upsert_is_idempotent(self, indexer: LanceContentIndexer) -> None:
        """Repeated identical upserts leave one row set."""
        content = _words(1000)
        indexer.upsert("svc", "big.txt", content)
        first = indexer.count("svc")
        indexer.upsert("svc", "big.txt", content)
        indexer.upsert("svc", "big.txt", content)

        assert first > 1
        assert indexer.count("svc") == first

    def test_shrinking_file_drops_surplus_chunks(self, indexer: LanceContentIndexer) -> None:
        """Re-upserting shorter content leaves no stale trailing chunks."""
        indexer.upsert("svc", "big.txt", _words(2000))
        assert indexer.count("svc") > 1

        indexer.upsert("svc", "big.txt", b"tiny now")

        assert indexer.count("svc") == 1
        assert indexer.fingerprints("svc")["big.txt"] == fingerprint_bytes(b"tiny now")

    def test_empty_file_has_no_rows(self, indexer: LanceContentIndexer) -> None:
        """Empty content replaces previous rows with nothing."""
        indexer.upsert("svc", "a.txt", b"something")
        indexer.upsert("svc", "a.txt", b"")
        assert indexer.count("svc") == 0

    def test_quotes_in_paths(self, indexer: LanceContentIndexer) -> None:
        """Single quotes in ids and paths are escaped in filters."""
        indexer.upsert("o'brien", "it's.py", b"x = 1")
        assert indexer.paths("o'brien") == ["it's.py"]
        assert indexer.delete_where("o'brien", "it's.py") == 1

    def test_embedding_error_leaves_rows(self, tmp_path: Path) -> None:
        """A failing embedder raises before touching stored rows."""

        class BrokenEmbedder(HashEmbedder):
            broken = False

            def embed_batch(self, texts: list[str]) -> list[list[float]]:
                if self.broken:
                    raise EmbeddingError(texts[0], "model offline")
                return super().embed_batch(texts)

        embedder = BrokenEmbedder(dimension=DIM)
        store = LanceContentIndexer(str(tmp_path / "broken.lance"), embedder)
        store.upsert("svc", "a.py", b"v1")

        embedder.broken = True
        with pytest.raises(EmbeddingError):
            store.upsert("svc", "a.py", b"v2")

        assert store.fingerprints("svc") == {"a.py": fingerprint_bytes(b"v1")}

    def test_chunk_ids_deterministic(self) -> None:
        """Chunk ids depend only on project, path and index."""
        assert make_chunk_id("svc", "a.py", 0) == make_chunk_id("svc", "a.py", 0)
        assert make_chunk_id("svc", "a.py", 0) != make_chunk_id("svc", "a.py", 1)
        assert make_chunk_id("svc", "a.py", 0) != make_chunk_id("other", "a.py", 0)


class TestDelete:
    """Scoped deletion."""

    def test_delete_path(self, indexer: LanceContentIndexer) -> None:
        """delete_where(project, path) removes only that path."""
        indexer.upsert("svc", "a.py", b"a")
        indexer.upsert("svc", "b.py", b"b")

        deleted = indexer.delete_where("svc", "a.py")

        assert deleted == 1
        assert indexer.paths("svc") == ["b.py"]

    def test_delete_project(self, indexer: LanceContentIndexer) -> None:
        """delete_where(project) removes the project and nothing else."""
        indexer.upsert("svc-a", "a.py", b"a")
        indexer.upsert("svc-a", "b.py", b"b")
        indexer.upsert("svc-b", "a.py", b"a")

        assert indexer.delete_where("svc-a") == 2
        assert indexer.count("svc-a") == 0
        assert indexer.paths("svc-b") == ["a.py"]

    def test_delete_missing_is_noop(self, indexer: LanceContentIndexer) -> None:
        """Deleting what isn't there returns 0."""
        assert indexer.delete_where("svc", "nope.py") == 0
        assert indexer.delete_where("nobody") == 0


class TestSearch:
    """Vector search delegated to LanceDB."""

    def test_search_scoped_to_project(self, indexer: LanceContentIndexer) -> None:
        """Results only come from the requested project."""
        indexer.upsert("svc-a", "a.py", b"alpha handler")
        indexer.upsert("svc-b", "b.py", b"beta handler")

        results = indexer.search("alpha handler", project_id="svc-b", top_k=5)

        assert results
        assert {r["project_id"] for r in results} == {"svc-b"}
        assert all("vector" not in r for r in results)

    def test_exact_text_ranks_first(self, indexer: LanceContentIndexer) -> None:
        """Identical embedding input comes back as the nearest hit."""
        indexer.upsert("svc", "a.py", b"alpha")
        indexer.upsert("svc", "b.py", b"beta")

        results = indexer.search("// a.py\nalpha", project_id="svc", top_k=2)
        assert results[0]["path"] == "a.py"


class TestReconcileIntegration:
    """Reconciler end to end over LanceDB."""

    def test_store_tracks_filesystem(self, tmp_path: Path) -> None:
        """Store paths follow edits and deletions; manifest matches store."""
        repo = write_tree(tmp_path / "repo", {"a.py": "a = 1", "b.py": "b = 2", "c.md": "# c"})
        store = LanceContentIndexer(str(tmp_path / "db.lance"), HashEmbedder(dimension=DIM))
        registry = JsonManifestRegistry(tmp_path / "manifests")
        reconciler = Reconciler(store, registry)

        reconciler.reconcile("svc", repo)
        assert store.paths("svc") == ["a.py", "b.py", "c.md"]

        (repo / "b.py").unlink()
        (repo / "a.py").write_text("a = 42")
        result = reconciler.reconcile("svc", repo)

        assert result.updated == ["a.py"]
        assert result.removed == ["b.py"]
        assert store.paths("svc") == ["a.py", "c.md"]

        manifest = registry.load("svc")
        assert manifest is not None
        assert manifest.fingerprints() == store.fingerprints("svc")

    def test_drop_then_rebuild(self, tmp_path: Path) -> None:
        """rebuild() leaves exactly the current files in the store."""
        repo = write_tree(tmp_path / "repo", {"a.py": "a", "b.py": "b"})
        store = LanceContentIndexer(str(tmp_path / "db.lance"), HashEmbedder(dimension=DIM))
        reconciler = Reconciler(store, JsonManifestRegistry(tmp_path / "manifests"))

        reconciler.reconcile("svc", repo)
        (repo / "a.py").unlink()
        reconciler.rebuild("svc", repo)

        assert store.paths("svc") == ["b.py"]

    def test_open_reconciler_layout(self, tmp_path: Path) -> None:
        """open_reconciler puts the table and manifests under one data dir."""
        repo = write_tree(tmp_path / "repo", {"a.py": "a"})
        data_dir = tmp_path / "data"

        reconciler, store = open_reconciler(data_dir, embedder=HashEmbedder(dimension=DIM))
        reconciler.reconcile("svc", repo)

        assert (data_dir / LANCE_DIR).exists()
        assert JsonManifestRegistry(data_dir / MANIFEST_DIR).load("svc") is not None
        assert store.paths("svc") == ["a.py"]
