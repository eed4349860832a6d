"""Wire a Reconciler to on-disk storage under one data directory.

<data_dir>/ragsync.lance   LanceDB chunks table
<data_dir>/manifests/      one JSON manifest per project
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from ragsync.config import DEFAULT_EXCLUDES, default_paths
from ragsync.crawl.walker import FilesystemWalker
from ragsync.indexing.embedder import Embedder, SentenceTransformerEmbedder
from ragsync.indexing.lance_indexer import LanceContentIndexer
from ragsync.manifest.registry import JsonManifestRegistry
from ragsync.reconcile.locks import ProjectLocks
from ragsync.reconcile.reconciler import Reconciler


def open_reconciler(
    data_dir: Path | None = None,
    embedder: Embedder | None = None,
    exclude: Iterable[str] = DEFAULT_EXCLUDES,
    locks: ProjectLocks | None = None,
) -> tuple[Reconciler, LanceContentIndexer]:
    """Open (creating if needed) the store and manifests under data_dir.

    Args:
        data_dir: Base directory. Defaults to RAGSYNC_DATA_DIR or ./data.
        embedder: Embedder for chunk vectors. Defaults to sentence-transformers.
        exclude: Walker exclusion patterns.
        locks: Shared per-project locks, when several reconcilers share storage.

    Returns:
        The reconciler and the content indexer it writes to (for search).
    """
    lance_path, manifest_dir = default_paths(data_dir)
    lance_path.parent.mkdir(parents=True, exist_ok=True)

    store = LanceContentIndexer(str(lance_path), embedder or SentenceTransformerEmbedder())
    store.create_or_open()
    registry = JsonManifestRegistry(manifest_dir)
    walker = FilesystemWalker(exclude=exclude)
    return Reconciler(store, registry, walker=walker, locks=locks), store
