"""LanceDB storage layer for per-project file content.

Satisfies the ContentIndexer protocol. Each file is chunked, embedded and
stored as rows keyed by (project_id, path, chunk_index). Upserts are
idempotent: chunk ids are deterministic, rows are merged on id, and chunks
beyond the new chunk count are deleted.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from typing import Any

import lancedb
import pyarrow as pa
import pyarrow.compute as pc

from ragsync.config import TABLE_NAME
from ragsync.core.errors import IndexerUnavailable
from ragsync.crawl.fingerprint import fingerprint_bytes
from ragsync.indexing.chunker import decode_content, sliding_window_chunks
from ragsync.indexing.embedder import Embedder

logger = logging.getLogger(__name__)


def chunks_schema(dimension: int) -> pa.Schema:
    """PyArrow schema for the chunks table at a given vector dimension."""
    return pa.schema([
        pa.field("id", pa.string()),
        pa.field("project_id", pa.string()),
        pa.field("path", pa.string()),
        pa.field("chunk_index", pa.int64()),
        pa.field("byte_start", pa.int64()),
        pa.field("byte_end", pa.int64()),
        pa.field("text", pa.string()),
        pa.field("context_prefix", pa.string()),
        pa.field("fingerprint", pa.string()),
        pa.field("indexed_at", pa.string()),
        pa.field("vector", pa.list_(pa.float32(), dimension)),
    ])


def make_chunk_id(project_id: str, path: str, index: int) -> str:
    """Deterministic chunk id.

    Re-indexing the same file produces the same ids, which is what makes
    merge-on-id upserts idempotent.
    """
    key = f"{project_id}:{path}:{index}"
    return hashlib.sha256(key.encode()).hexdigest()[:24]


def _quote(value: str) -> str:
    """SQL string literal for LanceDB filter expressions."""
    return "'" + value.replace("'", "''") + "'"


class LanceContentIndexer:
    """LanceDB wrapper storing chunked, embedded file content per project.

    Handles table creation, idempotent per-path upserts, deletion by
    project or path, and vector search scoped to a project.
    """

    TABLE_NAME = TABLE_NAME

    def __init__(self, db_path: str, embedder: Embedder) -> None:
        """Initialize connection to LanceDB.

        Args:
            db_path: Path to the LanceDB database directory.
            embedder: Embedder used for chunk and query vectors.
        """
        self._embedder = embedder
        self._schema = chunks_schema(embedder.dimension)
        try:
            self._db = lancedb.connect(db_path)
        except Exception as e:
            raise IndexerUnavailable("connect", str(e)) from e
        self._table: Any = None

    def create_or_open(self) -> None:
        """Create the chunks table if it doesn't exist, or open existing."""
        try:
            self._table = self._db.create_table(
                self.TABLE_NAME,
                schema=self._schema,
                exist_ok=True,
            )
        except Exception as e:
            raise IndexerUnavailable("open", str(e)) from e

    def _require_table(self) -> Any:
        if self._table is None:
            self.create_or_open()
        return self._table

    def upsert(self, project_id: str, path: str, content: bytes) -> None:
        """Replace the stored chunks of (project_id, path) with content.

        Chunking and embedding happen before any write, so an
        EmbeddingError leaves the stored rows untouched.

        Raises:
            EmbeddingError: The embedder failed on this file's text.
            IndexerUnavailable: LanceDB rejected the write.
        """
        table = self._require_table()
        text = decode_content(content)
        chunks = sliding_window_chunks(text, path)
        vectors = self._embedder.embed_batch(
            [f"{c.context_prefix}\n{c.text}" for c in chunks]
        )

        fingerprint = fingerprint_bytes(content)
        indexed_at = datetime.now(timezone.utc).isoformat()
        records = [
            {
                "id": make_chunk_id(project_id, path, c.index),
                "project_id": project_id,
                "path": path,
                "chunk_index": c.index,
                "byte_start": c.byte_start,
                "byte_end": c.byte_end,
                "text": c.text,
                "context_prefix": c.context_prefix,
                "fingerprint": fingerprint,
                "indexed_at": indexed_at,
                "vector": vec,
            }
            for c, vec in zip(chunks, vectors)
        ]

        scope = f"project_id = {_quote(project_id)} AND path = {_quote(path)}"
        try:
            if records:
                data = pa.Table.from_pylist(records, schema=self._schema)
                (
                    table.merge_insert("id")
                    .when_matched_update_all()
                    .when_not_matched_insert_all()
                    .execute(data)
                )
            table.delete(f"{scope} AND chunk_index >= {len(records)}")
        except Exception as e:
            raise IndexerUnavailable("upsert", f"{project_id}:{path}: {e}") from e

        logger.debug("path_upserted project=%s path=%s chunks=%d", project_id, path, len(records))

    def delete_where(self, project_id: str, path: str | None = None) -> int:
        """Delete a path's chunks, or every chunk of the project if path is None.

        Returns:
            Number of deleted chunks.
        """
        table = self._require_table()
        where = f"project_id = {_quote(project_id)}"
        if path is not None:
            where += f" AND path = {_quote(path)}"
        try:
            count_before: int = table.count_rows(where)
            if count_before:
                table.delete(where)
        except Exception as e:
            raise IndexerUnavailable("delete", f"{where}: {e}") from e
        return count_before

    def search(
        self,
        query: str,
        project_id: str | None = None,
        top_k: int = 10,
    ) -> list[dict[str, Any]]:
        """Vector search over stored chunks.

        Args:
            query: Query text; embedded with the indexer's embedder.
            project_id: Only return chunks from this project.
            top_k: Maximum number of results to return.

        Returns:
            Chunk records (without vectors) with a _distance score.
        """
        table = self._require_table()
        vector = self._embedder.embed_query(query)
        try:
            q = table.search(vector).limit(top_k)
            if project_id is not None:
                q = q.where(f"project_id = {_quote(project_id)}", prefilter=True)
            results: list[dict[str, Any]] = q.to_list()
        except Exception as e:
            raise IndexerUnavailable("search", str(e)) from e
        for r in results:
            r.pop("vector", None)
        return results

    def paths(self, project_id: str) -> list[str]:
        """Sorted distinct paths stored for a project."""
        rows = self._project_rows(project_id)
        return sorted(set(rows.column("path").to_pylist()))

    def fingerprints(self, project_id: str) -> dict[str, str]:
        """Map of path -> fingerprint of the content last stored for it."""
        rows = self._project_rows(project_id)
        return dict(zip(rows.column("path").to_pylist(), rows.column("fingerprint").to_pylist()))

    def count(self, project_id: str | None = None) -> int:
        """Number of stored chunks, optionally for one project."""
        table = self._require_table()
        try:
            if project_id is None:
                total: int = table.count_rows()
            else:
                total = table.count_rows(f"project_id = {_quote(project_id)}")
        except Exception as e:
            raise IndexerUnavailable("count", str(e)) from e
        return total

    def _project_rows(self, project_id: str) -> pa.Table:
        table = self._require_table()
        try:
            data: pa.Table = table.to_arrow()
        except Exception as e:
            raise IndexerUnavailable("scan", str(e)) from e
        return data.filter(pc.equal(data.column("project_id"), project_id))
