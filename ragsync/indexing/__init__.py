"""Indexing module for chunking, embedding and vector storage.

Provides:
- LanceContentIndexer: LanceDB-backed ContentIndexer
- SentenceTransformerEmbedder: Production embedder using sentence-transformers
- HashEmbedder: Test embedder with deterministic vectors
"""

from ragsync.indexing.chunker import ChunkData, sliding_window_chunks
from ragsync.indexing.embedder import Embedder, HashEmbedder, SentenceTransformerEmbedder
from ragsync.indexing.lance_indexer import LanceContentIndexer, chunks_schema, make_chunk_id

__all__ = [
    "ChunkData",
    "Embedder",
    "HashEmbedder",
    "LanceContentIndexer",
    "SentenceTransformerEmbedder",
    "chunks_schema",
    "make_chunk_id",
    "sliding_window_chunks",
]
