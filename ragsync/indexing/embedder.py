"""Embedder implementations for vector generation.

Provides embedders for converting text to vectors:
- SentenceTransformerEmbedder: Production embedder using sentence-transformers
- HashEmbedder: Deterministic embedder for tests and offline use, no model download
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, Any, Protocol

from ragsync.config import EMBEDDING_DIM, EMBEDDING_MODEL
from ragsync.core.errors import EmbeddingError

if TYPE_CHECKING:
    from sentence_transformers import SentenceTransformer


class Embedder(Protocol):
    """Encodes texts into dense vectors of a fixed dimension."""

    @property
    def dimension(self) -> int:
        ...

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        ...

    def embed_query(self, query: str) -> list[float]:
        ...


class SentenceTransformerEmbedder:
    """Wraps a sentence-transformers model for batch embedding.

    The model is loaded on first use so constructing an indexer stays cheap.
    """

    def __init__(
        self,
        model_name: str = EMBEDDING_MODEL,
        dimension: int = EMBEDDING_DIM,
        batch_size: int = 32,
    ) -> None:
        """Initialize the embedder.

        Args:
            model_name: HuggingFace model name or local path.
            dimension: Expected vector dimension of the model.
            batch_size: Batch size for encoding. Default 32.
        """
        self._model_name = model_name
        self._dimension = dimension
        self._batch_size = batch_size
        self._model: SentenceTransformer | None = None

    def _load(self) -> SentenceTransformer:
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            try:
                self._model = SentenceTransformer(self._model_name)
            except Exception as e:
                raise EmbeddingError("", f"Failed to load model {self._model_name}: {e}") from e
        return self._model

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Batch-encode texts into normalized vectors.

        Empty or whitespace-only texts map to zero vectors.

        Raises:
            EmbeddingError: If the model fails to load or encode.
        """
        if not texts:
            return []

        non_empty_indices = [i for i, t in enumerate(texts) if t.strip()]
        result: list[list[float]] = [[0.0] * self._dimension for _ in texts]
        if not non_empty_indices:
            return result

        model = self._load()
        try:
            vectors: Any = model.encode(
                [texts[i] for i in non_empty_indices],
                batch_size=self._batch_size,
                show_progress_bar=False,
                normalize_embeddings=True,
            )
        except Exception as e:
            raise EmbeddingError(texts[non_empty_indices[0]], f"Batch embedding failed: {e}") from e

        for i, idx in enumerate(non_empty_indices):
            vec = [float(x) for x in vectors[i]]
            if len(vec) != self._dimension:
                raise EmbeddingError(
                    texts[idx],
                    f"Expected {self._dimension}-dim vector, got {len(vec)}-dim",
                )
            result[idx] = vec
        return result

    def embed_query(self, query: str) -> list[float]:
        """Encode a single query string."""
        return self.embed_batch([query])[0]

    @property
    def dimension(self) -> int:
        return self._dimension


class HashEmbedder:
    """Deterministic embedder for testing without model download.

    Returns vectors derived from the SHA-256 of the text.
    """

    def __init__(self, dimension: int = EMBEDDING_DIM) -> None:
        self._dimension = dimension

    def embed(self, text: str) -> list[float]:
        """Generate deterministic vector from text hash."""
        if not text.strip():
            return [0.0] * self._dimension
        h = hashlib.sha256(text.encode()).digest()
        return [(h[i % len(h)] - 128) / 128.0 for i in range(self._dimension)]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Batch embed using single embed."""
        return [self.embed(t) for t in texts]

    def embed_query(self, query: str) -> list[float]:
        return self.embed(query)

    @property
    def dimension(self) -> int:
        return self._dimension
