"""Sliding-window text chunking for file content.

Files are split on whitespace into overlapping word windows. Each chunk
keeps approximate byte offsets into the decoded text and a context prefix
naming its file.
"""

from __future__ import annotations

from dataclasses import dataclass

from ragsync.config import CHUNK_OVERLAP, MAX_CHUNK_WORDS


@dataclass
class ChunkData:
    """One window of a file, ready to embed."""

    index: int
    text: str
    byte_start: int
    byte_end: int
    context_prefix: str


def decode_content(content: bytes) -> str:
    """Decode file bytes as UTF-8, replacing undecodable sequences."""
    return content.decode("utf-8", errors="replace")


def sliding_window_chunks(
    text: str,
    path: str,
    max_words: int = MAX_CHUNK_WORDS,
    overlap: float = CHUNK_OVERLAP,
) -> list[ChunkData]:
    """Split text into overlapping word windows.

    Args:
        text: Decoded file content.
        path: Relative path, used for the context prefix.
        max_words: Words per window.
        overlap: Fraction of each window repeated in the next one.

    Returns:
        Chunks in order. Empty or whitespace-only text yields no chunks.
    """
    if max_words <= 0:
        raise ValueError("max_words must be positive")
    if not 0 <= overlap < 1:
        raise ValueError("overlap must be in [0, 1)")

    words = text.split()
    if not words:
        return []

    prefix = f"// {path}"
    if len(words) <= max_words:
        return [
            ChunkData(
                index=0,
                text=text,
                byte_start=0,
                byte_end=len(text.encode("utf-8")),
                context_prefix=prefix,
            )
        ]

    chunks: list[ChunkData] = []
    stride = max(max_words - int(max_words * overlap), 1)
    i = 0

    while i < len(words):
        end_idx = min(i + max_words, len(words))
        chunk_text = " ".join(words[i:end_idx])

        # Byte range is approximate: whitespace is collapsed to single spaces
        prefix_text = " ".join(words[:i]) + (" " if i > 0 else "")
        byte_start = len(prefix_text.encode("utf-8"))
        byte_end = byte_start + len(chunk_text.encode("utf-8"))

        chunks.append(
            ChunkData(
                index=len(chunks),
                text=chunk_text,
                byte_start=byte_start,
                byte_end=byte_end,
                context_prefix=f"{prefix} (part {len(chunks) + 1})",
            )
        )

        if end_idx >= len(words):
            break
        i += stride

    return chunks
