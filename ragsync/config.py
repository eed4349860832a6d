"""Configuration constants for the reconciliation pipeline.

These values are used across the pipeline for consistent behavior.
"""

from __future__ import annotations

import os
from pathlib import Path

# Embedding model configuration
# all-MiniLM-L6-v2 via sentence-transformers: small, CPU friendly
EMBEDDING_MODEL: str = "sentence-transformers/all-MiniLM-L6-v2"
EMBEDDING_DIM: int = 384

# Chunking configuration
MAX_CHUNK_WORDS: int = 400  # Words per sliding window chunk
CHUNK_OVERLAP: float = 0.1  # Fraction of the window repeated in the next chunk

# Fingerprinting
FINGERPRINT_BLOCK_SIZE: int = 64 * 1024
FINGERPRINT_ALGORITHM: str = "sha256"

# Storage layout
DEFAULT_DATA_DIR: Path = Path("./data")
LANCE_DIR: str = "ragsync.lance"
MANIFEST_DIR: str = "manifests"
TABLE_NAME: str = "chunks"
MANIFEST_VERSION: int = 1

# Directory and file name patterns skipped during traversal (fnmatch)
DEFAULT_EXCLUDES: frozenset[str] = frozenset({
    "node_modules",
    "vendor",
    ".git",
    ".hg",
    ".svn",
    "__pycache__",
    ".venv",
    "venv",
    ".tox",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    "dist",
    "build",
    "target",
    "bin",
    "obj",
    ".next",
    "*.egg-info",
    "*.pyc",
    ".DS_Store",
})


def data_dir() -> Path:
    """Resolve the data directory, honoring RAGSYNC_DATA_DIR."""
    override = os.environ.get("RAGSYNC_DATA_DIR")
    return Path(override) if override else DEFAULT_DATA_DIR


def default_paths(base: Path | None = None) -> tuple[Path, Path]:
    """Return (lance_path, manifest_dir) under a data directory."""
    root = base if base is not None else data_dir()
    return root / LANCE_DIR, root / MANIFEST_DIR
