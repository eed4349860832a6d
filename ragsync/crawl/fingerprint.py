"""Content fingerprints for change detection.

SHA-256 over the raw bytes. Only collision resistance for change detection
matters here; identical content always yields the identical fingerprint.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from ragsync.config import FINGERPRINT_ALGORITHM, FINGERPRINT_BLOCK_SIZE
from ragsync.core.errors import FingerprintError


def fingerprint_bytes(data: bytes) -> str:
    """Fingerprint an in-memory payload."""
    digest = hashlib.new(FINGERPRINT_ALGORITHM, data).hexdigest()
    return f"{FINGERPRINT_ALGORITHM}:{digest}"


def sha256_fingerprint(path: Path) -> str:
    """Fingerprint a file by streaming it in fixed-size blocks.

    Args:
        path: File to hash.

    Returns:
        "sha256:<hex digest>"

    Raises:
        FingerprintError: If the file cannot be opened or read.
    """
    h = hashlib.new(FINGERPRINT_ALGORITHM)
    try:
        with path.open("rb") as f:
            for block in iter(lambda: f.read(FINGERPRINT_BLOCK_SIZE), b""):
                h.update(block)
    except OSError as e:
        raise FingerprintError(str(path), e.strerror or str(e)) from e
    return f"{FINGERPRINT_ALGORITHM}:{h.hexdigest()}"
