"""Filesystem walking and content fingerprinting."""

from ragsync.crawl.fingerprint import fingerprint_bytes, sha256_fingerprint
from ragsync.crawl.walker import FilesystemWalker

__all__ = ["FilesystemWalker", "fingerprint_bytes", "sha256_fingerprint"]
