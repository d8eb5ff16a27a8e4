"""
Fake content store implementation for testing.

This implementation explicitly subclasses ContentStore to ensure interface
changes break CI immediately, preventing silent drift.
"""
from __future__ import annotations

import hashlib
import io
from typing import BinaryIO, Callable, Dict

from ...errors import BlobNotFoundError
from ..base import ContentStore, split_digest

__all__ = ["MemoryContentStore"]


class _TrackedReader(io.BytesIO):
    """BytesIO that reports its first close() back to the store."""
    
    def __init__(self, data: bytes, on_close: Callable[[], None]) -> None:
        super().__init__(data)
        self._on_close = on_close
    
    def close(self) -> None:
        if not self.closed:
            self._on_close()
        super().close()


class _FailingReader(_TrackedReader):
    """Reader whose every read raises the configured error."""
    
    def __init__(self, error: OSError, on_close: Callable[[], None]) -> None:
        super().__init__(b"", on_close)
        self._error = error
    
    def read(self, size: int | None = -1) -> bytes:
        raise self._error


class MemoryContentStore(ContentStore):
    """
    In-memory content store keyed by digest.
    
    This is a test double; not for production use.
    Tracks opened/closed reader counts so tests can check for leaks.
    """
    
    def __init__(self) -> None:
        self._blobs: Dict[str, bytes] = {}
        self._read_errors: Dict[str, OSError] = {}
        self.opened = 0
        self.closed = 0
    
    def put(self, data: bytes) -> str:
        """Store blob content and return its sha256 digest."""
        digest = f"sha256:{hashlib.sha256(data).hexdigest()}"
        self._blobs[digest] = data
        return digest
    
    def fail_reads(self, digest: str, error: OSError) -> None:
        """Make reads of an existing blob raise error (test utility)."""
        if digest not in self._blobs:
            raise KeyError(digest)
        self._read_errors[digest] = error
    
    def reader_at(self, digest: str) -> BinaryIO:
        """Open a reader on blob content."""
        split_digest(digest)
        if digest not in self._blobs:
            raise BlobNotFoundError(f"Blob not found: {digest}", digest=digest)
        
        self.opened += 1
        if digest in self._read_errors:
            return _FailingReader(self._read_errors[digest], self._count_close)
        return _TrackedReader(self._blobs[digest], self._count_close)
    
    def clear(self) -> None:
        """Clear all stored data (test utility)."""
        self._blobs.clear()
        self._read_errors.clear()
    
    def _count_close(self) -> None:
        self.closed += 1
