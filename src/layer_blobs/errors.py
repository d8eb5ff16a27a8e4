"""
Layer blob error classes.

Provides a small taxonomy of errors raised while labelling layer blobs.
Read failures from the underlying byte source are not wrapped: an ``OSError``
raised by a blob reader reaches the caller unchanged.
"""
from __future__ import annotations

from typing import Optional


class LayerBlobError(Exception):
    """Base class for all layer blob errors."""
    pass


class CompressionDetectionError(LayerBlobError):
    """
    Compression classification of a layer blob was inconclusive.
    
    Raised when a media type is requested for a compression type that has
    no canonical layer media type (i.e. ``CompressionType.UNKNOWN``).
    """
    
    def __init__(self, digest: str):
        super().__init__(f"failed to detect layer {digest} compression type")
        self.digest = digest


class BlobNotFoundError(LayerBlobError):
    """
    Blob does not exist in the content store.
    
    Raised when:
    - A layout has no file under blobs/<alg>/<hex> for the digest
    - A registry answers HTTP 404 for the blob
    - A manifest reference cannot be resolved in index.json
    """
    
    def __init__(self, message: str, digest: Optional[str] = None):
        super().__init__(message)
        self.digest = digest


class BlobDownloadError(LayerBlobError):
    """
    Blob could not be fetched from a remote store.
    
    Raised when:
    - HTTP 401/403 (authentication or authorization failed)
    - Any other non-success HTTP status
    - Network errors talking to the registry
    """
    pass


__all__ = [
    "LayerBlobError",
    "CompressionDetectionError",
    "BlobNotFoundError",
    "BlobDownloadError",
]
