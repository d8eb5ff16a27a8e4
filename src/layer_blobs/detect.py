"""
Layer media type detection from stored blob content.
"""
from __future__ import annotations

import logging

from .compression import CompressionType, detect_compression_type
from .media_types import layer_media_type
from .storage.base import ContentStore

__all__ = ["detect_layer_media_type", "detect_blob_compression"]

logger = logging.getLogger(__name__)


def detect_blob_compression(store: ContentStore, digest: str) -> CompressionType:
    """
    Open a blob and detect its compression type.
    
    The reader is closed before returning, whether or not detection succeeds.
    
    Raises:
        BlobNotFoundError: If the store has no such blob
        OSError: If reading the blob fails
    """
    with store.reader_at(digest) as reader:
        compression = detect_compression_type(reader)
    logger.debug(f"Detected {compression} compression for blob {digest}")
    return compression


def detect_layer_media_type(store: ContentStore, digest: str, oci: bool) -> str:
    """
    Return the layer media type for an existing blob.
    
    Args:
        store: Content store holding the blob
        digest: Blob digest ("sha256:...")
        oci: True for OCI media types, False for Docker schema2 types
        
    Returns:
        Canonical layer media type for the blob's compression
        
    Raises:
        BlobNotFoundError: If the store has no such blob
        BlobDownloadError: If a remote store cannot be reached
        OSError: If reading the blob fails
        CompressionDetectionError: If the compression could not be classified
    """
    compression = detect_blob_compression(store, digest)
    return layer_media_type(compression, oci, digest)
