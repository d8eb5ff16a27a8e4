"""
Compression detection for layer blobs.

Classifies a blob by sniffing the first few bytes of its content. Only gzip
is recognized; everything else (including an empty blob) is treated as an
uncompressed tar stream.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import BinaryIO

__all__ = ["CompressionType", "DEFAULT_COMPRESSION", "SNIFF_SIZE", "detect_compression_type"]

logger = logging.getLogger(__name__)

# Enough bytes to hold any signature in _SIGNATURES
SNIFF_SIZE = 10


class CompressionType(Enum):
    """Compression applied to a layer blob."""
    UNCOMPRESSED = "uncompressed"
    GZIP = "gzip"
    UNKNOWN = "unknown"  # classification failed; never a detection result

    def __str__(self) -> str:
        return self.value


DEFAULT_COMPRESSION = CompressionType.GZIP

_SIGNATURES = (
    (CompressionType.GZIP, b"\x1f\x8b\x08"),
)


def detect_compression_type(reader: BinaryIO) -> CompressionType:
    """
    Detect compression type from real blob data.
    
    Reads at most SNIFF_SIZE bytes from the current position. A short or empty
    read is not an error: some layer tarballs are zero bytes long and those
    are treated as an uncompressed (empty) layer.
    
    Args:
        reader: Binary stream positioned at the start of the blob
        
    Returns:
        CompressionType.GZIP or CompressionType.UNCOMPRESSED
        
    Raises:
        OSError: If the underlying read fails (propagated unchanged)
    """
    head = reader.read(SNIFF_SIZE) or b""
    
    for compression, magic in _SIGNATURES:
        if len(head) < len(magic):
            continue
        if head[:len(magic)] == magic:
            return compression
    
    if not head:
        logger.debug("Empty blob, treating as uncompressed")
    return CompressionType.UNCOMPRESSED
