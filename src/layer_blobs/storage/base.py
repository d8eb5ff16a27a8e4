"""
Storage interfaces for layer blobs.

These protocols define the boundary between layer labelling and the stores
that hold blob content, enabling clean dependency injection and testing with
fakes.
"""
from __future__ import annotations

import re
from typing import BinaryIO, Protocol, runtime_checkable

__all__ = ["ContentStore", "DIGEST_RE", "split_digest"]

# "<algorithm>:<encoded>" as used by OCI descriptors
DIGEST_RE = re.compile(r"^(sha256|sha512):([a-f0-9]{64}|[a-f0-9]{128})$")

_DIGEST_HEX_LENGTHS = {"sha256": 64, "sha512": 128}


def split_digest(digest: str) -> tuple[str, str]:
    """
    Split and validate a content digest.
    
    Args:
        digest: Digest string such as "sha256:<64 hex chars>"
        
    Returns:
        (algorithm, hex) tuple
        
    Raises:
        ValueError: If digest is malformed
    """
    match = DIGEST_RE.match(digest or "")
    if not match or len(match.group(2)) != _DIGEST_HEX_LENGTHS[match.group(1)]:
        raise ValueError(f"invalid digest format: {digest}")
    return match.group(1), match.group(2)


@runtime_checkable
class ContentStore(Protocol):
    """Protocol for digest-addressed blob content."""
    
    def reader_at(self, digest: str) -> BinaryIO:
        """
        Open a reader on blob content.
        
        The returned stream is positioned at the start of the blob and must be
        closed by the caller (it supports the context manager protocol).
        
        Args:
            digest: Content digest ("sha256:...")
            
        Returns:
            Binary stream over the blob content
            
        Raises:
            BlobNotFoundError: If the blob does not exist
            BlobDownloadError: If a remote store cannot be reached
            OSError: For other I/O errors
        """
        ...
