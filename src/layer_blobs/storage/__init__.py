"""
Storage adapters for layer blobs.

- base: ContentStore protocol and digest helpers
- layout: OCI image layout directories on local disk
- registry_http: blob prefixes read from an OCI distribution registry
- fakes: in-memory test doubles
"""
from .base import ContentStore, split_digest

__all__ = ["ContentStore", "split_digest"]
