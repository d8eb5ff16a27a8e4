"""In-memory storage fakes for tests and local experiments."""
from .fake_content_store import MemoryContentStore

__all__ = ["MemoryContentStore"]
