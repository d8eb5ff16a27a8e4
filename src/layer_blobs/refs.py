"""
Layer identity types and cache reference handles.

A stack of layers is described two ways:

- a sequence of DiffPair ordered root to leaf (index 0 is the oldest ancestor)
- a chain of CacheRef handles walked from the leaf back to the root

CacheRef handles are owned: every handle obtained from clone() or parent()
must be released exactly once by whoever holds it.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Protocol, Sequence, runtime_checkable

__all__ = ["DiffPair", "LayerInfo", "CacheRef", "SnapshotRef", "held"]


@dataclass(frozen=True, slots=True)
class DiffPair:
    """
    Expected identity of one layer.
    
    diff_id: digest of the uncompressed layer tar ("sha256:...")
    blobsum: digest of the stored (possibly compressed) blob ("sha256:...")
    """
    diff_id: str
    blobsum: str


@dataclass(frozen=True, slots=True)
class LayerInfo:
    """What a cached layer snapshot recorded about itself."""
    diff_id: str
    blob: str
    media_type: str


@runtime_checkable
class CacheRef(Protocol):
    """Protocol for a handle on an immutable layer snapshot."""
    
    def info(self) -> LayerInfo:
        """Return the identity and media type recorded for this snapshot."""
        ...
    
    def parent(self) -> Optional["CacheRef"]:
        """Return a new handle on the parent snapshot, or None at the root."""
        ...
    
    def clone(self) -> "CacheRef":
        """Return a new handle on the same snapshot."""
        ...
    
    def release(self) -> None:
        """Give up this handle's claim on the snapshot."""
        ...


@contextmanager
def held(ref: CacheRef) -> Iterator[CacheRef]:
    """Release ref when the block exits, however it exits."""
    try:
        yield ref
    finally:
        ref.release()


class _ChainState:
    """Shared bookkeeping for all handles on one SnapshotRef chain."""
    
    def __init__(self, layers: Sequence[LayerInfo]) -> None:
        self.layers = tuple(layers)
        self.open_handles = 0


class SnapshotRef(CacheRef):
    """
    In-memory CacheRef over an immutable list of layer snapshots.
    
    Every handle shares one _ChainState, so the number of unreleased handles
    across the whole chain is observable via active_handles. Releasing a
    handle twice, or using a released handle, raises RuntimeError.
    """
    
    def __init__(self, state: _ChainState, index: int) -> None:
        self._state = state
        self._index = index
        self._released = False
        state.open_handles += 1
    
    @classmethod
    def chain(cls, layers: Sequence[LayerInfo]) -> Optional["SnapshotRef"]:
        """
        Build a chain and return a handle on its leaf.
        
        Args:
            layers: Layer snapshots ordered root to leaf
            
        Returns:
            Handle on the last (leaf) layer, or None if layers is empty
        """
        if not layers:
            return None
        state = _ChainState(layers)
        return cls(state, len(state.layers) - 1)
    
    @property
    def active_handles(self) -> int:
        """Number of unreleased handles on this chain."""
        return self._state.open_handles
    
    @property
    def released(self) -> bool:
        return self._released
    
    def info(self) -> LayerInfo:
        self._check_open()
        return self._state.layers[self._index]
    
    def parent(self) -> Optional["SnapshotRef"]:
        self._check_open()
        if self._index == 0:
            return None
        return SnapshotRef(self._state, self._index - 1)
    
    def clone(self) -> "SnapshotRef":
        self._check_open()
        return SnapshotRef(self._state, self._index)
    
    def release(self) -> None:
        if self._released:
            raise RuntimeError(f"snapshot handle for layer {self._index} released twice")
        self._released = True
        self._state.open_handles -= 1
    
    def _check_open(self) -> None:
        if self._released:
            raise RuntimeError(f"snapshot handle for layer {self._index} used after release")
    
    def __repr__(self) -> str:
        return f"SnapshotRef(layer={self._index}, released={self._released})"
