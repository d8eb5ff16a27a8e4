"""
Tests for get_media_type_for_layers.

Every test checks handle accounting as well as the result: after the walk,
only the caller's own handle on the chain may remain open.
"""
from __future__ import annotations

from typing import Optional

import pytest

from layer_blobs.media_types import DOCKER_LAYER, DOCKER_LAYER_GZIP, OCI_LAYER, OCI_LAYER_GZIP
from layer_blobs.reconcile import get_media_type_for_layers
from layer_blobs.refs import CacheRef, DiffPair, LayerInfo, SnapshotRef

MEDIA_TYPES = [OCI_LAYER_GZIP, DOCKER_LAYER, OCI_LAYER, DOCKER_LAYER_GZIP, OCI_LAYER_GZIP]


def _digest(prefix: str, i: int) -> str:
    return "sha256:" + f"{prefix}{i}".encode().hex().ljust(64, "0")


def _stack(n):
    """n matching (pairs, layers), root first."""
    pairs = [DiffPair(diff_id=_digest("diff", i), blobsum=_digest("blob", i)) for i in range(n)]
    layers = [
        LayerInfo(diff_id=p.diff_id, blob=p.blobsum, media_type=MEDIA_TYPES[i % len(MEDIA_TYPES)])
        for i, p in enumerate(pairs)
    ]
    return pairs, layers


class _FailingInfoRef(CacheRef):
    """Wraps a SnapshotRef; info() raises for one diff ID."""
    
    def __init__(self, inner: SnapshotRef, fail_diff_id: str):
        self._inner = inner
        self._fail = fail_diff_id
    
    def info(self) -> LayerInfo:
        info = self._inner.info()
        if info.diff_id == self._fail:
            raise RuntimeError("snapshot metadata unavailable")
        return info
    
    def parent(self) -> Optional[CacheRef]:
        parent = self._inner.parent()
        return None if parent is None else _FailingInfoRef(parent, self._fail)
    
    def clone(self) -> CacheRef:
        return _FailingInfoRef(self._inner.clone(), self._fail)
    
    def release(self) -> None:
        self._inner.release()


class TestGetMediaTypeForLayers:
    """Test trusted media type recovery from cached chains."""
    
    def test_all_layers_match(self):
        pairs, layers = _stack(4)
        head = SnapshotRef.chain(layers)
        
        result = get_media_type_for_layers(pairs, head)
        
        assert result == [layer.media_type for layer in layers]
        assert all(result)
        assert head.active_handles == 1
        assert not head.released
    
    def test_none_ref_gives_all_empty(self):
        pairs, _ = _stack(3)
        assert get_media_type_for_layers(pairs, None) == ["", "", ""]
    
    def test_no_pairs(self):
        _, layers = _stack(2)
        head = SnapshotRef.chain(layers)
        
        assert get_media_type_for_layers([], head) == []
        assert head.active_handles == 1
    
    def test_no_pairs_no_ref(self):
        assert get_media_type_for_layers([], None) == []
    
    @pytest.mark.parametrize("k", [0, 1, 2, 3, 4])
    def test_blob_mismatch_at_chain_position_k(self, k):
        """A mismatch k steps from the leaf leaves only the k child-ward layers trusted."""
        n = 5
        pairs, layers = _stack(n)
        bad = n - 1 - k
        layers[bad] = LayerInfo(diff_id=layers[bad].diff_id, blob=_digest("other", bad),
                                media_type=layers[bad].media_type)
        head = SnapshotRef.chain(layers)
        
        result = get_media_type_for_layers(pairs, head)
        
        assert result[:bad + 1] == [""] * (bad + 1)
        assert result[bad + 1:] == [layer.media_type for layer in layers[bad + 1:]]
        assert sum(1 for m in result if m) == k
        assert head.active_handles == 1
    
    def test_diff_id_mismatch_stops_walk(self):
        pairs, layers = _stack(3)
        layers[1] = LayerInfo(diff_id=_digest("other", 1), blob=layers[1].blob,
                              media_type=layers[1].media_type)
        head = SnapshotRef.chain(layers)
        
        result = get_media_type_for_layers(pairs, head)
        
        assert result == ["", "", layers[2].media_type]
        assert head.active_handles == 1
    
    def test_mismatch_hides_matching_ancestors(self):
        """Layers below a broken layer are untrusted even if they match."""
        pairs, layers = _stack(4)
        layers[2] = LayerInfo(diff_id=layers[2].diff_id, blob=_digest("other", 2),
                              media_type=layers[2].media_type)
        head = SnapshotRef.chain(layers)
        
        result = get_media_type_for_layers(pairs, head)
        
        assert result == ["", "", "", layers[3].media_type]
    
    def test_chain_shorter_than_pairs(self):
        """The walk stops when the chain reaches its root."""
        pairs, layers = _stack(4)
        head = SnapshotRef.chain(layers[2:])
        
        result = get_media_type_for_layers(pairs, head)
        
        assert result == ["", "", layers[2].media_type, layers[3].media_type]
        assert head.active_handles == 1
    
    def test_chain_longer_than_pairs(self):
        """Extra cached ancestors are never visited past the first pair."""
        pairs, layers = _stack(4)
        head = SnapshotRef.chain(layers)
        
        result = get_media_type_for_layers(pairs[2:], head)
        
        assert result == [layers[2].media_type, layers[3].media_type]
        assert head.active_handles == 1
    
    def test_leaf_mismatch_gives_all_empty(self):
        pairs, layers = _stack(3)
        head = SnapshotRef.chain(layers[:2])
        
        assert get_media_type_for_layers(pairs, head) == ["", "", ""]
        assert head.active_handles == 1
    
    def test_error_during_walk_releases_handles(self):
        pairs, layers = _stack(4)
        inner = SnapshotRef.chain(layers)
        head = _FailingInfoRef(inner, fail_diff_id=layers[1].diff_id)
        
        with pytest.raises(RuntimeError, match="metadata unavailable"):
            get_media_type_for_layers(pairs, head)
        
        assert inner.active_handles == 1
    
    def test_result_is_aligned_with_pairs(self):
        pairs, layers = _stack(3)
        head = SnapshotRef.chain(layers)
        
        result = get_media_type_for_layers(pairs, head)
        
        assert len(result) == len(pairs)
        for pair, layer, media_type in zip(pairs, layers, result):
            assert layer.diff_id == pair.diff_id
            assert media_type == layer.media_type
    
    def test_caller_can_reuse_head(self):
        pairs, layers = _stack(2)
        head = SnapshotRef.chain(layers)
        
        first = get_media_type_for_layers(pairs, head)
        second = get_media_type_for_layers(pairs, head)
        
        assert first == second
        head.release()
        assert head.active_handles == 0
