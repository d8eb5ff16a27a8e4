"""
Recover trusted layer media types from a chain of cached layers.

Given the expected identities of an image's layers and a handle on the
leaf of a cached layer chain, report the media type recorded by each cached
layer, but only for the contiguous run of layers (starting at the leaf) whose
diff ID and blobsum both match what is expected. A layer that does not match
breaks the provenance of everything beneath it, so no media type is reported
for it or for any of its ancestors.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .refs import CacheRef, DiffPair

__all__ = ["get_media_type_for_layers"]

logger = logging.getLogger(__name__)


def get_media_type_for_layers(diff_pairs: Sequence[DiffPair], ref: Optional[CacheRef]) -> List[str]:
    """
    Retrieve the media type of each layer from cached ref information.
    
    diff_pairs is ordered parent -> child while the chain is walked
    child -> parent, so position ``len(diff_pairs) - 1 - i`` is filled at step i.
    If the diff ID or blobsum of a ref does not match its pair, the result
    holds an empty media type for that layer and all of its parents.
    
    The caller keeps ownership of ref: the walk works on a clone, and every
    handle it obtains is released before returning, including on errors.
    
    Args:
        diff_pairs: Expected layer identities, root first
        ref: Handle on the leaf-most cached layer, or None
        
    Returns:
        Media types aligned with diff_pairs; "" where none can be trusted
    """
    n = len(diff_pairs)
    layer_types = [""] * n
    if ref is None:
        logger.debug(f"No cached ref, {n} layer media types left unset")
        return layer_types
    
    cursor: Optional[CacheRef] = ref.clone()
    trusted = 0
    try:
        for i in range(n):
            pos = n - 1 - i
            dp = diff_pairs[pos]
            
            info = cursor.info()
            if not (info.diff_id == dp.diff_id and info.blob == dp.blobsum):
                logger.debug(
                    f"Layer {pos} does not match cached ref "
                    f"(diff_id {info.diff_id} vs {dp.diff_id}, blob {info.blob} vs {dp.blobsum})"
                )
                break
            layer_types[pos] = info.media_type
            trusted += 1
            
            parent = cursor.parent()
            consumed, cursor = cursor, parent
            consumed.release()
            if cursor is None:
                if pos > 0:
                    logger.debug(f"Cached chain ended above layer {pos - 1}")
                break
    finally:
        if cursor is not None:
            cursor.release()
    
    logger.debug(f"Trusted media types for {trusted} of {n} layers")
    return layer_types
