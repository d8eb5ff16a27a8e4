"""
Operations Facade - Application service layer.

Provides a clean interface between the CLI and the labelling functions,
centralizing store construction and the OCI/Docker naming policy while
keeping CLI commands thin and testable.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..compression import CompressionType
from ..detect import detect_blob_compression
from ..media_types import convert_layer_media_type, layer_media_type
from ..reconcile import get_media_type_for_layers
from ..refs import DiffPair, held
from ..storage.base import ContentStore
from ..storage.layout import OCILayoutStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpsConfig:
    """
    Configuration for Operations facade.
    """
    oci: bool = True              # OCI media types (False: Docker schema2)
    verbose: bool = False         # Show detailed output


@dataclass(frozen=True)
class DetectedLayer:
    """Compression and media type detected for one blob."""
    digest: str
    compression: CompressionType
    media_type: str


@dataclass(frozen=True)
class ReconcileReport:
    """
    Trusted media types of an expected image's layers.
    
    pairs and media_types are aligned and root first; an empty media type
    means the cached chain could not vouch for that layer.
    """
    expected: str
    cached: str
    pairs: List[DiffPair]
    media_types: List[str]
    
    @property
    def trusted(self) -> int:
        return sum(1 for m in self.media_types if m)


class Operations:
    """
    Application service facade for CLI operations.
    
    One method per CLI verb. The store used by detect() is injected, or
    built lazily from environment settings on first use, so resolve-free
    commands (convert, reconcile) never need registry configuration.
    Exceptions bubble up for central mapping in run_and_exit.
    A registry store built here is owned by the facade and closed by
    close() or on leaving a with block; an injected store is left open.
    """
    
    def __init__(self, config: OpsConfig, store: Optional[ContentStore] = None, settings=None):
        """
        Initialize Operations facade.
        
        Args:
            config: Configuration settings
            store: Content store for detect (if None, a registry store from settings)
            settings: Optional settings (if None, loaded from environment when needed)
        """
        self.cfg = config
        self._store = store
        self._settings = settings
        self._owns_store = False
    
    @property
    def store(self) -> ContentStore:
        if self._store is None:
            from ..storage.registry_http import RegistryBlobStore
            settings = self._settings
            if settings is None:
                from ..settings import create_settings_from_env
                settings = create_settings_from_env()
            self._store = RegistryBlobStore.from_settings(settings)
            self._owns_store = True
        return self._store
    
    def close(self) -> None:
        """Close the registry store if this facade built it."""
        if self._owns_store:
            self._store.close()
            self._store = None
            self._owns_store = False
    
    def __enter__(self) -> "Operations":
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
    
    def detect(self, digest: str) -> DetectedLayer:
        """Detect compression and media type of a blob."""
        compression = detect_blob_compression(self.store, digest)
        return DetectedLayer(
            digest=digest,
            compression=compression,
            media_type=layer_media_type(compression, self.cfg.oci, digest),
        )
    
    def convert(self, media_type: str) -> str:
        """Convert a layer media type to the configured naming convention."""
        return convert_layer_media_type(media_type, self.cfg.oci)
    
    def reconcile(self, layout: OCILayoutStore, expected: str, cached: str) -> ReconcileReport:
        """
        Recover trusted layer media types for one image from another.
        
        Args:
            layout: Layout holding both images
            expected: Manifest digest or ref name of the image being labelled
            cached: Manifest digest or ref name whose recorded media types are reused
            
        Returns:
            Report with trusted media types in the configured naming convention
        """
        expected_digest = layout.resolve(expected)
        cached_digest = layout.resolve(cached)
        pairs = layout.diff_pairs(expected_digest)
        
        head = layout.layer_chain(cached_digest)
        if head is None:
            media_types = get_media_type_for_layers(pairs, None)
        else:
            with held(head):
                media_types = get_media_type_for_layers(pairs, head)
        
        media_types = [self.convert(m) if m else m for m in media_types]
        logger.debug(f"Reconciled {expected_digest} against {cached_digest}")
        return ReconcileReport(
            expected=expected_digest,
            cached=cached_digest,
            pairs=pairs,
            media_types=media_types,
        )
