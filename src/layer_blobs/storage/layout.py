"""
OCI image layout content store.

Reads blobs, manifests and configs from an image layout directory:

    <root>/oci-layout
    <root>/index.json
    <root>/blobs/<algorithm>/<hex>

and builds the cached layer chain for a manifest so its recorded layer media
types can be reconciled against another image's expected layers.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from pydantic import ValidationError

from ..errors import BlobNotFoundError
from ..media_types import OCI_REF_NAME_ANNOTATION
from ..models import ImageConfig, ImageIndex, ImageManifest, diff_pairs
from ..refs import DiffPair, LayerInfo, SnapshotRef
from .base import ContentStore, split_digest

__all__ = ["OCILayoutStore"]

logger = logging.getLogger(__name__)


class OCILayoutStore(ContentStore):
    """
    ContentStore over an OCI image layout directory.
    
    The layout is read-only from this class's point of view; nothing is
    written or cached between calls.
    """
    
    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)
        if not (self.root / "oci-layout").is_file():
            raise ValueError(f"Not an OCI image layout (no oci-layout file): {self.root}")
        logger.debug(f"OCI layout store at {self.root}")
    
    def blob_path(self, digest: str) -> Path:
        """Return the path a blob would have in this layout."""
        algorithm, hex_digest = split_digest(digest)
        return self.root / "blobs" / algorithm / hex_digest
    
    def reader_at(self, digest: str) -> BinaryIO:
        """Open a reader on blob content."""
        path = self.blob_path(digest)
        try:
            return open(path, "rb")
        except FileNotFoundError:
            raise BlobNotFoundError(f"Blob not found: {digest}", digest=digest) from None
    
    def read_blob(self, digest: str) -> bytes:
        """Read a whole blob (intended for small JSON documents)."""
        with self.reader_at(digest) as f:
            return f.read()
    
    def read_index(self) -> ImageIndex:
        """Parse the layout's index.json."""
        index_path = self.root / "index.json"
        try:
            data = json.loads(index_path.read_text())
        except FileNotFoundError:
            raise BlobNotFoundError(f"Layout has no index.json: {self.root}") from None
        return ImageIndex.model_validate(data)
    
    def resolve(self, ref: str) -> str:
        """
        Resolve a manifest reference to its digest.
        
        Args:
            ref: A manifest digest, or a ref name annotated in index.json
            
        Returns:
            Manifest digest
            
        Raises:
            BlobNotFoundError: If no manifest in index.json matches ref
        """
        if ":" in ref and ref.split(":", 1)[0] in ("sha256", "sha512"):
            split_digest(ref)
            return ref
        
        for descriptor in self.read_index().manifests:
            if descriptor.annotations.get(OCI_REF_NAME_ANNOTATION) == ref:
                logger.debug(f"Resolved {ref} to {descriptor.digest}")
                return descriptor.digest
        raise BlobNotFoundError(f"No manifest named {ref!r} in {self.root / 'index.json'}")
    
    def read_manifest(self, digest: str) -> ImageManifest:
        """
        Load and validate an image manifest.
        
        Raises:
            BlobNotFoundError: If the manifest blob is missing
            ValueError: If the blob is not a valid image manifest
        """
        return self._read_model(digest, ImageManifest)
    
    def read_config(self, manifest: ImageManifest) -> ImageConfig:
        """Load and validate the image config a manifest points at."""
        return self._read_model(manifest.config.digest, ImageConfig)
    
    def diff_pairs(self, manifest_digest: str) -> List[DiffPair]:
        """Return the (diff ID, blobsum) pairs of a manifest's layers, root first."""
        manifest = self.read_manifest(manifest_digest)
        return diff_pairs(manifest, self.read_config(manifest))
    
    def layer_chain(self, manifest_digest: str) -> Optional[SnapshotRef]:
        """
        Build a cached layer chain from a manifest.
        
        Each snapshot records the layer's diff ID, blob digest and the media
        type the manifest declares for it.
        
        Returns:
            Handle on the leaf layer (caller must release it), or None if the
            manifest has no layers
        """
        manifest = self.read_manifest(manifest_digest)
        pairs = diff_pairs(manifest, self.read_config(manifest))
        layers = [
            LayerInfo(diff_id=pair.diff_id, blob=pair.blobsum, media_type=descriptor.media_type)
            for pair, descriptor in zip(pairs, manifest.layers)
        ]
        return SnapshotRef.chain(layers)
    
    def _read_model(self, digest, model):
        raw = self.read_blob(digest)
        try:
            return model.model_validate_json(raw)
        except ValidationError as e:
            raise ValueError(f"Blob {digest} is not a valid {model.__name__}: {e}") from e
