"""
Data models for OCI image documents.

These Pydantic models cover the parts of image manifests, image indexes and
image configs needed to pair each layer's blob digest with its diff ID.
Unknown fields are ignored so Docker schema2 documents parse as well.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .refs import DiffPair
from .storage.base import split_digest

__all__ = ["Descriptor", "ImageManifest", "ImageIndex", "RootFS", "ImageConfig", "diff_pairs"]


def _check_digest(v: str) -> str:
    split_digest(v)
    return v


class Descriptor(BaseModel):
    """OCI content descriptor."""
    model_config = ConfigDict(populate_by_name=True)
    
    media_type: str = Field(..., alias="mediaType", description="Media type of the referenced content")
    digest: str = Field(..., description="Content digest (sha256:...)")
    size: int = Field(..., ge=0, description="Content size in bytes")
    annotations: Dict[str, str] = Field(default_factory=dict, description="Arbitrary metadata")
    
    @field_validator("digest")
    @classmethod
    def validate_digest(cls, v):
        return _check_digest(v)


class ImageManifest(BaseModel):
    """Image manifest (OCI image manifest or Docker schema2 manifest)."""
    model_config = ConfigDict(populate_by_name=True)
    
    schema_version: int = Field(..., alias="schemaVersion", description="Always 2")
    media_type: Optional[str] = Field(default=None, alias="mediaType", description="Manifest media type")
    config: Descriptor = Field(..., description="Image config descriptor")
    layers: List[Descriptor] = Field(default_factory=list, description="Layers, root first")
    
    @field_validator("schema_version")
    @classmethod
    def validate_schema_version(cls, v):
        if v != 2:
            raise ValueError(f"unsupported manifest schemaVersion {v}")
        return v


class ImageIndex(BaseModel):
    """OCI image index (the index.json of an image layout)."""
    model_config = ConfigDict(populate_by_name=True)
    
    schema_version: int = Field(..., alias="schemaVersion", description="Always 2")
    media_type: Optional[str] = Field(default=None, alias="mediaType", description="Index media type")
    manifests: List[Descriptor] = Field(default_factory=list, description="Referenced manifests")


class RootFS(BaseModel):
    """Layer content addresses from an image config."""
    type: str = Field(default="layers", description="Always 'layers'")
    diff_ids: List[str] = Field(default_factory=list, description="Uncompressed layer digests, root first")
    
    @field_validator("diff_ids")
    @classmethod
    def validate_diff_ids(cls, v):
        return [_check_digest(d) for d in v]


class ImageConfig(BaseModel):
    """Image config document; only rootfs is modelled."""
    rootfs: RootFS = Field(..., description="Layer diff IDs")


def diff_pairs(manifest: ImageManifest, config: ImageConfig) -> List[DiffPair]:
    """
    Pair each manifest layer with its diff ID, root first.
    
    Raises:
        ValueError: If the manifest and config disagree on the layer count
    """
    diff_ids = config.rootfs.diff_ids
    if len(diff_ids) != len(manifest.layers):
        raise ValueError(
            f"manifest has {len(manifest.layers)} layers but config lists {len(diff_ids)} diff IDs"
        )
    return [DiffPair(diff_id=d, blobsum=layer.digest) for d, layer in zip(diff_ids, manifest.layers)]
