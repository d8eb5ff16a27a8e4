"""
OCI and Docker media types for image layers.

Single source of truth for layer media types, plus the two conversions this
package performs on them:

- compression type -> canonical layer media type (OCI or Docker naming)
- layer media type -> the equivalent value under the other naming convention
"""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping

from .compression import CompressionType
from .errors import CompressionDetectionError

logger = logging.getLogger(__name__)

# OCI image-spec layer types
OCI_LAYER = "application/vnd.oci.image.layer.v1.tar"
OCI_LAYER_GZIP = "application/vnd.oci.image.layer.v1.tar+gzip"

# Docker image manifest v2 schema 2 layer types
DOCKER_LAYER = "application/vnd.docker.image.rootfs.diff.tar"
DOCKER_LAYER_GZIP = "application/vnd.docker.image.rootfs.diff.tar.gzip"

# Manifest, index and config types read by the storage adapters
OCI_IMAGE_MANIFEST = "application/vnd.oci.image.manifest.v1+json"
OCI_IMAGE_INDEX = "application/vnd.oci.image.index.v1+json"
OCI_IMAGE_CONFIG = "application/vnd.oci.image.config.v1+json"
DOCKER_MANIFEST = "application/vnd.docker.distribution.manifest.v2+json"
DOCKER_MANIFEST_LIST = "application/vnd.docker.distribution.manifest.list.v2+json"
DOCKER_CONTAINER_CONFIG = "application/vnd.docker.container.image.v1+json"

# Annotation naming a manifest inside an OCI layout index.json
OCI_REF_NAME_ANNOTATION = "org.opencontainers.image.ref.name"

_LAYER_TYPES: Mapping[tuple[CompressionType, bool], str] = MappingProxyType({
    (CompressionType.UNCOMPRESSED, True): OCI_LAYER,
    (CompressionType.UNCOMPRESSED, False): DOCKER_LAYER,
    (CompressionType.GZIP, True): OCI_LAYER_GZIP,
    (CompressionType.GZIP, False): DOCKER_LAYER_GZIP,
})

TO_DOCKER_LAYER_TYPE: Mapping[str, str] = MappingProxyType({
    OCI_LAYER: DOCKER_LAYER,
    DOCKER_LAYER: DOCKER_LAYER,
    OCI_LAYER_GZIP: DOCKER_LAYER_GZIP,
    DOCKER_LAYER_GZIP: DOCKER_LAYER_GZIP,
})

TO_OCI_LAYER_TYPE: Mapping[str, str] = MappingProxyType({
    OCI_LAYER: OCI_LAYER,
    DOCKER_LAYER: OCI_LAYER,
    OCI_LAYER_GZIP: OCI_LAYER_GZIP,
    DOCKER_LAYER_GZIP: OCI_LAYER_GZIP,
})


def layer_media_type(compression: CompressionType, oci: bool, digest: str) -> str:
    """
    Map a detected compression type to its canonical layer media type.
    
    Args:
        compression: Result of compression detection
        oci: True for OCI media types, False for Docker schema2 types
        digest: Digest of the blob being labelled (used in the error message)
        
    Returns:
        One of the four canonical layer media types
        
    Raises:
        CompressionDetectionError: If compression is not a detectable type
    """
    try:
        return _LAYER_TYPES[(compression, bool(oci))]
    except KeyError:
        raise CompressionDetectionError(digest) from None


def convert_layer_media_type(media_type: str, oci: bool) -> str:
    """
    Convert a layer media type to the OCI or Docker naming convention.
    
    Unknown media types are passed through unchanged after logging a warning,
    so newer layer formats are not rejected.
    
    Args:
        media_type: Layer media type to convert
        oci: True to convert to OCI naming, False for Docker naming
        
    Returns:
        Converted media type, or media_type itself if it is not a known layer type
    """
    table = TO_OCI_LAYER_TYPE if oci else TO_DOCKER_LAYER_TYPE
    converted = table.get(media_type)
    if converted is None:
        logger.warning(f"unhandled conversion for mediatype {media_type!r}")
        return media_type
    return converted


def is_layer_media_type(media_type: str) -> bool:
    """Check if media_type is one of the four canonical layer types."""
    return media_type in TO_OCI_LAYER_TYPE


def compression_for_media_type(media_type: str) -> CompressionType:
    """Return the compression a canonical layer media type declares (UNKNOWN otherwise)."""
    for (compression, _oci), known in _LAYER_TYPES.items():
        if known == media_type:
            return compression
    return CompressionType.UNKNOWN


__all__ = [
    "OCI_LAYER",
    "OCI_LAYER_GZIP",
    "DOCKER_LAYER",
    "DOCKER_LAYER_GZIP",
    "OCI_IMAGE_MANIFEST",
    "OCI_IMAGE_INDEX",
    "OCI_IMAGE_CONFIG",
    "DOCKER_MANIFEST",
    "DOCKER_MANIFEST_LIST",
    "DOCKER_CONTAINER_CONFIG",
    "OCI_REF_NAME_ANNOTATION",
    "TO_DOCKER_LAYER_TYPE",
    "TO_OCI_LAYER_TYPE",
    "layer_media_type",
    "convert_layer_media_type",
    "is_layer_media_type",
    "compression_for_media_type",
]
