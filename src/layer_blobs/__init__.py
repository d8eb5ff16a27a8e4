"""
layer-blobs: media types for container image layer blobs.

Detects layer compression from blob content, maps it to OCI or Docker layer
media types, converts between the two conventions, and recovers trusted
media types from a chain of cached layers.
"""
from .compression import CompressionType, DEFAULT_COMPRESSION, detect_compression_type
from .detect import detect_layer_media_type
from .errors import BlobDownloadError, BlobNotFoundError, CompressionDetectionError, LayerBlobError
from .media_types import convert_layer_media_type, layer_media_type
from .reconcile import get_media_type_for_layers
from .refs import CacheRef, DiffPair, LayerInfo, SnapshotRef

__version__ = "0.1.0"

__all__ = [
    "CompressionType",
    "DEFAULT_COMPRESSION",
    "detect_compression_type",
    "detect_layer_media_type",
    "convert_layer_media_type",
    "layer_media_type",
    "get_media_type_for_layers",
    "CacheRef",
    "DiffPair",
    "LayerInfo",
    "SnapshotRef",
    "LayerBlobError",
    "CompressionDetectionError",
    "BlobNotFoundError",
    "BlobDownloadError",
]
