"""
Tests for layer media type mapping and conversion.
"""
from __future__ import annotations

import logging

import pytest

from layer_blobs.compression import CompressionType
from layer_blobs.errors import CompressionDetectionError, LayerBlobError
from layer_blobs.media_types import (
    DOCKER_LAYER,
    DOCKER_LAYER_GZIP,
    OCI_LAYER,
    OCI_LAYER_GZIP,
    TO_DOCKER_LAYER_TYPE,
    TO_OCI_LAYER_TYPE,
    compression_for_media_type,
    convert_layer_media_type,
    is_layer_media_type,
    layer_media_type,
)

DIGEST = "sha256:" + "ab" * 32
ALL_LAYER_TYPES = [OCI_LAYER, OCI_LAYER_GZIP, DOCKER_LAYER, DOCKER_LAYER_GZIP]


def _conversion_warnings(caplog):
    return [r for r in caplog.records if r.name == "layer_blobs.media_types" and r.levelno == logging.WARNING]


class TestLayerMediaType:
    """Test compression type -> media type mapping."""
    
    @pytest.mark.parametrize("compression,oci,expected", [
        (CompressionType.UNCOMPRESSED, True, OCI_LAYER),
        (CompressionType.UNCOMPRESSED, False, DOCKER_LAYER),
        (CompressionType.GZIP, True, OCI_LAYER_GZIP),
        (CompressionType.GZIP, False, DOCKER_LAYER_GZIP),
    ])
    def test_canonical_table(self, compression, oci, expected):
        assert layer_media_type(compression, oci, DIGEST) == expected
    
    def test_canonical_strings(self):
        """Media type strings match the OCI image-spec and Docker schema2."""
        assert OCI_LAYER == "application/vnd.oci.image.layer.v1.tar"
        assert OCI_LAYER_GZIP == "application/vnd.oci.image.layer.v1.tar+gzip"
        assert DOCKER_LAYER == "application/vnd.docker.image.rootfs.diff.tar"
        assert DOCKER_LAYER_GZIP == "application/vnd.docker.image.rootfs.diff.tar.gzip"
    
    @pytest.mark.parametrize("oci", [True, False])
    def test_unknown_compression_fails_with_digest(self, oci):
        with pytest.raises(CompressionDetectionError) as exc_info:
            layer_media_type(CompressionType.UNKNOWN, oci, DIGEST)
        
        assert exc_info.value.digest == DIGEST
        assert DIGEST in str(exc_info.value)
        assert isinstance(exc_info.value, LayerBlobError)


class TestConvertLayerMediaType:
    """Test OCI <-> Docker media type conversion."""
    
    @pytest.mark.parametrize("media_type,expected", [
        (OCI_LAYER, OCI_LAYER),
        (DOCKER_LAYER, OCI_LAYER),
        (OCI_LAYER_GZIP, OCI_LAYER_GZIP),
        (DOCKER_LAYER_GZIP, OCI_LAYER_GZIP),
    ])
    def test_to_oci(self, media_type, expected, caplog):
        assert convert_layer_media_type(media_type, oci=True) == expected
        assert _conversion_warnings(caplog) == []
    
    @pytest.mark.parametrize("media_type,expected", [
        (OCI_LAYER, DOCKER_LAYER),
        (DOCKER_LAYER, DOCKER_LAYER),
        (OCI_LAYER_GZIP, DOCKER_LAYER_GZIP),
        (DOCKER_LAYER_GZIP, DOCKER_LAYER_GZIP),
    ])
    def test_to_docker(self, media_type, expected, caplog):
        assert convert_layer_media_type(media_type, oci=False) == expected
        assert _conversion_warnings(caplog) == []
    
    @pytest.mark.parametrize("media_type", [DOCKER_LAYER, DOCKER_LAYER_GZIP])
    def test_docker_round_trip_through_oci(self, media_type):
        oci = convert_layer_media_type(media_type, oci=True)
        assert convert_layer_media_type(oci, oci=False) == media_type
    
    @pytest.mark.parametrize("media_type", [OCI_LAYER, OCI_LAYER_GZIP])
    def test_oci_round_trip_through_docker(self, media_type):
        docker = convert_layer_media_type(media_type, oci=False)
        assert convert_layer_media_type(docker, oci=True) == media_type
    
    @pytest.mark.parametrize("oci", [True, False])
    def test_unknown_media_type_passes_through_with_one_warning(self, oci, caplog):
        caplog.set_level(logging.WARNING, logger="layer_blobs.media_types")
        zstd = "application/vnd.oci.image.layer.v1.tar+zstd"
        
        assert convert_layer_media_type(zstd, oci=oci) == zstd
        
        warnings = _conversion_warnings(caplog)
        assert len(warnings) == 1
        assert zstd in warnings[0].getMessage()
    
    def test_empty_string_passes_through(self, caplog):
        caplog.set_level(logging.WARNING, logger="layer_blobs.media_types")
        assert convert_layer_media_type("", oci=True) == ""
        assert len(_conversion_warnings(caplog)) == 1
    
    def test_tables_cover_all_layer_types(self):
        assert set(TO_OCI_LAYER_TYPE) == set(ALL_LAYER_TYPES)
        assert set(TO_DOCKER_LAYER_TYPE) == set(ALL_LAYER_TYPES)
    
    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            TO_OCI_LAYER_TYPE["application/x-new"] = OCI_LAYER  # type: ignore[index]
        with pytest.raises(TypeError):
            TO_DOCKER_LAYER_TYPE[OCI_LAYER] = OCI_LAYER  # type: ignore[index]


class TestMediaTypeHelpers:
    """Test is_layer_media_type and compression_for_media_type."""
    
    def test_is_layer_media_type(self):
        for media_type in ALL_LAYER_TYPES:
            assert is_layer_media_type(media_type)
        assert not is_layer_media_type("application/vnd.oci.image.manifest.v1+json")
    
    @pytest.mark.parametrize("media_type,expected", [
        (OCI_LAYER, CompressionType.UNCOMPRESSED),
        (DOCKER_LAYER, CompressionType.UNCOMPRESSED),
        (OCI_LAYER_GZIP, CompressionType.GZIP),
        (DOCKER_LAYER_GZIP, CompressionType.GZIP),
        ("application/vnd.oci.image.layer.v1.tar+zstd", CompressionType.UNKNOWN),
    ])
    def test_compression_for_media_type(self, media_type, expected):
        assert compression_for_media_type(media_type) is expected
