"""Root pytest configuration for layer-blobs tests."""
import pytest

from layer_blobs.settings import Settings
from layer_blobs.storage.fakes import MemoryContentStore
from layer_blobs.storage.layout import OCILayoutStore

from .helpers.oci_helpers import LayoutBuilder


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Keep host configuration out of tests."""
    for var in (
        "LAYER_BLOBS_REGISTRY_URL",
        "LAYER_BLOBS_REGISTRY_REPO",
        "LAYER_BLOBS_REGISTRY_INSECURE",
        "LAYER_BLOBS_REGISTRY_USERNAME",
        "LAYER_BLOBS_REGISTRY_PASSWORD",
        "LAYER_BLOBS_HTTP_TIMEOUT",
        "LAYER_BLOBS_HTTP_RETRY",
        "LAYER_BLOBS_OCI",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings(
        registry_url="http://localhost:5000",
        registry_repo="testns/app",
        registry_insecure=True
    )


@pytest.fixture
def store():
    """Standard in-memory content store."""
    return MemoryContentStore()


@pytest.fixture
def layout_builder(tmp_path):
    """Empty OCI image layout under tmp_path."""
    return LayoutBuilder(tmp_path / "layout")


@pytest.fixture
def layout(layout_builder):
    """OCILayoutStore over the layout_builder directory."""
    return OCILayoutStore(layout_builder.root)
