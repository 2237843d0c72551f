"""Test configuration and fixtures for Product Gallery.

This module provides isolated test environments:
- Temporary SQLite database
- Temporary local blob store directory
- Fresh application per test
"""
import sys
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Ensure package is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from product_gallery.infrastructure.storage import LocalBlobStore, StorageConfig  # noqa: E402
from product_gallery.main import create_app  # noqa: E402


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64
MP4_BYTES = b"\x00\x00\x00\x20ftypisom" + b"\x00" * 64


@pytest.fixture(scope="function")
def media_dir(tmp_path: Path) -> Path:
    """Root directory of the local blob store."""
    return tmp_path / "media"


@pytest.fixture(scope="function")
def blob_store(media_dir: Path) -> LocalBlobStore:
    """Local blob store in a temporary directory."""
    return LocalBlobStore(StorageConfig(backend="local", base_path=media_dir))


@pytest.fixture(scope="function")
def client(tmp_path: Path, blob_store: LocalBlobStore) -> Generator[TestClient, None, None]:
    """Create test client with fresh isolated database and blob store.

    Usage:
        def test_something(client):
            response = client.get("/api/products")
            assert response.status_code == 200
    """
    app = create_app(
        database_path=tmp_path / "test.db",
        blob_store=blob_store,
        setup_logging=False
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def image_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture(scope="function")
def video_bytes() -> bytes:
    return MP4_BYTES


@pytest.fixture(scope="function")
def created_product(client: TestClient, image_bytes: bytes) -> dict:
    """Create a product with an image and return its record."""
    response = client.post(
        "/api/products",
        data={"name": "Test Product"},
        files={"image": ("test.png", image_bytes, "image/png")}
    )
    assert response.status_code == 201, f"Create failed: {response.text}"
    return response.json()["record"]
