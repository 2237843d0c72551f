"""
Product API integration tests.

Verifies through the HTTP API:
- Create / get / list / replace / delete
- Blob files appear and disappear in step with records
- Error kinds map to distinct status codes
"""
from pathlib import Path

from fastapi.testclient import TestClient

from product_gallery.infrastructure.storage import BlobDeleteError, BlobUploadError, LocalBlobStore, StorageConfig
from product_gallery.main import create_app


def _blob_path(media_dir: Path, record_media: dict) -> Path:
    return media_dir / record_media["object_id"]


class TestCreateProduct:
    """Test product creation."""

    def test_create_with_image(self, client: TestClient, media_dir: Path, image_bytes: bytes):
        response = client.post(
            "/api/products",
            data={"name": "Lamp"},
            files={"image": ("lamp.png", image_bytes, "image/png")}
        )

        assert response.status_code == 201
        body = response.json()
        record = body["record"]
        assert record["name"] == "Lamp"
        assert record["video"] is None
        assert record["image"]["kind"] == "image"
        assert body["warnings"] == []
        assert _blob_path(media_dir, record["image"]).read_bytes() == image_bytes

        # Immediately readable
        fetched = client.get(f"/api/products/{record['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["image"] == record["image"]

    def test_create_with_video(self, client: TestClient, media_dir: Path, image_bytes, video_bytes):
        response = client.post(
            "/api/products",
            data={"name": "Lamp"},
            files={
                "image": ("lamp.png", image_bytes, "image/png"),
                "video": ("lamp.mp4", video_bytes, "video/mp4"),
            }
        )

        assert response.status_code == 201
        record = response.json()["record"]
        assert record["video"]["object_id"].startswith("gallery/videos/")
        assert _blob_path(media_dir, record["video"]).exists()

    def test_create_without_image(self, client: TestClient, media_dir: Path):
        response = client.post("/api/products", data={"name": "Lamp"})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert client.get("/api/products").json() == []

    def test_create_without_name(self, client: TestClient, image_bytes):
        response = client.post(
            "/api/products",
            files={"image": ("lamp.png", image_bytes, "image/png")}
        )

        assert response.status_code == 400

    def test_create_rejects_wrong_content_type(self, client: TestClient):
        response = client.post(
            "/api/products",
            data={"name": "Lamp"},
            files={"image": ("script.php", b"<?php echo 1; ?>", "application/x-php")}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_media_is_served(self, client: TestClient, created_product: dict, image_bytes):
        response = client.get(created_product["image"]["url"])

        assert response.status_code == 200
        assert response.content == image_bytes


class TestListAndGet:
    """Test retrieval."""

    def test_list_newest_first(self, client: TestClient, image_bytes):
        for name in ("A", "B", "C"):
            client.post(
                "/api/products",
                data={"name": name},
                files={"image": ("x.png", image_bytes, "image/png")}
            )

        response = client.get("/api/products")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["C", "B", "A"]

    def test_get_missing(self, client: TestClient):
        response = client.get("/api/products/999")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestReplaceProduct:
    """Test replacing name and media."""

    def test_replace_image(self, client: TestClient, media_dir: Path, created_product: dict):
        old_path = _blob_path(media_dir, created_product["image"])

        response = client.put(
            f"/api/products/{created_product['id']}",
            files={"image": ("new.jpg", b"\xff\xd8\xff\xe0new", "image/jpeg")}
        )

        assert response.status_code == 200
        record = response.json()["record"]
        assert record["id"] == created_product["id"]
        assert record["name"] == "Test Product"
        assert record["image"]["object_id"] != created_product["image"]["object_id"]
        assert _blob_path(media_dir, record["image"]).read_bytes() == b"\xff\xd8\xff\xe0new"
        assert not old_path.exists()

    def test_replace_name_only(self, client: TestClient, media_dir: Path, created_product: dict):
        response = client.put(
            f"/api/products/{created_product['id']}",
            data={"name": "Renamed"}
        )

        assert response.status_code == 200
        record = response.json()["record"]
        assert record["name"] == "Renamed"
        assert record["image"] == created_product["image"]
        assert _blob_path(media_dir, created_product["image"]).exists()

    def test_add_video(self, client: TestClient, media_dir: Path, created_product: dict, video_bytes):
        response = client.put(
            f"/api/products/{created_product['id']}",
            files={"video": ("clip.webm", video_bytes, "video/webm")}
        )

        assert response.status_code == 200
        video = response.json()["record"]["video"]
        assert _blob_path(media_dir, video).exists()

    def test_replace_missing(self, client: TestClient, image_bytes):
        response = client.put(
            "/api/products/999",
            files={"image": ("x.png", image_bytes, "image/png")}
        )

        assert response.status_code == 404


class TestDeleteProduct:
    """Test deletion."""

    def test_delete_removes_row_and_blobs(self, client: TestClient, media_dir: Path, created_product: dict):
        image_path = _blob_path(media_dir, created_product["image"])

        response = client.delete(f"/api/products/{created_product['id']}")

        assert response.status_code == 200
        assert response.json()["warnings"] == []
        assert not image_path.exists()
        assert client.get(f"/api/products/{created_product['id']}").status_code == 404

    def test_delete_missing(self, client: TestClient):
        response = client.delete("/api/products/999")

        assert response.status_code == 404


class FlakyBlobStore(LocalBlobStore):
    """Local store whose uploads or deletes can be switched to fail."""

    fail_uploads = False
    fail_deletes = False

    async def upload(self, content, namespace, kind, content_type=None):
        if self.fail_uploads:
            raise BlobUploadError("blob store unavailable")
        return await super().upload(content, namespace, kind, content_type)

    async def delete(self, object_id, kind):
        if self.fail_deletes:
            raise BlobDeleteError("blob store unavailable")
        return await super().delete(object_id, kind)


class TestBlobStoreFailures:
    """Failures of the blob store surface as distinct errors or warnings."""

    def _client(self, tmp_path: Path) -> tuple[TestClient, FlakyBlobStore]:
        store = FlakyBlobStore(StorageConfig(backend="local", base_path=tmp_path / "media"))
        app = create_app(database_path=tmp_path / "flaky.db", blob_store=store, setup_logging=False)
        return TestClient(app), store

    def test_upload_failure_is_502(self, tmp_path: Path, image_bytes):
        client, store = self._client(tmp_path)
        store.fail_uploads = True

        with client:
            response = client.post(
                "/api/products",
                data={"name": "Lamp"},
                files={"image": ("x.png", image_bytes, "image/png")}
            )
            assert response.status_code == 502
            assert response.json()["failures"] == {"image": "blob store unavailable"}
            assert client.get("/api/products").json() == []

    def test_delete_with_failed_blob_cleanup_still_deletes_row(self, tmp_path: Path, image_bytes):
        client, store = self._client(tmp_path)

        with client:
            created = client.post(
                "/api/products",
                data={"name": "Lamp"},
                files={"image": ("x.png", image_bytes, "image/png")}
            ).json()["record"]

            store.fail_deletes = True
            response = client.delete(f"/api/products/{created['id']}")

            assert response.status_code == 200
            warnings = response.json()["warnings"]
            assert [w["object_id"] for w in warnings] == [created["image"]["object_id"]]
            assert client.get(f"/api/products/{created['id']}").status_code == 404


def test_health(client: TestClient):
    assert client.get("/").json()["status"] == "ok"


def test_cors_preflight(client: TestClient):
    response = client.options(
        "/api/products",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
        }
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
