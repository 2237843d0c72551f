"""S3-compatible blob store (AWS S3, MinIO, DigitalOcean Spaces)."""
import asyncio
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ...domain.models import MediaKind, MediaRef
from .base import (
    BlobStore,
    StorageConfig,
    BlobStoreError,
    BlobUploadError,
    BlobDeleteError
)


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")


class S3BlobStore(BlobStore):
    """S3-compatible blob store.

    boto3 clients are thread-safe, so blocking calls run in worker threads
    and concurrent operations share one client.
    """

    def __init__(self, config: StorageConfig, client=None):
        """Initialize S3 blob store.

        Args:
            config: Storage configuration with S3 settings
            client: Preconfigured boto3 S3 client (skips client creation
                and the bucket check)
        """
        if config.backend not in ("s3", "minio"):
            raise ValueError(
                f"S3BlobStore requires backend='s3' or 'minio', got '{config.backend}'"
            )

        self.config = config
        self.bucket = config.bucket_name

        if client is not None:
            self.client = client
            return

        client_kwargs = {
            "service_name": "s3",
            "aws_access_key_id": config.access_key,
            "aws_secret_access_key": config.secret_key,
            "region_name": config.region,
        }

        # Custom endpoint for MinIO/DigitalOcean
        if config.endpoint_url:
            client_kwargs["endpoint_url"] = config.endpoint_url
            client_kwargs["use_ssl"] = config.use_ssl

        self.client = boto3.client(**client_kwargs)
        self._ensure_bucket()

    def _ensure_bucket(self):
        """Create bucket if it doesn't exist."""
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            if _error_code(e) != "404":
                raise BlobStoreError(f"Cannot access bucket {self.bucket}: {e}")
            try:
                if self.config.region == "us-east-1":
                    self.client.create_bucket(Bucket=self.bucket)
                else:
                    self.client.create_bucket(
                        Bucket=self.bucket,
                        CreateBucketConfiguration={
                            "LocationConstraint": self.config.region
                        }
                    )
            except ClientError as create_error:
                raise BlobStoreError(
                    f"Failed to create bucket {self.bucket}: {create_error}"
                )

    async def upload(
        self,
        content: bytes,
        namespace: str,
        kind: MediaKind,
        content_type: Optional[str] = None
    ) -> MediaRef:
        """Upload blob with a single PutObject (all-or-nothing)."""
        object_id = self.new_object_id(namespace, content_type)

        extra_args = {}
        if content_type:
            extra_args["ContentType"] = content_type

        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=object_id,
                Body=content,
                **extra_args
            )
        except (ClientError, BotoCoreError) as e:
            raise BlobUploadError(f"Failed to upload {kind.value} to {namespace}: {e}")

        return MediaRef(url=self.get_url(object_id), object_id=object_id, kind=kind)

    async def delete(self, object_id: str, kind: MediaKind) -> bool:
        """Delete blob from S3."""
        try:
            await asyncio.to_thread(
                self.client.delete_object, Bucket=self.bucket, Key=object_id
            )
            return True
        except ClientError as e:
            if _error_code(e) == "NoSuchKey":
                return False
            raise BlobDeleteError(f"Failed to delete {object_id}: {e}")
        except BotoCoreError as e:
            raise BlobDeleteError(f"Failed to delete {object_id}: {e}")

    async def exists(self, object_id: str) -> bool:
        try:
            await asyncio.to_thread(
                self.client.head_object, Bucket=self.bucket, Key=object_id
            )
            return True
        except ClientError as e:
            if _error_code(e) in ("404", "NoSuchKey"):
                return False
            raise BlobStoreError(f"Failed to check existence of {object_id}: {e}")

    def get_url(self, object_id: str) -> str:
        """Get the direct URL for a blob (bucket must be publicly readable)."""
        if self.config.public_url:
            return f"{self.config.public_url.rstrip('/')}/{object_id}"
        endpoint = self.config.endpoint_url or f"https://s3.{self.config.region}.amazonaws.com"
        return f"{endpoint}/{self.bucket}/{object_id}"
