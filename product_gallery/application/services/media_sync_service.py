"""Media synchronizer - keeps gallery rows and their blobs consistent.

Every mutation is a fixed sequence of steps against two independent stores:

    create:  upload image -> upload video -> insert row
    replace: upload new media -> update row -> delete replaced blobs
    delete:  delete blobs -> delete row

A row is never written pointing at a blob that wasn't confirmed stored,
and a blob is never deleted while a committed row still references it.
When a step fails after blobs were uploaded, those blobs are reclaimed
best-effort before the primary error propagates. Reclaim failures become
CleanupWarning values returned alongside the result (or attached to the
error) and are logged; they never replace the primary outcome.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import replace as dc_replace
from datetime import datetime, timezone
from functools import partial
from typing import AsyncIterator, Awaitable, Hashable, Optional

from ...config import IMAGE_NAMESPACE, VIDEO_NAMESPACE
from ...domain.errors import (
    NotFoundError,
    StorageReadError,
    StorageWriteError,
    UploadError,
    ValidationError,
)
from ...domain.models import (
    CleanupWarning,
    GalleryRecord,
    MediaInput,
    MediaKind,
    MediaRef,
    SyncResult,
)
from ...infrastructure.repositories import GalleryRepository, RecordStoreError
from ...infrastructure.storage import BlobStore, BlobStoreError

logger = logging.getLogger(__name__)


class KeyedLocks:
    """Advisory asyncio locks keyed by record id.

    Locks are created on first use and dropped once no coroutine holds
    or waits on them.
    """

    def __init__(self):
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class MediaSyncService:
    """Service for gallery products and their media.

    Responsibilities:
    - Create/replace/delete products across the record store and blob store
    - Compensating cleanup of blobs orphaned by a failed step
    - Per-record serialization of replace and delete

    The repository and blob store are process-wide and shared; the service
    itself holds no per-request state.
    """

    def __init__(
        self,
        repository: GalleryRepository,
        blob_store: BlobStore,
        image_namespace: str = IMAGE_NAMESPACE,
        video_namespace: str = VIDEO_NAMESPACE,
        locks: Optional[KeyedLocks] = None
    ):
        self.repo = repository
        self.blob_store = blob_store
        self.namespaces = {
            MediaKind.IMAGE: image_namespace,
            MediaKind.VIDEO: video_namespace,
        }
        self.locks = locks or KeyedLocks()
        # Workflows whose caller went away before they finished
        self._detached: set[asyncio.Task] = set()

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_product(self, record_id: int) -> GalleryRecord:
        """Get a product by ID.

        Raises:
            NotFoundError: If the id doesn't exist
            StorageReadError: If the record store fails
        """
        return await self._load(record_id, StorageReadError)

    async def list_products(self) -> list[GalleryRecord]:
        """Snapshot of all products, newest first."""
        try:
            return await self.repo.list_all()
        except RecordStoreError as e:
            logger.error("Failed to list products: %s", e)
            raise StorageReadError(f"Failed to list products: {e}") from e

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_product(
        self,
        name: Optional[str],
        image: Optional[MediaInput],
        video: Optional[MediaInput] = None
    ) -> SyncResult:
        """Create a product with its image and optional video.

        Validation happens before any store is touched. The workflow runs
        shielded so an abandoned request still lets issued writes finish.

        Raises:
            ValidationError: Blank name or missing/empty image
            UploadError: An upload failed; nothing was persisted
            StorageWriteError: The insert failed; uploads were reclaimed
        """
        name = self._validate_name(name)
        if image is None or image.is_empty:
            raise ValidationError("image required")
        if video is not None and video.is_empty:
            video = None

        return await self._shielded(self._create(name, image, video), "create")

    async def replace_product(
        self,
        record_id: int,
        name: Optional[str] = None,
        image: Optional[MediaInput] = None,
        video: Optional[MediaInput] = None
    ) -> SyncResult:
        """Replace the name and/or media of a product.

        Image and video slots are uploaded concurrently and handled
        independently: slots whose upload succeeded are committed even if
        the other slot failed, after which UploadError reports every failed
        slot together with the committed record.

        Raises:
            ValidationError: Blank name
            NotFoundError: The id doesn't exist
            UploadError: One or both slot uploads failed
            StorageWriteError: The update failed; new uploads were reclaimed
        """
        if name is not None:
            name = self._validate_name(name)
        if image is not None and image.is_empty:
            image = None
        if video is not None and video.is_empty:
            video = None

        return await self._shielded(self._replace(record_id, name, image, video), "replace")

    async def delete_product(self, record_id: int) -> SyncResult:
        """Delete a product and reclaim its blobs.

        Both blobs are deleted before the row. The row is deleted even if a
        blob deletion failed; such failures come back as warnings.

        Raises:
            NotFoundError: The id doesn't exist
            StorageWriteError: The row deletion failed
        """
        return await self._shielded(self._delete(record_id), "delete")

    # =========================================================================
    # Workflows
    # =========================================================================

    async def _create(
        self,
        name: str,
        image: MediaInput,
        video: Optional[MediaInput]
    ) -> SyncResult:
        uploaded: list[MediaRef] = []

        # Step 1-2: uploads, image first
        for kind, media in ((MediaKind.IMAGE, image), (MediaKind.VIDEO, video)):
            if media is None:
                continue
            try:
                uploaded.append(await self._upload(media, kind))
            except BlobStoreError as e:
                logger.error("Create: %s upload failed: %s", kind.value, e)
                warnings = await self._reclaim(uploaded, "create")
                raise UploadError({kind: str(e)}, warnings=warnings) from e
            except Exception:
                logger.exception("Create: unexpected error uploading %s", kind.value)
                await self._reclaim(uploaded, "create")
                raise

        image_ref = uploaded[0]
        video_ref = uploaded[1] if len(uploaded) > 1 else None
        created_at = datetime.now(timezone.utc)

        # Step 3: insert
        try:
            record_id = await self.repo.insert(name, image_ref, video_ref, created_at=created_at)
        except RecordStoreError as e:
            logger.error("Create: insert failed for %r: %s", name, e)
            warnings = await self._reclaim(uploaded, "create")
            raise StorageWriteError(f"Failed to save product: {e}", warnings) from e
        except Exception:
            logger.exception("Create: unexpected error inserting %r", name)
            await self._reclaim(uploaded, "create")
            raise

        record = GalleryRecord(
            id=record_id,
            name=name,
            image=image_ref,
            video=video_ref,
            created_at=created_at
        )
        logger.info("Created product %s", record_id, extra={"product_id": record_id})
        return SyncResult(record)

    async def _replace(
        self,
        record_id: int,
        name: Optional[str],
        image: Optional[MediaInput],
        video: Optional[MediaInput]
    ) -> SyncResult:
        async with self.locks.hold(record_id):
            current = await self._load(record_id, StorageWriteError)

            slots = {
                kind: media
                for kind, media in ((MediaKind.IMAGE, image), (MediaKind.VIDEO, video))
                if media is not None
            }
            if not slots and name is None:
                return SyncResult(current)

            # Step 1: upload new media, slots isolated from each other
            kinds = list(slots)
            results = await asyncio.gather(
                *(self._upload(slots[kind], kind) for kind in kinds),
                return_exceptions=True
            )

            new_refs: dict[MediaKind, MediaRef] = {}
            failures: dict[MediaKind, str] = {}
            unexpected: Optional[BaseException] = None
            for kind, result in zip(kinds, results):
                if isinstance(result, MediaRef):
                    new_refs[kind] = result
                elif isinstance(result, BlobStoreError):
                    logger.error("Replace %s: %s upload failed: %s", record_id, kind.value, result)
                    failures[kind] = str(result)
                else:
                    unexpected = result

            if unexpected is not None:
                await self._reclaim(list(new_refs.values()), "replace")
                raise unexpected

            if not new_refs and name is None:
                raise UploadError(failures, record=current)

            # Step 2: point the row at the new media
            fields = {"name": name}
            if MediaKind.IMAGE in new_refs:
                fields["image"] = new_refs[MediaKind.IMAGE]
            if MediaKind.VIDEO in new_refs:
                fields["video"] = new_refs[MediaKind.VIDEO]

            try:
                updated = await self.repo.update(record_id, **fields)
            except RecordStoreError as e:
                logger.error("Replace %s: update failed: %s", record_id, e)
                warnings = await self._reclaim(list(new_refs.values()), "replace")
                raise StorageWriteError(f"Failed to update product {record_id}: {e}", warnings) from e

            if not updated:
                warnings = await self._reclaim(list(new_refs.values()), "replace")
                raise NotFoundError(record_id, warnings)

            record = dc_replace(
                current,
                name=name if name is not None else current.name,
                image=new_refs.get(MediaKind.IMAGE, current.image),
                video=new_refs.get(MediaKind.VIDEO, current.video)
            )

            # Step 3: reclaim the blobs the row no longer references
            stale = [current.media(kind) for kind in new_refs if current.media(kind) is not None]
            warnings = await self._reclaim(stale, "replace")

            logger.info("Replaced product %s", record_id, extra={"product_id": record_id})

            if failures:
                raise UploadError(failures, record=record, warnings=warnings)
            return SyncResult(record, warnings)

    async def _delete(self, record_id: int) -> SyncResult:
        async with self.locks.hold(record_id):
            current = await self._load(record_id, StorageWriteError)

            refs = [current.image]
            if current.video is not None:
                refs.append(current.video)
            warnings = await self._reclaim(refs, "delete")

            try:
                deleted = await self.repo.delete(record_id)
            except RecordStoreError as e:
                logger.error("Delete %s: row deletion failed: %s", record_id, e)
                raise StorageWriteError(f"Failed to delete product {record_id}: {e}", warnings) from e

            if not deleted:
                logger.info("Delete %s: row already gone", record_id)

            logger.info("Deleted product %s", record_id, extra={"product_id": record_id})
            return SyncResult(current, warnings)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _shielded(self, workflow: Awaitable[SyncResult], operation: str) -> SyncResult:
        """Run a workflow that outlives a cancelled caller.

        If the caller is cancelled, the workflow keeps running and its
        eventual outcome is logged, since nobody is left to receive it.
        """
        task = asyncio.ensure_future(workflow)
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            self._detached.add(task)
            task.add_done_callback(partial(self._log_detached, operation))
            raise

    def _log_detached(self, operation: str, task: asyncio.Task) -> None:
        self._detached.discard(task)
        if task.cancelled():
            logger.warning("Abandoned %s was cancelled before finishing", operation)
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Abandoned %s failed: %s", operation, exc,
                exc_info=exc, extra={"operation": operation}
            )
            return
        logger.info(
            "Abandoned %s completed for product %s", operation, task.result().record.id,
            extra={"operation": operation}
        )

    def _validate_name(self, name: Optional[str]) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("name required")
        return name

    async def _load(self, record_id: int, error_cls: type) -> GalleryRecord:
        try:
            record = await self.repo.get_by_id(record_id)
        except RecordStoreError as e:
            logger.error("Failed to load product %s: %s", record_id, e)
            raise error_cls(f"Failed to load product {record_id}: {e}") from e
        if record is None:
            raise NotFoundError(record_id)
        return record

    async def _upload(self, media: MediaInput, kind: MediaKind) -> MediaRef:
        return await self.blob_store.upload(
            media.content,
            self.namespaces[kind],
            kind,
            content_type=media.content_type
        )

    async def _reclaim(self, refs: list[MediaRef], operation: str) -> list[CleanupWarning]:
        """Best-effort deletion of blobs; every ref is attempted.

        Returns:
            One CleanupWarning per deletion that raised
        """
        if not refs:
            return []

        results = await asyncio.gather(
            *(self.blob_store.delete(ref.object_id, ref.kind) for ref in refs),
            return_exceptions=True
        )

        warnings = []
        for ref, result in zip(refs, results):
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            if isinstance(result, Exception):
                warning = CleanupWarning(
                    object_id=ref.object_id,
                    kind=ref.kind,
                    operation=operation,
                    reason=str(result) or type(result).__name__
                )
                logger.warning(
                    "Orphaned blob %s (%s) after %s: %s",
                    ref.object_id, ref.kind.value, operation, warning.reason,
                    extra={"object_id": ref.object_id, "operation": operation}
                )
                warnings.append(warning)
            elif result is False:
                logger.info("Blob %s already absent during %s cleanup", ref.object_id, operation)
        return warnings
