"""Gallery repository - product rows in the 'gallery' table."""
from datetime import datetime, timezone
from typing import Optional

from ...domain.models import GalleryRecord, MediaKind, MediaRef
from .base import AsyncRepository

# Sentinel for "leave the video column unchanged"
_UNCHANGED = object()


class GalleryRepository(AsyncRepository):
    """Repository for gallery product records.

    Each row stores the name plus url/public_id column pairs for the
    image (required) and the video (optional).
    """

    @staticmethod
    def _row_to_record(row: Optional[dict]) -> Optional[GalleryRecord]:
        if not row:
            return None
        video = None
        if row.get("video_public_id"):
            video = MediaRef(
                url=row["video_url"],
                object_id=row["video_public_id"],
                kind=MediaKind.VIDEO
            )
        return GalleryRecord(
            id=row["id"],
            name=row["name"],
            image=MediaRef(
                url=row["image_url"],
                object_id=row["image_public_id"],
                kind=MediaKind.IMAGE
            ),
            video=video,
            created_at=row.get("created_at")
        )

    async def insert(
        self,
        name: str,
        image: MediaRef,
        video: Optional[MediaRef] = None,
        created_at: Optional[datetime] = None
    ) -> int:
        """Insert a new record.

        Returns:
            The generated record id
        """
        record_id, _ = await self._write(
            """INSERT INTO gallery
               (name, image_url, image_public_id, video_url, video_public_id, created_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                name,
                image.url,
                image.object_id,
                video.url if video else None,
                video.object_id if video else None,
                created_at or datetime.now(timezone.utc),
            )
        )
        return record_id

    async def get_by_id(self, record_id: int) -> Optional[GalleryRecord]:
        """Get record by ID."""
        row = await self._fetchone("SELECT * FROM gallery WHERE id = ?", (record_id,))
        return self._row_to_record(row)

    async def list_all(self) -> list[GalleryRecord]:
        """Get all records, most recently created first."""
        rows = await self._fetchall("SELECT * FROM gallery ORDER BY id DESC")
        return [self._row_to_record(row) for row in rows]

    async def update(
        self,
        record_id: int,
        name: Optional[str] = None,
        image: Optional[MediaRef] = None,
        video=_UNCHANGED
    ) -> bool:
        """Update the given fields of a record.

        Args:
            record_id: Record ID
            name: New name, or None to keep
            image: New image reference, or None to keep
            video: New video reference, None to clear, omitted to keep

        Returns:
            True if a row was updated, False if the id doesn't exist
        """
        updates = {}
        if name is not None:
            updates["name"] = name
        if image is not None:
            updates["image_url"] = image.url
            updates["image_public_id"] = image.object_id
        if video is not _UNCHANGED:
            updates["video_url"] = video.url if video else None
            updates["video_public_id"] = video.object_id if video else None

        if not updates:
            return await self.exists(record_id)

        set_clause = ", ".join(f"{k} = ?" for k in updates.keys())
        values = list(updates.values()) + [record_id]

        _, rowcount = await self._write(
            f"UPDATE gallery SET {set_clause} WHERE id = ?",
            tuple(values)
        )
        return rowcount > 0

    async def delete(self, record_id: int) -> bool:
        """Delete record.

        Returns:
            True if deleted, False if the id doesn't exist
        """
        _, rowcount = await self._write("DELETE FROM gallery WHERE id = ?", (record_id,))
        return rowcount > 0

    async def exists(self, record_id: int) -> bool:
        row = await self._fetchone("SELECT 1 AS found FROM gallery WHERE id = ?", (record_id,))
        return row is not None
