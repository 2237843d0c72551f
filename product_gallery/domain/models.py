"""Gallery domain types."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class MediaKind(str, Enum):
    """Kind of blob referenced by a MediaRef."""
    IMAGE = "image"
    VIDEO = "video"


@dataclass(frozen=True)
class MediaRef:
    """Reference to one stored blob.

    Attributes:
        url: Externally resolvable retrieval address
        object_id: Blob store key, used to delete the blob
        kind: 'image' or 'video'
    """
    url: str
    object_id: str
    kind: MediaKind

    def to_dict(self) -> dict:
        return {"url": self.url, "object_id": self.object_id, "kind": self.kind.value}


@dataclass(frozen=True)
class MediaInput:
    """Binary payload for one media slot."""
    content: bytes
    filename: Optional[str] = None
    content_type: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.content


@dataclass(frozen=True)
class GalleryRecord:
    """A persisted gallery product."""
    id: int
    name: str
    image: MediaRef
    video: Optional[MediaRef] = None
    created_at: Optional[datetime] = None

    def media(self, kind: MediaKind) -> Optional[MediaRef]:
        """Return the MediaRef held in the given slot."""
        return self.image if kind is MediaKind.IMAGE else self.video

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "image": self.image.to_dict(),
            "video": self.video.to_dict() if self.video else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class CleanupWarning:
    """A best-effort blob deletion that failed after a state change.

    Non-fatal: it never changes the outcome reported to the caller.
    """
    object_id: str
    kind: MediaKind
    operation: str  # create, replace, delete
    reason: str

    def to_dict(self) -> dict:
        return {
            "object_id": self.object_id,
            "kind": self.kind.value,
            "operation": self.operation,
            "reason": self.reason,
        }


@dataclass
class SyncResult:
    """Outcome of a synchronizer mutation."""
    record: GalleryRecord
    warnings: list[CleanupWarning] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "record": self.record.to_dict(),
            "warnings": [w.to_dict() for w in self.warnings],
        }
