"""Product routes - CRUD over gallery products with image/video uploads."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel

from ..application.services import MediaSyncService
from ..config import ALLOWED_IMAGE_TYPES, ALLOWED_VIDEO_TYPES, MAX_UPLOAD_BYTES
from ..dependencies import get_sync_service
from ..domain import MediaInput, MediaKind, ValidationError

router = APIRouter(prefix="/api/products", tags=["products"])


class MediaRefOut(BaseModel):
    url: str
    object_id: str
    kind: str


class ProductOut(BaseModel):
    id: int
    name: str
    image: MediaRefOut
    video: Optional[MediaRefOut] = None
    created_at: Optional[datetime] = None


class CleanupWarningOut(BaseModel):
    object_id: str
    kind: str
    operation: str
    reason: str


class ProductMutationOut(BaseModel):
    record: ProductOut
    warnings: list[CleanupWarningOut] = []


class DeleteOut(BaseModel):
    message: str
    id: int
    warnings: list[CleanupWarningOut] = []


async def read_media(
    upload: Optional[UploadFile],
    kind: MediaKind
) -> Optional[MediaInput]:
    """Turn a multipart file field into a MediaInput.

    An omitted or empty field yields None.

    Raises:
        ValidationError: Disallowed content type or file too large
    """
    if upload is None:
        return None

    content = await upload.read(MAX_UPLOAD_BYTES + 1)
    if not content:
        return None

    allowed = ALLOWED_IMAGE_TYPES if kind is MediaKind.IMAGE else ALLOWED_VIDEO_TYPES
    if upload.content_type not in allowed:
        raise ValidationError(
            f"{kind.value} must be one of: {', '.join(sorted(allowed))}"
        )
    if len(content) > MAX_UPLOAD_BYTES:
        raise ValidationError(
            f"{kind.value} exceeds the {MAX_UPLOAD_BYTES // (1024 * 1024)} MB limit"
        )

    return MediaInput(
        content=content,
        filename=upload.filename,
        content_type=upload.content_type
    )


@router.get("", response_model=list[ProductOut])
async def list_products(service: MediaSyncService = Depends(get_sync_service)):
    """List all products, newest first."""
    records = await service.list_products()
    return [record.to_dict() for record in records]


@router.get("/{product_id}", response_model=ProductOut)
async def get_product(
    product_id: int,
    service: MediaSyncService = Depends(get_sync_service)
):
    """Get a single product."""
    record = await service.get_product(product_id)
    return record.to_dict()


@router.post("", response_model=ProductMutationOut, status_code=201)
async def create_product(
    name: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    video: Optional[UploadFile] = File(None),
    service: MediaSyncService = Depends(get_sync_service)
):
    """Create a product (multipart: name, image, optional video)."""
    result = await service.create_product(
        name,
        await read_media(image, MediaKind.IMAGE),
        await read_media(video, MediaKind.VIDEO)
    )
    return result.to_dict()


@router.put("/{product_id}", response_model=ProductMutationOut)
async def replace_product(
    product_id: int,
    name: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    video: Optional[UploadFile] = File(None),
    service: MediaSyncService = Depends(get_sync_service)
):
    """Replace the name and/or media of a product."""
    result = await service.replace_product(
        product_id,
        name=name,
        image=await read_media(image, MediaKind.IMAGE),
        video=await read_media(video, MediaKind.VIDEO)
    )
    return result.to_dict()


@router.delete("/{product_id}", response_model=DeleteOut)
async def delete_product(
    product_id: int,
    service: MediaSyncService = Depends(get_sync_service)
):
    """Delete a product and its media."""
    result = await service.delete_product(product_id)
    return {
        "message": "Product deleted",
        "id": product_id,
        "warnings": [w.to_dict() for w in result.warnings],
    }
