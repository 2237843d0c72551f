"""Product Gallery Application - FastAPI Entry Point."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Union

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .application.services import MediaSyncService
from .config import CORS_METHODS, CORS_ORIGINS, DATABASE_PATH
from .domain import (
    GalleryError,
    NotFoundError,
    StorageReadError,
    StorageWriteError,
    UploadError,
    ValidationError,
)
from .infrastructure.database import create_pool
from .infrastructure.repositories import GalleryRepository
from .infrastructure.storage import BlobStore, LocalBlobStore, create_blob_store
from .logging_config import configure_logging
from .routes import products_router

logger = logging.getLogger(__name__)

# Error kind -> HTTP status
ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    UploadError: 502,
    StorageWriteError: 503,
    StorageReadError: 503,
}


async def gallery_error_handler(request: Request, exc: GalleryError) -> JSONResponse:
    """Translate synchronizer errors into JSON responses."""
    status = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)),
        500
    )
    body = {
        "error": exc.code,
        "detail": exc.message,
        "warnings": [w.to_dict() for w in exc.warnings],
    }
    if isinstance(exc, UploadError):
        body["failures"] = {kind.value: reason for kind, reason in exc.failures.items()}
        body["record"] = exc.record.to_dict() if exc.record else None
    return JSONResponse(status_code=status, content=body)


def create_app(
    database_path: Optional[Union[str, Path]] = None,
    blob_store: Optional[BlobStore] = None,
    setup_logging: bool = True
) -> FastAPI:
    """Build the application.

    The record store pool is opened in the lifespan handler; the blob store
    is created here so local media can be mounted for serving.

    Args:
        database_path: SQLite file (default: GALLERY_DATABASE_PATH)
        blob_store: Blob store to use (default: from STORAGE_* environment)
        setup_logging: Install the JSON log handler on startup
    """
    store = blob_store or create_blob_store()
    db_path = database_path or DATABASE_PATH

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        if setup_logging:
            configure_logging()
        pool = await create_pool(db_path)
        app.state.sync_service = MediaSyncService(
            repository=GalleryRepository(pool),
            blob_store=store
        )
        logger.info("Product gallery started", extra={"storage": type(store).__name__})
        yield
        await pool.close_all()

    app = FastAPI(title="Product Gallery", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=CORS_METHODS,
        allow_headers=["*"],
    )

    app.add_exception_handler(GalleryError, gallery_error_handler)

    if isinstance(store, LocalBlobStore):
        app.mount(
            store.base_url,
            StaticFiles(directory=store.base_path),
            name="media"
        )

    app.include_router(products_router)

    @app.get("/")
    async def health():
        return {"status": "ok", "service": "product-gallery"}

    return app
