"""Shared FastAPI dependencies."""
from fastapi import Request

from .application.services import MediaSyncService


def get_sync_service(request: Request) -> MediaSyncService:
    """Get the process-wide MediaSyncService created at startup."""
    return request.app.state.sync_service
