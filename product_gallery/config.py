"""Application configuration and constants."""
import os
from pathlib import Path

# Directory paths
BASE_DIR = Path(__file__).resolve().parent.parent
DATABASE_PATH = Path(os.environ.get("GALLERY_DATABASE_PATH", str(BASE_DIR / "gallery.db")))

# Blob storage defaults; the backend itself is chosen from the environment
# by infrastructure.storage.factory
DEFAULT_STORAGE_PATH = BASE_DIR / "media"
DEFAULT_MEDIA_BASE_URL = "/media"

# Key prefixes for uploaded media
IMAGE_NAMESPACE = os.environ.get("GALLERY_IMAGE_NAMESPACE", "gallery/images").strip("/")
VIDEO_NAMESPACE = os.environ.get("GALLERY_VIDEO_NAMESPACE", "gallery/videos").strip("/")

# Allowed media types
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}
ALLOWED_VIDEO_TYPES = {"video/mp4", "video/webm", "video/quicktime"}

# Per-file upload limit (100 MB)
MAX_UPLOAD_BYTES = int(os.environ.get("GALLERY_MAX_UPLOAD_BYTES", str(100 * 1024 * 1024)))

# CORS
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "GALLERY_CORS_ORIGINS",
        "https://galleryclient.vercel.app,http://localhost:3000"
    ).split(",")
    if origin.strip()
]
CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
SERVICE_NAME = "product_gallery"
