"""Product Gallery - products with image/video media kept in sync with a blob store."""

__version__ = "0.1.0"
