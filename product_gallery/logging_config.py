"""Structured JSON logging setup.

Call configure_logging() once at startup; modules log through
logging.getLogger(__name__) as usual.
"""
import logging

from pythonjsonlogger.json import JsonFormatter

from .config import LOG_LEVEL, SERVICE_NAME

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

LOG_FIELDS = ("asctime", "levelname", "name", "message", "service")
FIELD_RENAME_MAP = {"levelname": "level", "name": "logger"}


class ServiceFilter(logging.Filter):
    """Stamp every record with the service name."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "service", None):
            record.service = self.service_name
        return True


def create_json_formatter() -> JsonFormatter:
    """Create the JSON formatter used by the service handler."""
    format_string = " ".join(f"%({field})s" for field in LOG_FIELDS)
    return JsonFormatter(format_string, rename_fields=FIELD_RENAME_MAP)


def configure_logging(level: str = LOG_LEVEL, service_name: str = SERVICE_NAME) -> None:
    """Install a single JSON stream handler on the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Value of the ``service`` field on every record

    Raises:
        ValueError: If the level name is unknown
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level: {level}. Valid: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    handler = logging.StreamHandler()
    handler.setLevel(level_upper)
    handler.setFormatter(create_json_formatter())
    handler.addFilter(ServiceFilter(service_name))

    root = logging.getLogger()
    root.setLevel(level_upper)
    root.handlers = [handler]
