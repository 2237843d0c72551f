"""Unit tests for JSON logging setup."""
import json
import logging

import pytest

from product_gallery.logging_config import configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


def test_configure_logging_emits_json(restore_root_logger, capsys):
    configure_logging(level="info", service_name="gallery-test")

    logging.getLogger("product_gallery.test").warning("Orphaned blob %s", "gallery/images/1")

    line = capsys.readouterr().err.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["message"] == "Orphaned blob gallery/images/1"
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "product_gallery.test"
    assert payload["service"] == "gallery-test"


def test_configure_logging_rejects_unknown_level(restore_root_logger):
    with pytest.raises(ValueError):
        configure_logging(level="LOUD")
