"""Tests for logging setup."""

import json
import logging

import pytest

from url_enricher.logging_config import get_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_file_handlers(tmp_path, restore_root_logger):
    setup_logging(base_dir=tmp_path, level="debug", log_to_file=True)

    get_logger("url_enricher.test", brand="Acme", product_name="Zinc 50mg").error("record failed")
    logging.getLogger("url_enricher.test").info("batch started")
    for handler in logging.getLogger().handlers:
        handler.flush()

    app_log = tmp_path / "logs" / "app.log"
    failed, started = [json.loads(line) for line in app_log.read_text().splitlines()[-2:]]
    assert failed["message"] == "record failed"
    assert failed["level"] == "ERROR"
    assert failed["brand"] == "Acme"
    assert failed["catalog_record"] == "Acme Zinc 50mg"
    assert "catalog_record" not in started
    assert (tmp_path / "logs" / "error.log").read_text().strip()


def test_console_only(tmp_path, restore_root_logger):
    root = setup_logging(base_dir=tmp_path, level="INFO", log_to_file=False)

    assert len(root.handlers) == 1
    assert root.level == logging.INFO
    assert not (tmp_path / "logs").exists()
