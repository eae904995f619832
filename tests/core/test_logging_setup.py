"""Tests for schedview/core/logging.py"""

import logging
from datetime import date

from schedview.core.logging import log_file_for, setup_logging


def test_setup_logging_writes_file(tmp_path):
    logger = setup_logging(log_dir=tmp_path / "logs")
    try:
        logging.getLogger("schedview.snapshot.builder").debug("hello from builder")
        for handler in logger.handlers:
            handler.flush()

        files = list((tmp_path / "logs").glob("schedview_*.log"))
        assert len(files) == 1
        assert "hello from builder" in files[0].read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def test_setup_logging_does_not_stack_handlers(tmp_path):
    setup_logging(log_dir=tmp_path)
    logger = setup_logging(log_dir=tmp_path)
    try:
        assert len(logger.handlers) == 2
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def test_log_file_is_named_by_day(tmp_path):
    assert log_file_for(tmp_path, date(2024, 3, 1)) == tmp_path / "schedview_20240301.log"
