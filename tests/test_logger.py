"""Tests for the package logging setup."""

import logging
import logging.handlers
import sys

import pytest

from invoice_ocr.utils.logger import ColoredFormatter, get_logger, setup_logger


@pytest.fixture
def package_logger():
    """Restore the package logger's handlers and level after a test."""
    logger = logging.getLogger("invoice_ocr")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


class TestSetupLogger:
    """Tests for handler installation."""

    def test_console_handler_writes_to_stderr(self, package_logger):
        logger = setup_logger(level="warning")

        assert logger is package_logger
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert logger.handlers[0].stream is sys.stderr
        assert isinstance(logger.handlers[0].formatter, ColoredFormatter)
        assert not logger.propagate

    def test_repeated_setup_replaces_handlers(self, package_logger):
        setup_logger()
        logger = setup_logger(colorize=False)

        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0].formatter, ColoredFormatter)

    def test_file_handler(self, package_logger, tmp_path):
        log_file = tmp_path / "logs" / "invoice_ocr.log"

        logger = setup_logger(level="DEBUG", log_file=str(log_file))
        get_logger("tests").info("written to file")

        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers)
        assert "written to file" in log_file.read_text(encoding="utf-8")

    def test_unknown_level(self, package_logger):
        with pytest.raises(ValueError):
            setup_logger(level="chatty")


class TestGetLogger:
    """Tests for logger naming."""

    def test_module_names_are_nested_under_package(self):
        assert get_logger("tests.sample").name == "invoice_ocr.tests.sample"

    def test_package_names_are_kept(self):
        assert get_logger("invoice_ocr.parser.pipeline").name == "invoice_ocr.parser.pipeline"
