"""
Logging Configuration Module.

Centralized logging for the invoice OCR engine. Every module logs through a
child of the ``invoice_ocr`` logger, so one call to ``setup_logger`` at
startup configures console and file output for the whole package. Console
output goes to stderr; stdout is left to the JSON the CLI prints.

Usage:
    from invoice_ocr.utils.logger import setup_logger, get_logger

    # Initialize logging (call once at startup)
    setup_logger()

    # Get logger in any module
    logger = get_logger(__name__)
    logger.info("Parsing invoice...")
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

import colorama
from colorama import Fore, Style

colorama.init()

ROOT_LOGGER_NAME = "invoice_ocr"
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5


class ColoredFormatter(logging.Formatter):
    """Colors each console record by level (cyan debug through bright red critical)."""

    LEVEL_COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, '')
        return f"{color}{super().format(record)}{Style.RESET_ALL}"


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown logging level: {level}")
    return resolved


def _console_handler(formatter: logging.Formatter, level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _file_handler(
    log_file: str,
    formatter: logging.Formatter,
    level: int,
    max_bytes: int,
    backup_count: int
) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logger(
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    colorize: bool = True
) -> logging.Logger:
    """
    Configure the package logger.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Record format, ``DEFAULT_FORMAT`` when None.
        date_format: Timestamp format, ``DEFAULT_DATE_FORMAT`` when None.
        log_file: Rotating log file path. File logging is off when None.
        max_bytes: Log file size that triggers rotation.
        backup_count: Rotated files to keep.
        colorize: Color console records by level.

    Returns:
        The ``invoice_ocr`` logger.

    Raises:
        ValueError: If the level name is unknown.

    Example:
        >>> setup_logger(level="DEBUG", log_file="logs/invoice_ocr.log")
    """
    numeric_level = _resolve_level(level)
    log_format = log_format or DEFAULT_FORMAT
    date_format = date_format or DEFAULT_DATE_FORMAT

    plain = logging.Formatter(log_format, datefmt=date_format)
    console = ColoredFormatter(log_format, datefmt=date_format) if colorize else plain

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(numeric_level)
    package_logger.handlers.clear()
    package_logger.addHandler(_console_handler(console, numeric_level))
    if log_file:
        package_logger.addHandler(
            _file_handler(log_file, plain, numeric_level, max_bytes, backup_count)
        )
    package_logger.propagate = False

    package_logger.debug(f"Logging initialized at {logging.getLevelName(numeric_level)}")
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``invoice_ocr`` namespace for ``name`` (usually ``__name__``)."""
    if name.startswith(ROOT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logger_from_config(level: Optional[str] = None) -> logging.Logger:
    """
    Initialize logging from the ``logging.*`` keys of the settings file.

    Args:
        level: Overrides ``logging.level`` when given.

    Returns:
        The ``invoice_ocr`` logger.
    """
    from invoice_ocr.config import get_config

    log_file = None
    if get_config("logging.file.enabled", False):
        log_file = get_config("logging.file.path")

    return setup_logger(
        level=level or get_config("logging.level", "INFO"),
        log_format=get_config("logging.format"),
        date_format=get_config("logging.date_format"),
        log_file=log_file,
        max_bytes=get_config("logging.file.max_bytes", DEFAULT_MAX_BYTES),
        backup_count=get_config("logging.file.backup_count", DEFAULT_BACKUP_COUNT),
        colorize=get_config("logging.console.colorize", True)
    )
