"""
Utility Module for the Invoice OCR Engine.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exceptions
    - File and text helpers
"""

from .logger import setup_logger, get_logger
from .helpers import (
    ensure_directory,
    get_file_extension,
    generate_timestamp,
    collapse_whitespace,
)

__all__ = [
    'setup_logger',
    'get_logger',
    'ensure_directory',
    'get_file_extension',
    'generate_timestamp',
    'collapse_whitespace',
]
