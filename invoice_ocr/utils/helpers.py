"""
Helper Utilities Module.

Small generic helpers shared by the CLI, the OCR engine and the invoice
assembler.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - get_file_extension: Extract file extension safely
    - generate_timestamp: Generate formatted timestamps
    - validate_file_exists: Check a path points at a regular file
    - collapse_whitespace: Squeeze whitespace runs to single spaces
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.

    Example:
        >>> ensure_directory("outputs/json")
        PosixPath('outputs/json')
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def get_file_extension(filepath: Union[str, Path]) -> str:
    """
    Extract the lowercase file extension (including the dot).

    Example:
        >>> get_file_extension("scan.PNG")
        ".png"
        >>> get_file_extension("noextension")
        ""
    """
    return Path(filepath).suffix.lower()


def generate_timestamp(format_str: str = "%Y%m%d_%H%M%S") -> str:
    """
    Generate a formatted timestamp string.

    Args:
        format_str: strftime format string.

    Returns:
        Formatted timestamp string.

    Example:
        >>> generate_timestamp("%Y%m%d%H%M%S")
        "20261018143022"
    """
    return datetime.now().strftime(format_str)


def validate_file_exists(filepath: Union[str, Path]) -> bool:
    """Check if a file exists and is a regular file."""
    path = Path(filepath)
    return path.exists() and path.is_file()


def collapse_whitespace(text: str) -> str:
    """Replace every whitespace run with a single space and trim."""
    return re.sub(r"\s+", " ", text).strip()
