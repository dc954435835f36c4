"""
Table Boundary Detector Module.

Finds where the line-item table starts (the row after the column header)
and where it ends (the first totals/footer row).

Author: ML Engineering Team
"""

from dataclasses import dataclass
from typing import List, Optional, Set

from invoice_ocr.utils.logger import get_logger
from .parser_config import ParserConfig

# Initialize module logger
logger = get_logger(__name__)

MIN_HEADER_ROLES = 2


@dataclass(frozen=True)
class TableBounds:
    """
    Half-open line range ``[start_index, end_index)`` of the item table.

    Attributes:
        start_index: First line after the header row, or None when no header
                     row was found.
        end_index: Index of the footer row, or the number of lines.
    """
    start_index: Optional[int]
    end_index: int

    @property
    def has_header(self) -> bool:
        return self.start_index is not None


def count_column_roles(line: str, config: Optional[ParserConfig] = None) -> Set[str]:
    """
    Return the column roles whose aliases occur in a line.

    Matching is a case-insensitive substring test against the alias table.

    Example:
        >>> sorted(count_column_roles("Description Qty Rate Total"))
        ['item', 'quantity', 'rate', 'total']
    """
    config = config or ParserConfig()
    lowered = line.lower()
    return {
        role for role in config.detection_roles
        if any(alias in lowered for alias in config.column_aliases.get(role, ()))
    }


def find_header_row(lines: List[str], config: Optional[ParserConfig] = None) -> Optional[int]:
    """
    Find the index of the table header row.

    The header is the first line within the header window that mentions at
    least two distinct column roles.

    Returns:
        Line index of the header, or None.
    """
    config = config or ParserConfig()

    for index, line in enumerate(lines[:config.header_window]):
        roles = count_column_roles(line, config)
        if len(roles) >= MIN_HEADER_ROLES:
            logger.debug(f"Table header on line {index}: {sorted(roles)}")
            return index
    return None


def is_footer_line(line: str, config: Optional[ParserConfig] = None) -> bool:
    """Check whether a line contains one of the footer keywords."""
    config = config or ParserConfig()
    return bool(config.footer_pattern.search(line))


def find_footer_row(lines: List[str], start: int, config: Optional[ParserConfig] = None) -> int:
    """
    Find the first footer row at or after ``start``.

    Returns:
        Index of the footer row, or ``len(lines)`` when there is none.
    """
    config = config or ParserConfig()
    pattern = config.footer_pattern

    for index in range(max(start, 0), len(lines)):
        if pattern.search(lines[index]):
            logger.debug(f"Table footer on line {index}: '{lines[index]}'")
            return index
    return len(lines)


def detect_table_bounds(lines: List[str], config: Optional[ParserConfig] = None) -> TableBounds:
    """
    Locate the item table.

    When no header row exists, ``start_index`` is None and the footer search
    starts from the top of the document; the line-item matcher then seeds the
    start from the first line that looks like an item row and searches the
    footer again from there.

    Args:
        lines: Normalized invoice lines.
        config: Parser configuration.

    Returns:
        TableBounds for the document.
    """
    config = config or ParserConfig()

    header = find_header_row(lines, config)
    if header is None:
        logger.debug("No table header found")
        return TableBounds(start_index=None, end_index=find_footer_row(lines, 0, config))

    start = header + 1
    return TableBounds(start_index=start, end_index=find_footer_row(lines, start, config))
