"""
Line Normalizer Module.

Turns the raw OCR text blob into the ordered list of lines every other
parsing stage works on.
"""

from typing import List, Optional


def normalize_lines(text: Optional[str]) -> List[str]:
    """
    Split raw OCR text into trimmed, non-empty lines.

    Order is preserved: table detection and totals extraction depend on it.

    Args:
        text: Raw text returned by the recognition engine (may be empty).

    Returns:
        Ordered list of non-empty, stripped lines.

    Example:
        >>> normalize_lines("  Bill To: Acme \\n\\n Item Qty Rate Total ")
        ['Bill To: Acme', 'Item Qty Rate Total']
    """
    if not text:
        return []
    return [line.strip() for line in text.splitlines() if line.strip()]
