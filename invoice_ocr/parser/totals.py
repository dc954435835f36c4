"""
Totals Extractor Module.

Scans the trailing lines of an invoice for subtotal, tax and grand total.

Each line feeds at most one field, chosen by keyword priority so that
"Subtotal" is never read as a grand total and "Total Tax" is never read as
one either. The value is the last number on the line and later lines
overwrite earlier ones.

Author: ML Engineering Team
"""

import re
from typing import List, Optional, Pattern, Sequence, Tuple

from invoice_ocr.utils.logger import get_logger
from .header_fields import INVOICE_NUMBER_PATTERNS
from .invoice_result import TotalsBlock
from .numbers import last_number
from .parser_config import ParserConfig

# Initialize module logger
logger = get_logger(__name__)


# Ordered by priority; the first keyword found on a line decides its field
TOTALS_KEYWORDS: Sequence[Tuple[str, Pattern]] = (
    ('subtotal', re.compile(r"\bsub[\s\-]*total\b", re.IGNORECASE)),
    ('grand_total', re.compile(r"\b(?:grand\s*total|total\s*due|amount\s*due|balance\s*due)\b", re.IGNORECASE)),
    ('tax', re.compile(r"\b(?:tax|vat|gst)\b", re.IGNORECASE)),
    ('grand_total', re.compile(r"\btotal\b", re.IGNORECASE)),
)


def names_invoice_number(line: str) -> bool:
    """Check whether a line carries an invoice identifier ("Tax Invoice No 12345")."""
    for pattern in INVOICE_NUMBER_PATTERNS:
        match = pattern.search(line)
        if match and re.search(r"\d", match.group(1)):
            return True
    return False


def classify_totals_line(line: str) -> Optional[str]:
    """
    Return the totals field a line refers to, if any.

    A tax keyword on a line that names an invoice identifier is a document
    title, not a tax amount.

    Example:
        >>> classify_totals_line("Sub Total: 80.00")
        'subtotal'
        >>> classify_totals_line("VAT 20%: 16.00")
        'tax'
        >>> classify_totals_line("Tax Invoice No 12345") is None
        True
    """
    for field_name, pattern in TOTALS_KEYWORDS:
        if pattern.search(line):
            if field_name == 'tax' and names_invoice_number(line):
                return None
            return field_name
    return None


def extract_totals(lines: List[str], config: Optional[ParserConfig] = None) -> TotalsBlock:
    """
    Extract the totals block from the last lines of an invoice.

    Args:
        lines: Normalized invoice lines.
        config: Parser configuration (size of the trailing window).

    Returns:
        TotalsBlock; fields not found stay at zero.
    """
    config = config or ParserConfig()
    totals = TotalsBlock()

    if not lines:
        return totals

    window = lines[-config.totals_window:] if config.totals_window > 0 else []

    for line in window:
        field_name = classify_totals_line(line)
        if field_name is None:
            continue

        value = last_number(line)
        if value is None:
            continue

        setattr(totals, field_name, value)
        logger.debug(f"Totals: {field_name} = {value} from '{line}'")

    return totals
