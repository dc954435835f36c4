"""
Header Field Extractors Module.

Locates the trading party, the invoice identifier and the invoice date in
the first lines of an invoice. Every extractor works on a bounded prefix of
the line list, applies an ordered list of keyword-anchored patterns and
returns the first acceptable match.

Missing fields are not errors: party and identifier come back empty (the
assembler substitutes placeholders) and the date falls back to today.

Author: ML Engineering Team
"""

import re
from datetime import date, datetime
from typing import List, Optional, Pattern, Sequence

from dateutil import parser as date_parser

from invoice_ocr.utils.helpers import collapse_whitespace
from invoice_ocr.utils.logger import get_logger
from .numbers import extract_numeric_tokens
from .parser_config import ParserConfig
from .table import MIN_HEADER_ROLES, count_column_roles

# Initialize module logger
logger = get_logger(__name__)


# Characters kept in a captured party name; identifiers also keep "/"
_DISALLOWED_CHARS = re.compile(r"[^\w\s&.\-]")
_DISALLOWED_ID_CHARS = re.compile(r"[^\w\s&./\-]")

MIN_PARTY_LENGTH = 4

PARTY_PATTERNS: Sequence[Pattern] = (
    re.compile(r"\b(?:bill(?:ed)?\s*to|customer|client|sold\s*to|buyer)\b[:\s]*(.*)$", re.IGNORECASE),
    re.compile(r"\b(?:company|name)\b\s*:\s*(.*)$", re.IGNORECASE),
)

_ID = r"([A-Z0-9][A-Z0-9\-/]*)"

INVOICE_NUMBER_PATTERNS: Sequence[Pattern] = (
    re.compile(r"invoice\s*(?:no\.?|number|num\.?|#)\s*[:#.\-]?\s*" + _ID, re.IGNORECASE),
    re.compile(r"\b(INV[\-]?\d[A-Z0-9\-/]*)", re.IGNORECASE),
    re.compile(r"\binv\b\.?\s*(?:no\.?|#)?\s*[:#\-]?\s*" + _ID, re.IGNORECASE),
    re.compile(r"\b(?:bill|receipt)\s*(?:no\.?|number|#)\s*[:#.\-]?\s*" + _ID, re.IGNORECASE),
    re.compile(r"\binvoice\b\s*[:#]\s*" + _ID, re.IGNORECASE),
)

_MONTH = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*\.?"
_DATE_VALUE = (
    r"(?:\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2}"
    r"|\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}"
    r"|" + _MONTH + r"\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{2,4}"
    r"|\d{1,2}(?:st|nd|rd|th)?\s+" + _MONTH + r",?\s+\d{2,4})"
)

# Ordered: explicit invoice date, any non-due date label, then any date
DATE_PATTERNS: Sequence[Pattern] = (
    re.compile(r"\b(?:invoice|issue|bill(?:ing)?)\s*date\b\s*[:.\-]?\s*(" + _DATE_VALUE + r")", re.IGNORECASE),
    re.compile(r"(?<!due )\bdate\b\s*[:.\-]?\s*(" + _DATE_VALUE + r")", re.IGNORECASE),
    re.compile(r"\b(" + _DATE_VALUE + r")(?!\d)", re.IGNORECASE),
)


class DateNormalizer:
    """
    Normalizes date strings to ISO format (YYYY-MM-DD).

    Explicit formats are tried first (month-first before day-first for
    ambiguous slash dates), then dateutil's parser.

    Example:
        >>> normalizer = DateNormalizer()
        >>> normalizer.normalize("01/15/2026")
        "2026-01-15"
        >>> normalizer.normalize("15 January 2026")
        "2026-01-15"
    """

    OUTPUT_FORMAT = "%Y-%m-%d"

    INPUT_FORMATS = [
        "%Y-%m-%d",
        "%Y/%m/%d",
        "%m/%d/%Y",
        "%d/%m/%Y",
        "%m/%d/%y",
        "%d/%m/%y",
        "%d-%m-%Y",
        "%m-%d-%Y",
        "%d.%m.%Y",
        "%d.%m.%y",
        "%B %d, %Y",
        "%b %d, %Y",
        "%B %d %Y",
        "%b %d %Y",
        "%d %B %Y",
        "%d %b %Y",
    ]

    def normalize(self, date_str: str) -> Optional[str]:
        """
        Normalize a date string.

        Args:
            date_str: Date string in any recognized format.

        Returns:
            ISO date string, or None if parsing fails.
        """
        if not date_str:
            return None

        date_str = self._clean_date_string(date_str)

        parsed = self._try_explicit_formats(date_str)
        if parsed is None:
            parsed = self._try_dateutil_parser(date_str)

        if parsed is None:
            logger.debug(f"Could not parse date: {date_str}")
            return None
        return parsed.strftime(self.OUTPUT_FORMAT)

    def _clean_date_string(self, date_str: str) -> str:
        date_str = collapse_whitespace(date_str)
        # Remove ordinal suffixes (1st, 2nd, 3rd, 4th, etc.)
        date_str = re.sub(r"(\d+)(st|nd|rd|th)\b", r"\1", date_str, flags=re.IGNORECASE)
        return date_str.rstrip(".,")

    def _try_explicit_formats(self, date_str: str) -> Optional[datetime]:
        for fmt in self.INPUT_FORMATS:
            try:
                return datetime.strptime(date_str, fmt)
            except ValueError:
                continue
        return None

    def _try_dateutil_parser(self, date_str: str) -> Optional[datetime]:
        for dayfirst in (False, True):
            try:
                return date_parser.parse(date_str, dayfirst=dayfirst)
            except (ValueError, OverflowError):
                continue
        return None


def clean_captured_text(text: str, disallowed: Pattern = _DISALLOWED_CHARS) -> str:
    """Remove ``disallowed`` characters, collapse whitespace and trim."""
    return collapse_whitespace(disallowed.sub("", text)).strip(" .-/")


def _is_party_line(line: str, config: ParserConfig) -> bool:
    # A column header or a line with numbers is not a name
    return len(count_column_roles(line, config)) < MIN_HEADER_ROLES and not extract_numeric_tokens(line)


def extract_party(lines: List[str], config: Optional[ParserConfig] = None) -> str:
    """
    Find the trading party (customer) name.

    A keyword anchor that starts its line and has nothing after it ("Bill
    To:" on its own line) takes the next line as the candidate, unless that
    line is a table header or holds numbers. Candidates shorter than four
    characters are skipped.

    Args:
        lines: Normalized invoice lines.
        config: Parser configuration.

    Returns:
        Party name, or "" when none was found.
    """
    config = config or ParserConfig()
    window = lines[:config.party_window]

    for index, line in enumerate(window):
        for pattern in PARTY_PATTERNS:
            match = pattern.search(line)
            if not match:
                continue

            captured = match.group(1)
            if (
                not captured.strip()
                and not line[:match.start()].strip()
                and index + 1 < len(lines)
                and _is_party_line(lines[index + 1], config)
            ):
                captured = lines[index + 1]

            candidate = clean_captured_text(captured)
            if len(candidate) >= MIN_PARTY_LENGTH:
                logger.debug(f"Party found on line {index}: '{candidate}'")
                return candidate

    logger.debug("No party found")
    return ""


def extract_invoice_number(lines: List[str], config: Optional[ParserConfig] = None) -> str:
    """
    Find the invoice identifier.

    Args:
        lines: Normalized invoice lines.
        config: Parser configuration.

    Returns:
        Identifier containing at least one digit, or "" when none was found.
    """
    config = config or ParserConfig()

    for index, line in enumerate(lines[:config.invoice_number_window]):
        for pattern in INVOICE_NUMBER_PATTERNS:
            match = pattern.search(line)
            if not match:
                continue

            candidate = clean_captured_text(match.group(1), _DISALLOWED_ID_CHARS)
            if re.search(r"\d", candidate):
                logger.debug(f"Invoice number found on line {index}: '{candidate}'")
                return candidate

    logger.debug("No invoice number found")
    return ""


def extract_date(
    lines: List[str],
    config: Optional[ParserConfig] = None,
    today: Optional[date] = None,
    normalizer: Optional[DateNormalizer] = None
) -> str:
    """
    Find the invoice date.

    Patterns are tried in priority order over the whole window, so a labelled
    invoice date wins over an earlier unlabelled one. A match that cannot be
    parsed as a calendar date is returned as matched.

    Args:
        lines: Normalized invoice lines.
        config: Parser configuration.
        today: Fallback date (defaults to the current date).
        normalizer: DateNormalizer to use.

    Returns:
        ISO date, the raw matched text, or today's date when nothing matched.
    """
    config = config or ParserConfig()
    normalizer = normalizer or DateNormalizer()
    window = [collapse_whitespace(line) for line in lines[:config.date_window]]

    for pattern in DATE_PATTERNS:
        for line in window:
            match = pattern.search(line)
            if not match:
                continue

            raw = match.group(1)
            normalized = normalizer.normalize(raw)
            if normalized is None:
                logger.warning(f"Keeping unparsed invoice date '{raw}'")
                return raw
            return normalized

    fallback = (today or date.today()).isoformat()
    logger.debug(f"No invoice date found, defaulting to {fallback}")
    return fallback
