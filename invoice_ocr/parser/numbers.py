"""
Numeric Token Extractor Module.

Finds the numbers in an OCR line and converts each one to a float while
resolving the locale ambiguity between thousands and decimal separators.

Supported notations:
    - plain:              1234.56
    - thousands comma:    1,234.56
    - European dot group: 1.234,56
    - European space:     1 234,56

Author: ML Engineering Team
"""

import math
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from invoice_ocr.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


CURRENCY_SYMBOLS = ['$', '€', '£', '¥', '₹', '₽', '₩', '₦', '฿']

_CURRENCY_RE = re.compile("[" + re.escape("".join(CURRENCY_SYMBOLS)) + "]")

# Space characters OCR engines emit inside grouped numbers
_GROUP_SPACE = r"[\x20\u00a0\u202f]"
_GROUP_SPACE_RE = re.compile(_GROUP_SPACE)

NUMBER_PATTERN = re.compile(
    r"""
    (?<![\w])(?<!\d[.,])                               # not inside a word or number
    (?:[""" + re.escape("".join(CURRENCY_SYMBOLS)) + r"""]\s?)?
    (?:
        \d{1,3}(?:""" + _GROUP_SPACE + r"""\d{3})+,\d{1,2}   # 1 234,56
      | \d{1,3}(?:\.\d{3})+,\d+                          # 1.234,56
      | \d{1,3}(?:,\d{3})+(?:\.\d+)?                     # 1,234.56 / 1,234
      | \d+(?:[.,]\d+)?                                  # 1234.56 / 37,75 / 45
    )
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class NumericToken:
    """
    A number found in a line of OCR text.

    Attributes:
        value: Canonical numeric value.
        original_text: Matched substring, currency symbol included.
        position: Character offset of the match within the line.
    """
    value: float
    original_text: str
    position: int

    @property
    def end(self) -> int:
        """Offset just past the matched text."""
        return self.position + len(self.original_text)


def canonicalize_number(text: str) -> Optional[float]:
    """
    Convert a numeric string in any supported notation to a float.

    Rules, applied in order:
        1. Strip currency symbols and surrounding whitespace.
        2. An internal space means space grouping: remove all spaces.
        3. With both ',' and '.', the separator occurring last is the
           decimal separator and the other one is dropped.
        4. With only ',', it is a decimal separator when followed by exactly
           two digits, otherwise a thousands separator.
        5. Otherwise parse as-is.

    Args:
        text: Numeric string, e.g. "€ 1.234,56".

    Returns:
        Parsed value, or None when the text is not a finite number.

    Example:
        >>> canonicalize_number("1.234,56")
        1234.56
        >>> canonicalize_number("1,234")
        1234.0
    """
    if not text:
        return None

    cleaned = _CURRENCY_RE.sub("", text).strip()

    if re.search(r"\s", cleaned):
        cleaned = re.sub(r"\s+", "", cleaned)

    has_comma = "," in cleaned
    has_dot = "." in cleaned

    if has_comma and has_dot:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif has_comma:
        if cleaned.count(",") == 1 and re.search(r",\d{2}$", cleaned):
            cleaned = cleaned.replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")

    try:
        value = float(cleaned)
    except ValueError:
        logger.debug(f"Could not parse number: '{text}'")
        return None

    if not math.isfinite(value):
        return None
    return value


def extract_numeric_tokens(line: str) -> List[NumericToken]:
    """
    Find every number in a line, left to right.

    Matches that do not canonicalize to a finite value are dropped silently.

    Args:
        line: A single OCR line.

    Returns:
        List of NumericToken in line order.

    Example:
        >>> [t.value for t in extract_numeric_tokens("HP Computer 5,00 each 37,75 188,75")]
        [5.0, 37.75, 188.75]
    """
    tokens = []
    if not line:
        return tokens

    for match in NUMBER_PATTERN.finditer(line):
        value = canonicalize_number(match.group(0))
        if value is None:
            continue
        tokens.append(NumericToken(value=value, original_text=match.group(0), position=match.start()))

    return tokens


def split_space_group(token: NumericToken) -> List[Tuple[NumericToken, ...]]:
    """
    Alternative readings of a space-grouped token as separate numbers.

    "2 150,00" is either 2150.00 or a quantity of 2 followed by 150.00; the
    line matcher falls back to these readings when the grouped one does not
    add up. One reading is returned per internal space, and only readings
    that yield at least two numbers are kept.

    Example:
        >>> token = extract_numeric_tokens("2 150,00")[0]
        >>> [[t.value for t in reading] for reading in split_space_group(token)]
        [[2.0, 150.0]]
    """
    text = token.original_text
    readings = []

    for gap in _GROUP_SPACE_RE.finditer(text):
        pieces = [
            NumericToken(t.value, t.original_text, token.position + t.position)
            for t in extract_numeric_tokens(text[:gap.start()])
        ]
        pieces += [
            NumericToken(t.value, t.original_text, token.position + gap.end() + t.position)
            for t in extract_numeric_tokens(text[gap.end():])
        ]
        if len(pieces) >= 2:
            readings.append(tuple(pieces))

    return readings


def last_number(line: str) -> Optional[float]:
    """Return the value of the last number on a line, if any."""
    tokens = extract_numeric_tokens(line)
    return tokens[-1].value if tokens else None
