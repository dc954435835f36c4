"""
Line-Item Candidate Matcher Module.

Turns the lines of the detected item table into validated line items.

Invoices lay their rows out in many ways ("ID code description qty rate
total", "qty description rate total", "description qty rate total",
"description total"). Rather than committing to one grammar, every line is
reduced to its numbers and its description, and an ordered bank of matcher
functions assigns quantity, rate and amount from the value ranges of the
numbers. The ItemValidator then catches the misclassifications.

Usage:
    matcher = LineItemMatcher(config)
    bounds = matcher.resolve_bounds(lines)
    items = matcher.extract_items(lines, bounds)

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from invoice_ocr.utils.helpers import collapse_whitespace
from invoice_ocr.utils.logger import get_logger
from .invoice_result import LineItem, LineItemCandidate
from .numbers import NumericToken, extract_numeric_tokens, split_space_group
from .parser_config import ParserConfig
from .table import TableBounds, count_column_roles, detect_table_bounds, find_footer_row

# Initialize module logger
logger = get_logger(__name__)


ITEM_CODE_WORDS = 3
ITEM_CODE_WORD_LENGTH = 3
DEFAULT_ITEM_CODE = "ITEM"

_LEADING_INDEX = re.compile(r"^\d+[.)]?\s+")
_PUNCTUATION_WORD = re.compile(r"^(?:[^\w]+|[xX])$")


@dataclass(frozen=True)
class ParsedLine:
    """
    A table line reduced to its numbers and its description.

    Attributes:
        text: Line with whitespace runs collapsed.
        tokens: Numbers on the line, left to right.
        description: Text left once numbers and unit words are removed.
    """
    text: str
    tokens: Tuple[NumericToken, ...]
    description: str

    @property
    def values(self) -> List[float]:
        return [token.value for token in self.tokens]


def generate_item_code(name: str) -> str:
    """
    Derive a short item code from an item name.

    The first three letters of each of the first three alphabetic words,
    uppercased and joined.

    Example:
        >>> generate_item_code("Service Fee")
        "SERFEE"
        >>> generate_item_code("123 456")
        "ITEM"
    """
    words = [re.sub(r"[^A-Za-z]", "", word) for word in name.split()]
    words = [word for word in words if word]
    code = "".join(word[:ITEM_CODE_WORD_LENGTH].upper() for word in words[:ITEM_CODE_WORDS])
    return code or DEFAULT_ITEM_CODE


def extract_description(
    line: str,
    tokens: Sequence[NumericToken],
    config: Optional[ParserConfig] = None
) -> str:
    """
    Remove numbers and unit words from a line, leaving the item description.

    Args:
        line: Whitespace-collapsed line.
        tokens: Numeric tokens found on that line.
        config: Parser configuration (unit words).

    Returns:
        Description text, possibly empty.

    Example:
        >>> line = "01 Widget 2 pcs 15.00 30.00"
        >>> extract_description(line, extract_numeric_tokens(line))
        "Widget"
    """
    config = config or ParserConfig()

    pieces = []
    cursor = 0
    for token in tokens:
        pieces.append(line[cursor:token.position])
        cursor = token.end
    pieces.append(line[cursor:])
    text = " ".join(pieces)

    if config.unit_words:
        units = "|".join(re.escape(word) for word in config.unit_words)
        text = re.sub(r"\b(?:" + units + r")\b\.?", " ", text, flags=re.IGNORECASE)

    words = [word for word in text.split() if not _PUNCTUATION_WORD.match(word)]
    text = _LEADING_INDEX.sub("", " ".join(words))
    return text.strip(" -:|,;")


def parse_line(line: str, config: Optional[ParserConfig] = None) -> ParsedLine:
    """Collapse whitespace, then split a line into numbers and description."""
    text = collapse_whitespace(line)
    tokens = tuple(extract_numeric_tokens(text))
    return ParsedLine(text=text, tokens=tokens, description=extract_description(text, tokens, config))


def is_trivial_description(text: str, config: Optional[ParserConfig] = None) -> bool:
    """Check whether a description is too short or is only a column header word."""
    config = config or ParserConfig()
    cleaned = text.strip(" :").lower()
    return len(cleaned) <= 2 or cleaned in config.header_keywords


# =============================================================================
# MATCHER BANK
# =============================================================================

Matcher = Callable[[ParsedLine, ParserConfig], Optional[LineItemCandidate]]


def match_quantity_rate_amount(parsed: ParsedLine, config: ParserConfig) -> Optional[LineItemCandidate]:
    """
    Rows with three or more numbers.

    The largest number is the amount. The quantity is a plausible quantity
    whose product with one of the remaining numbers matches the amount; when
    none does, the smallest plausible quantity, or failing that the second
    largest number. The rate is the largest number left.
    """
    values = parsed.values
    if len(values) < 3:
        return None

    amount = max(values)
    others = list(values)
    others.remove(amount)

    validator = config.item_validator
    quantity = rate = None

    for q_index, q in sorted(enumerate(others), key=lambda pair: pair[1]):
        if not config.is_plausible_quantity(q):
            continue
        remaining = others[:q_index] + others[q_index + 1:]
        for r in sorted(remaining, reverse=True):
            if validator.is_consistent(LineItemCandidate(parsed.description, q, r, amount)):
                quantity, rate = q, r
                break
        if quantity is not None:
            break

    if quantity is None:
        plausible = [value for value in others if config.is_plausible_quantity(value)]
        quantity = min(plausible) if plausible else max(others)
        remaining = list(others)
        remaining.remove(quantity)
        rate = max(remaining)

    return LineItemCandidate(name=parsed.description, quantity=quantity, rate=rate, amount=amount)


def match_two_number_row(parsed: ParsedLine, config: ParserConfig) -> Optional[LineItemCandidate]:
    """
    Rows with exactly two numbers.

    The larger number is the amount. A smaller plausible quantity makes
    ``rate = amount / quantity``; otherwise the row is read as rate and
    amount with an implicit quantity of one. Amounts below the configured
    minimum are treated as noise.
    """
    values = parsed.values
    if len(values) != 2:
        return None

    smaller, amount = sorted(values)
    if amount < config.min_two_token_amount:
        return None

    if config.is_plausible_quantity(smaller) and smaller < amount:
        quantity = smaller
        rate = round(amount / quantity, 2)
    else:
        quantity = 1.0
        rate = smaller

    return LineItemCandidate(name=parsed.description, quantity=quantity, rate=rate, amount=amount)


ITEM_MATCHERS: Tuple[Matcher, ...] = (
    match_quantity_rate_amount,
    match_two_number_row,
)


def _run_matchers(parsed: ParsedLine, config: ParserConfig) -> Optional[LineItemCandidate]:
    values = parsed.values
    if len(values) < 2:
        return None
    if all(config.is_year_like(value) for value in values):
        return None

    for matcher in ITEM_MATCHERS:
        candidate = matcher(parsed, config)
        if candidate is not None:
            return candidate
    return None


def split_readings(parsed: ParsedLine) -> Iterator[ParsedLine]:
    """Yield the line re-read with one space-grouped number split apart."""
    for index, token in enumerate(parsed.tokens):
        for pieces in split_space_group(token):
            tokens = parsed.tokens[:index] + pieces + parsed.tokens[index + 1:]
            yield ParsedLine(text=parsed.text, tokens=tokens, description=parsed.description)


def match_line(parsed: ParsedLine, config: Optional[ParserConfig] = None) -> Optional[LineItemCandidate]:
    """
    Run the matcher bank over a parsed line.

    Lines with fewer than two numbers, or whose numbers all look like years
    (a date misread as a row), never produce a candidate. When the candidate
    does not add up and the line holds a space-grouped number, the line is
    re-read with that number split ("2 150,00" as 2 and 150,00) and the
    first reading that adds up wins.

    Returns:
        The chosen candidate, or None.
    """
    config = config or ParserConfig()
    candidate = _run_matchers(parsed, config)
    if candidate is not None and config.item_validator.is_consistent(candidate):
        return candidate

    for reading in split_readings(parsed):
        alternative = _run_matchers(reading, config)
        if alternative is not None and config.item_validator.is_consistent(alternative):
            logger.debug(f"Split grouped number in '{parsed.text}': {reading.values}")
            return alternative

    return candidate


def looks_like_item_row(line: str, config: Optional[ParserConfig] = None) -> bool:
    """
    Check whether a line can open an item table on its own.

    The line needs its own description, must pass the hard item rules and
    the table-lock arithmetic check.
    """
    config = config or ParserConfig()
    if len(line) < config.min_line_length:
        return False

    parsed = parse_line(line, config)
    candidate = match_line(parsed, config)
    if candidate is None or is_trivial_description(candidate.name, config):
        return False

    validator = config.item_validator
    return validator.is_valid(candidate) and validator.is_consistent(
        candidate, tolerance=config.table_lock_tolerance
    )


class LineItemMatcher:
    """
    Extracts line items from the item table of an invoice.

    Attributes:
        config: Parser configuration
        validator: ItemValidator applied to every candidate

    Example:
        >>> matcher = LineItemMatcher()
        >>> lines = ["Item Qty Rate Total", "Widget 2 15.00 30.00", "Subtotal: 30.00"]
        >>> [item.name for item in matcher.extract_items(lines)]
        ['Widget']
    """

    def __init__(self, config: Optional[ParserConfig] = None) -> None:
        self.config = config or ParserConfig()
        self.validator = self.config.item_validator

    def resolve_bounds(self, lines: List[str]) -> Optional[TableBounds]:
        """
        Detect the item table, seeding its start when there is no header.

        Returns:
            TableBounds with a start index, or None when neither a header row
            nor a plausible item row exists.
        """
        bounds = detect_table_bounds(lines, self.config)
        if bounds.has_header:
            return bounds

        for index, line in enumerate(lines):
            if looks_like_item_row(line, self.config):
                logger.debug(f"No header row; item table seeded at line {index}")
                return TableBounds(start_index=index, end_index=find_footer_row(lines, index, self.config))

        logger.debug("No item table found")
        return None

    def extract_items(self, lines: List[str], bounds: Optional[TableBounds] = None) -> List[LineItem]:
        """
        Extract line items from the lines inside the table bounds.

        Args:
            lines: Normalized invoice lines.
            bounds: Table bounds; resolved from the lines when omitted.

        Returns:
            Accepted line items in document order.
        """
        if bounds is None:
            bounds = self.resolve_bounds(lines)
        if bounds is None or bounds.start_index is None:
            return []

        items: List[LineItem] = []
        pending_description = ""

        for index in range(bounds.start_index, min(bounds.end_index, len(lines))):
            line = lines[index]

            if len(line) < self.config.min_line_length:
                continue
            if line.strip(" :").lower() in self.config.header_keywords:
                continue

            parsed = parse_line(line, self.config)

            if len(parsed.tokens) < 2:
                if (
                    not is_trivial_description(parsed.description, self.config)
                    and len(count_column_roles(parsed.text, self.config)) < 2
                ):
                    pending_description = parsed.description
                continue

            candidate = match_line(parsed, self.config)
            if candidate is None:
                logger.debug(f"Line {index} rejected by matchers: '{parsed.text}'")
                continue

            if is_trivial_description(candidate.name, self.config):
                if not pending_description:
                    logger.debug(f"Line {index} has no description: '{parsed.text}'")
                    continue
                candidate.name = pending_description

            item = self._accept(candidate, index, first=not items)
            if item is None:
                continue

            items.append(item)
            pending_description = ""

        logger.debug(f"Extracted {len(items)} line items from lines {bounds.start_index}-{bounds.end_index}")
        return items

    def _accept(self, candidate: LineItemCandidate, index: int, first: bool) -> Optional[LineItem]:
        """Apply the table-lock gate and the item validator to a candidate."""
        if first and not self.validator.is_consistent(
            candidate, tolerance=self.config.table_lock_tolerance
        ):
            logger.debug(f"Line {index} does not open the item table: {candidate}")
            return None

        valid, message = self.validator.validate(candidate)
        if not valid:
            logger.debug(f"Line {index} dropped: {message}")
            return None

        consistent = self.validator.is_consistent(candidate)
        if not consistent:
            logger.warning(
                f"Line {index} '{candidate.name}': {candidate.quantity} x {candidate.rate} "
                f"!= {candidate.amount}, kept for review"
            )

        return LineItem(
            name=candidate.name,
            item_code=generate_item_code(candidate.name),
            quantity=candidate.quantity,
            rate=candidate.rate,
            amount=candidate.amount,
            consistent=consistent
        )
