"""
Parser Configuration Module.

Holds every keyword table and threshold the invoice parser uses as one
immutable value. A ``ParserConfig`` is handed to ``InvoiceParser`` explicitly,
so parsers built from different keyword sets (e.g. per locale) can run side by
side without sharing state.

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Pattern, Tuple, TYPE_CHECKING

from invoice_ocr.config import get_config

if TYPE_CHECKING:
    from .validators import ItemValidator


# Semantic column roles of a line-item table
ROLE_ID = "id"
ROLE_ITEM = "item"
ROLE_QUANTITY = "quantity"
ROLE_RATE = "rate"
ROLE_TOTAL = "total"

COLUMN_ROLES = (ROLE_ID, ROLE_ITEM, ROLE_QUANTITY, ROLE_RATE, ROLE_TOTAL)

DEFAULT_COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    ROLE_ID: ("s.no", "sr.no", "sl.no", "sno", "#"),
    ROLE_ITEM: ("item", "description", "particulars", "product", "details"),
    ROLE_QUANTITY: ("qty", "quantity", "qnty", "hrs", "hours"),
    ROLE_RATE: ("rate", "unit price", "unitprice", "price", "unit cost"),
    ROLE_TOTAL: ("total", "amount", "amt"),
}

DEFAULT_FOOTER_KEYWORDS: Tuple[str, ...] = (
    "subtotal", "grand total", "total due", "amount due", "tax", "vat", "gst",
    "thank you", "notes", "terms", "payment",
)

DEFAULT_UNIT_WORDS: Tuple[str, ...] = ("each", "pcs", "unit", "nos")


def _freeze_aliases(aliases: Mapping[str, Any]) -> Mapping[str, Tuple[str, ...]]:
    frozen = {}
    for role, words in aliases.items():
        if role not in COLUMN_ROLES:
            raise ValueError(f"Unknown column role: {role}")
        frozen[role] = tuple(str(w).lower() for w in words)
    return MappingProxyType(frozen)


@dataclass(frozen=True)
class ParserConfig:
    """
    Immutable configuration for the invoice parser.

    Attributes:
        column_aliases: Column role -> header keyword synonyms (lowercase).
        count_id_role: Whether an ``id`` column counts toward header detection.
        footer_keywords: Keywords that close the line-item table.
        unit_words: Unit words removed from item descriptions.
        party_window: Lines scanned for the trading party.
        invoice_number_window: Lines scanned for the invoice identifier.
        date_window: Lines scanned for the invoice date.
        header_window: Lines scanned for the table header row.
        totals_window: Trailing lines scanned for totals.
        min_line_length: Shorter lines are never item rows.
        min_two_token_amount: Two-number lines below this amount are noise.
        max_quantity_guess: Upper bound of a plausible quantity token.
        year_range: Inclusive range of values that look like calendar years.
        relative_tolerance: Allowed relative deviation of qty x rate vs amount.
        absolute_tolerance: Allowed absolute deviation of qty x rate vs amount.
        rounding_tolerance: Penny-rounding escape for the product check.
        table_lock_tolerance: Relative tolerance the first item must meet.
        max_quantity: Hard upper bound for an item quantity.
        max_rate: Hard upper bound for an item rate.
        max_amount: Hard upper bound for an item amount.
        party_placeholder: Party used when none was found.
        invoice_number_prefix: Prefix of the generated invoice identifier.

    Example:
        >>> config = ParserConfig(relative_tolerance=0.10)
        >>> parser = InvoiceParser(config)
    """

    column_aliases: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: DEFAULT_COLUMN_ALIASES
    )
    count_id_role: bool = True
    footer_keywords: Tuple[str, ...] = DEFAULT_FOOTER_KEYWORDS
    unit_words: Tuple[str, ...] = DEFAULT_UNIT_WORDS

    party_window: int = 20
    invoice_number_window: int = 25
    date_window: int = 25
    header_window: int = 30
    totals_window: int = 20

    min_line_length: int = 5
    min_two_token_amount: float = 20.0
    max_quantity_guess: float = 100.0
    year_range: Tuple[int, int] = (1900, 2100)

    relative_tolerance: float = 0.15
    absolute_tolerance: float = 1.0
    rounding_tolerance: float = 0.02
    table_lock_tolerance: float = 0.25

    max_quantity: float = 100_000
    max_rate: float = 1_000_000
    max_amount: float = 10_000_000

    party_placeholder: str = "Unknown Customer"
    invoice_number_prefix: str = "OCR-"

    def __post_init__(self) -> None:
        object.__setattr__(self, "column_aliases", _freeze_aliases(self.column_aliases))
        object.__setattr__(self, "footer_keywords", tuple(k.lower() for k in self.footer_keywords))
        object.__setattr__(self, "unit_words", tuple(w.lower() for w in self.unit_words))
        object.__setattr__(self, "year_range", tuple(self.year_range))

    @property
    def header_keywords(self) -> FrozenSet[str]:
        """Every column alias, used to recognise bare header cells."""
        return frozenset(
            word for words in self.column_aliases.values() for word in words
        )

    @property
    def detection_roles(self) -> Tuple[str, ...]:
        """Roles counted when looking for the table header row."""
        if self.count_id_role:
            return COLUMN_ROLES
        return tuple(role for role in COLUMN_ROLES if role != ROLE_ID)

    @cached_property
    def footer_pattern(self) -> Pattern:
        """Compiled word-boundary pattern matching any footer keyword."""
        keywords = sorted(self.footer_keywords, key=len, reverse=True)
        alternatives = "|".join(
            r"\s+".join(re.escape(part) for part in keyword.split()) for keyword in keywords
        )
        return re.compile(r"\b(?:" + alternatives + r")\b", re.IGNORECASE)

    @cached_property
    def item_validator(self) -> 'ItemValidator':
        """The ItemValidator for this configuration, built on first use."""
        from .validators import ItemValidator

        return ItemValidator(self)

    def is_year_like(self, value: float) -> bool:
        """Check whether a value looks like a calendar year."""
        low, high = self.year_range
        return low <= value <= high

    def is_plausible_quantity(self, value: float) -> bool:
        """Check whether a value can be a unit count."""
        return 0 < value <= self.max_quantity_guess and not self.is_year_like(value)

    @classmethod
    def from_settings(cls) -> 'ParserConfig':
        """
        Build a configuration from the ``parser.*`` keys of the settings file.

        Missing keys fall back to the class defaults.

        Returns:
            ParserConfig instance.
        """
        defaults = cls()
        return cls(
            column_aliases=get_config("parser.column_aliases", dict(defaults.column_aliases)),
            count_id_role=get_config("parser.count_id_role", defaults.count_id_role),
            footer_keywords=tuple(get_config("parser.footer_keywords", defaults.footer_keywords)),
            unit_words=tuple(get_config("parser.unit_words", defaults.unit_words)),
            party_window=get_config("parser.windows.party_lines", defaults.party_window),
            invoice_number_window=get_config(
                "parser.windows.invoice_number_lines", defaults.invoice_number_window
            ),
            date_window=get_config("parser.windows.date_lines", defaults.date_window),
            header_window=get_config("parser.windows.header_lines", defaults.header_window),
            totals_window=get_config("parser.windows.totals_lines", defaults.totals_window),
            min_line_length=get_config("parser.item.min_line_length", defaults.min_line_length),
            min_two_token_amount=float(
                get_config("parser.item.min_two_token_amount", defaults.min_two_token_amount)
            ),
            max_quantity_guess=float(
                get_config("parser.item.max_quantity_guess", defaults.max_quantity_guess)
            ),
            year_range=tuple(get_config("parser.item.year_range", defaults.year_range)),
            relative_tolerance=float(
                get_config("parser.tolerance.relative", defaults.relative_tolerance)
            ),
            absolute_tolerance=float(
                get_config("parser.tolerance.absolute", defaults.absolute_tolerance)
            ),
            rounding_tolerance=float(
                get_config("parser.tolerance.rounding", defaults.rounding_tolerance)
            ),
            table_lock_tolerance=float(
                get_config("parser.tolerance.table_lock", defaults.table_lock_tolerance)
            ),
            max_quantity=float(get_config("parser.limits.max_quantity", defaults.max_quantity)),
            max_rate=float(get_config("parser.limits.max_rate", defaults.max_rate)),
            max_amount=float(get_config("parser.limits.max_amount", defaults.max_amount)),
            party_placeholder=get_config("parser.placeholders.party", defaults.party_placeholder),
            invoice_number_prefix=get_config(
                "parser.placeholders.invoice_number_prefix", defaults.invoice_number_prefix
            ),
        )
