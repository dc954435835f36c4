"""
Data Validators Module.

This module provides validation for:
    - Line-item candidates (hard plausibility rules)
    - Line-item arithmetic (quantity x rate against amount)
    - Review findings collected while assembling an invoice

Author: ML Engineering Team
"""

import math
from typing import Any, Dict, List, Optional, Tuple

from invoice_ocr.utils.logger import get_logger
from .invoice_result import LineItemCandidate
from .parser_config import ParserConfig

# Initialize module logger
logger = get_logger(__name__)


class ItemValidator:
    """
    Validates line-item candidates.

    Hard rules reject a candidate outright:
        - name shorter than two characters
        - quantity, rate or amount not finite or not positive
        - implausible magnitudes (quantity, rate or amount above limits)

    The arithmetic check is softer: an item whose amount disagrees with
    quantity x rate is kept and flagged, so a reviewer can correct it.

    Example:
        >>> validator = ItemValidator()
        >>> validator.validate(LineItemCandidate("Widget", 2, 15.0, 30.0))
        (True, "Valid item")
        >>> validator.is_consistent(LineItemCandidate("Widget", 3, 10.0, 50.0))
        False
    """

    MIN_NAME_LENGTH = 2

    def __init__(self, config: Optional[ParserConfig] = None) -> None:
        """Initialize the item validator."""
        self.config = config or ParserConfig()

    def is_valid(self, candidate: LineItemCandidate) -> bool:
        valid, _ = self.validate(candidate)
        return valid

    def validate(self, candidate: LineItemCandidate) -> Tuple[bool, str]:
        """
        Apply the hard rules to a candidate.

        Args:
            candidate: Line-item candidate to check.

        Returns:
            Tuple of (is_valid, message).
        """
        if len(candidate.name.strip()) < self.MIN_NAME_LENGTH:
            return False, "Item name too short"

        values = {
            'quantity': candidate.quantity,
            'rate': candidate.rate,
            'amount': candidate.amount
        }
        for field_name, value in values.items():
            if value is None or not math.isfinite(value):
                return False, f"Item {field_name} is not a number"
            if value <= 0:
                return False, f"Item {field_name} must be positive"

        if candidate.quantity > self.config.max_quantity:
            return False, f"Quantity {candidate.quantity} exceeds maximum"
        if candidate.rate > self.config.max_rate:
            return False, f"Rate {candidate.rate} exceeds maximum"
        if candidate.amount > self.config.max_amount:
            return False, f"Amount {candidate.amount} exceeds maximum"

        return True, "Valid item"

    def is_consistent(
        self,
        candidate: LineItemCandidate,
        tolerance: Optional[float] = None
    ) -> bool:
        """
        Check that quantity x rate matches the amount.

        Passes when the difference is within ``max(amount * tolerance,
        absolute_tolerance)`` or when the product rounded to cents lands
        within the penny-rounding tolerance.

        Args:
            candidate: Line-item candidate to check.
            tolerance: Relative tolerance; defaults to the configured one.

        Returns:
            True if the arithmetic is consistent.
        """
        if tolerance is None:
            tolerance = self.config.relative_tolerance

        product = candidate.quantity * candidate.rate
        if not math.isfinite(product):
            return False

        difference = abs(product - candidate.amount)
        allowed = max(candidate.amount * tolerance, self.config.absolute_tolerance)
        if difference <= allowed:
            return True

        return abs(round(product, 2) - candidate.amount) <= self.config.rounding_tolerance


class ValidationResult:
    """
    Collects the findings of validation checks.

    Attributes:
        is_valid: Overall validation result
        errors: List of error messages
        warnings: List of warning messages
    """

    def __init__(self):
        self.is_valid = True
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def add_error(self, message: str) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(message)

    @property
    def messages(self) -> List[str]:
        return self.errors + self.warnings

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'is_valid': self.is_valid,
            'errors': self.errors,
            'warnings': self.warnings
        }
