"""
Invoice Assembler Module.

Merges header fields, line items and totals into the NormalizedInvoice,
computing fallbacks for absent fields and recording why a record should be
reviewed by a human.

Placeholders for a missing party or invoice number are only applied here,
so earlier stages can still tell "not found" from "defaulted".

Author: ML Engineering Team
"""

from typing import Any, Dict, List, Optional

from invoice_ocr.utils.helpers import generate_timestamp
from invoice_ocr.utils.logger import get_logger
from .invoice_result import LineItem, NormalizedInvoice, TotalsBlock
from .parser_config import ParserConfig
from .validators import ValidationResult

# Initialize module logger
logger = get_logger(__name__)


def generate_invoice_number(prefix: str = "OCR-") -> str:
    """Build a timestamp-based identifier for invoices without one."""
    return f"{prefix}{generate_timestamp('%Y%m%d%H%M%S')}"


def review_invoice(
    party: str,
    invoice_number: str,
    items: List[LineItem],
    totals: TotalsBlock,
    total: float,
    config: Optional[ParserConfig] = None
) -> ValidationResult:
    """
    Collect the reasons an assembled invoice needs human review.

    Missing header fields and an empty item list are errors; inconsistent
    item arithmetic and totals that do not add up are warnings.
    """
    config = config or ParserConfig()
    result = ValidationResult()

    if not party:
        result.add_error("Party not found")
    if not invoice_number:
        result.add_error("Invoice number not found")
    if not items:
        result.add_error("No line items found")

    for item in items:
        if not item.consistent:
            result.add_warning(
                f"Item '{item.name}': quantity x rate does not match amount"
            )

    if totals.grand_total > 0 and total > 0:
        expected = total + totals.tax
        if abs(totals.grand_total - expected) > config.absolute_tolerance:
            result.add_warning(
                f"Grand total {totals.grand_total} differs from total plus tax {expected}"
            )

    return result


def assemble_invoice(
    party: str,
    invoice_number: str,
    invoice_date: str,
    items: List[LineItem],
    totals: TotalsBlock,
    config: Optional[ParserConfig] = None,
    **metadata: Any
) -> NormalizedInvoice:
    """
    Build the NormalizedInvoice.

    ``total`` is the subtotal when one was found, otherwise the sum of the
    item amounts. ``grand_total`` is the footer grand total when found,
    otherwise ``total``.

    Args:
        party: Extracted party, "" when not found.
        invoice_number: Extracted identifier, "" when not found.
        invoice_date: ISO date (or raw date text).
        items: Accepted line items.
        totals: Footer totals.
        config: Parser configuration (placeholders, tolerances).
        **metadata: Extra NormalizedInvoice fields (source_file,
                    ocr_confidence).

    Returns:
        The assembled invoice.
    """
    config = config or ParserConfig()

    total = totals.subtotal if totals.subtotal > 0 else round(sum(item.amount for item in items), 2)
    grand_total = totals.grand_total if totals.grand_total > 0 else total

    review = review_invoice(party, invoice_number, items, totals, total, config)
    for message in review.warnings:
        logger.warning(message)

    invoice = NormalizedInvoice(
        party=party or config.party_placeholder,
        invoice_number=invoice_number or generate_invoice_number(config.invoice_number_prefix),
        date=invoice_date,
        items=list(items),
        totals=totals,
        total=total,
        grand_total=grand_total,
        review_flags=review.messages,
        **metadata
    )

    if not review.is_valid:
        logger.info(f"{invoice.invoice_number} flagged for review: {'; '.join(review.errors)}")

    return invoice


def to_dict(invoice: NormalizedInvoice) -> Dict[str, Any]:
    """Serialize an invoice to a plain dictionary."""
    return invoice.to_dict()


def to_ledger_document(invoice: NormalizedInvoice, doctype: str = "Sales Invoice") -> Dict[str, Any]:
    """Map an invoice onto the ledger document shape."""
    return invoice.to_ledger_document(doctype=doctype)
