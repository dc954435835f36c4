"""
Invoice Result Data Classes.

Data structures flowing through the parser, from raw line-item candidates
to the final normalized invoice handed to the caller.

Classes:
    LineItemCandidate: Name/quantity/rate/amount guessed from one line
    LineItem: Accepted candidate with its generated item code
    TotalsBlock: Subtotal, tax and grand total found in the footer
    NormalizedInvoice: The assembled invoice record

Author: ML Engineering Team
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class LineItemCandidate:
    """
    A line-item guess produced by the matcher, not yet validated.

    The soft invariant ``amount ~= quantity * rate`` is checked by the
    ItemValidator.
    """
    name: str
    quantity: float
    rate: float
    amount: float


@dataclass
class LineItem:
    """
    A validated line item.

    Attributes:
        name: Item description.
        item_code: Short uppercase code derived from the name.
        quantity: Unit count.
        rate: Unit price.
        amount: Line total.
        consistent: False when quantity x rate disagrees with amount beyond
                    tolerance (kept for human review).
    """
    name: str
    item_code: str
    quantity: float
    rate: float
    amount: float
    consistent: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'item_code': self.item_code,
            'quantity': self.quantity,
            'rate': self.rate,
            'amount': self.amount,
            'consistent': self.consistent
        }


@dataclass
class TotalsBlock:
    """Footer totals; zero means "not found"."""
    subtotal: float = 0.0
    tax: float = 0.0
    grand_total: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            'subtotal': self.subtotal,
            'tax': self.tax,
            'grand_total': self.grand_total
        }


@dataclass
class NormalizedInvoice:
    """
    The canonical invoice record returned by the parser.

    The caller owns the instance; the parser keeps no reference to it.

    Attributes:
        party: Customer name (placeholder when not found).
        invoice_number: Invoice identifier (generated when not found).
        date: ISO date, or the raw date text when it could not be parsed.
        items: Ordered line items.
        totals: Footer totals as found.
        total: Subtotal, or the sum of item amounts when no subtotal was found.
        grand_total: Footer grand total, or ``total`` when none was found.
        review_flags: Reasons a human should review the record.
        source_file: Source image or text file, when known.
        extraction_timestamp: When the record was assembled.
        ocr_confidence: Average word confidence reported by OCR (0-100).

    Example:
        >>> invoice = parser.parse(text)
        >>> print(invoice.to_json())
    """
    party: str
    invoice_number: str
    date: str
    items: List[LineItem] = field(default_factory=list)
    totals: TotalsBlock = field(default_factory=TotalsBlock)
    total: float = 0.0
    grand_total: float = 0.0
    review_flags: List[str] = field(default_factory=list)
    source_file: Optional[str] = None
    extraction_timestamp: Optional[str] = None
    ocr_confidence: Optional[float] = None

    def __post_init__(self):
        """Initialize timestamp if not provided."""
        if self.extraction_timestamp is None:
            self.extraction_timestamp = datetime.now().isoformat()

    @property
    def needs_review(self) -> bool:
        """True when any field was defaulted or any item looks inconsistent."""
        return bool(self.review_flags)

    @property
    def item_count(self) -> int:
        return len(self.items)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary format.

        Returns:
            Dictionary representation of the invoice.
        """
        return {
            'party': self.party,
            'invoice_number': self.invoice_number,
            'date': self.date,
            'items': [item.to_dict() for item in self.items],
            'totals': self.totals.to_dict(),
            'total': self.total,
            'grand_total': self.grand_total,
            'review_flags': list(self.review_flags),
            'needs_review': self.needs_review,
            'source_file': self.source_file,
            'extraction_timestamp': self.extraction_timestamp,
            'ocr_confidence': self.ocr_confidence
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def to_ledger_document(self, doctype: str = "Sales Invoice", uom: str = "Nos") -> Dict[str, Any]:
        """
        Map the invoice onto a ledger document for the accounting collaborator.

        Args:
            doctype: Ledger document type.
            uom: Unit of measure stamped on every item.

        Returns:
            Dictionary in the shape the document-creation service expects.
        """
        return {
            'doctype': doctype,
            'party': self.party,
            'party_name': self.party,
            'posting_date': self.date,
            'due_date': self.date,
            'invoice_number': self.invoice_number,
            'items': [
                {
                    'item_code': item.item_code,
                    'item_name': item.name,
                    'qty': item.quantity,
                    'rate': item.rate,
                    'amount': item.amount,
                    'uom': uom
                }
                for item in self.items
            ],
            'total': self.total,
            'grand_total': self.grand_total
        }

    def __repr__(self) -> str:
        return (
            f"NormalizedInvoice("
            f"invoice={self.invoice_number}, "
            f"party={self.party}, "
            f"items={self.item_count}, "
            f"grand_total={self.grand_total})"
        )
