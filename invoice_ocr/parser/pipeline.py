"""
Invoice Parsing Pipeline.

Runs the extraction stages over recognized text, in order:
    lines -> header fields -> table bounds -> line items -> totals -> assembly

The stages are pure computations over an in-memory line list, so one
InvoiceParser can serve any number of documents, including from concurrent
tasks. The only asynchronous step is the recognition call made through a
RecognitionSession in ``process_invoice``.

Usage:
    from invoice_ocr.parser import InvoiceParser

    parser = InvoiceParser()
    invoice = parser.parse(text)
    print(invoice.to_json())

Author: ML Engineering Team
"""

import time
from datetime import date
from typing import Any, List, Optional, TYPE_CHECKING

from invoice_ocr.utils.logger import get_logger
from .assembler import assemble_invoice
from .header_fields import DateNormalizer, extract_date, extract_invoice_number, extract_party
from .invoice_result import NormalizedInvoice
from .line_items import LineItemMatcher
from .lines import normalize_lines
from .parser_config import ParserConfig
from .totals import extract_totals

if TYPE_CHECKING:
    from invoice_ocr.ocr_engine import RecognitionSession

# Initialize module logger
logger = get_logger(__name__)


class InvoiceParser:
    """
    Converts recognized invoice text into a NormalizedInvoice.

    Parsing never raises on content: fields that cannot be found come back
    as placeholders or defaults and are listed in ``review_flags``.

    Attributes:
        config: Parser configuration
        matcher: Line-item matcher
        date_normalizer: Date normalizer shared by all documents

    Example:
        >>> parser = InvoiceParser()
        >>> invoice = parser.parse("Bill To: Acme Corp\\nItem Qty Rate Total\\n...")
        >>> invoice.party
        'Acme Corp'
    """

    def __init__(self, config: Optional[ParserConfig] = None) -> None:
        """
        Initialize the parser.

        Args:
            config: Parser configuration. If None, built from settings.yaml.
        """
        self.config = config or ParserConfig.from_settings()
        self.matcher = LineItemMatcher(self.config)
        self.date_normalizer = DateNormalizer()

    def parse(
        self,
        text: Optional[str],
        source_file: Optional[str] = None,
        ocr_confidence: Optional[float] = None,
        today: Optional[date] = None
    ) -> NormalizedInvoice:
        """
        Parse raw multi-line text.

        Args:
            text: Recognized text; None or "" yields an empty record.
            source_file: Source file recorded on the invoice.
            ocr_confidence: Recognition confidence recorded on the invoice.
            today: Date used when the document has none.

        Returns:
            The assembled NormalizedInvoice.
        """
        return self.parse_lines(
            normalize_lines(text),
            source_file=source_file,
            ocr_confidence=ocr_confidence,
            today=today
        )

    def parse_lines(
        self,
        lines: List[str],
        source_file: Optional[str] = None,
        ocr_confidence: Optional[float] = None,
        today: Optional[date] = None
    ) -> NormalizedInvoice:
        """
        Parse an already-normalized line list.

        Args:
            lines: Non-empty, stripped lines in reading order.
            source_file: Source file recorded on the invoice.
            ocr_confidence: Recognition confidence recorded on the invoice.
            today: Date used when the document has none.

        Returns:
            The assembled NormalizedInvoice.
        """
        start_time = time.time()

        party = extract_party(lines, self.config)
        invoice_number = extract_invoice_number(lines, self.config)
        invoice_date = extract_date(lines, self.config, today=today, normalizer=self.date_normalizer)

        bounds = self.matcher.resolve_bounds(lines)
        items = self.matcher.extract_items(lines, bounds) if bounds is not None else []

        totals = extract_totals(lines, self.config)

        invoice = assemble_invoice(
            party,
            invoice_number,
            invoice_date,
            items,
            totals,
            self.config,
            source_file=source_file,
            ocr_confidence=ocr_confidence
        )

        elapsed = time.time() - start_time
        logger.info(
            f"Parsed {len(lines)} lines in {elapsed * 1000:.1f}ms: {invoice} "
            f"({len(invoice.review_flags)} review flags)"
        )
        return invoice


async def process_invoice(
    image: Any,
    session: 'RecognitionSession',
    parser: Optional[InvoiceParser] = None,
    timeout: Optional[float] = None,
    source_file: Optional[str] = None
) -> NormalizedInvoice:
    """
    Recognize an invoice image and parse the result.

    The recognition call is the only suspension point. Its failures
    propagate; parsing itself never fails on content.

    Args:
        image: PIL Image, path or raw bytes.
        session: Open RecognitionSession.
        parser: InvoiceParser to use (a default one when omitted).
        timeout: Seconds allowed for recognition.
        source_file: Source file recorded on the invoice.

    Returns:
        The assembled NormalizedInvoice.

    Raises:
        RecognitionFailure: If recognition fails or times out.
        RecognitionSessionClosedError: If the session is closed.
    """
    parser = parser or InvoiceParser()

    result = await session.recognize(image, timeout=timeout)
    if result.is_empty():
        logger.warning(f"No text recognized in {source_file or 'image'}")

    return parser.parse(
        result.text,
        source_file=source_file,
        ocr_confidence=result.average_confidence if result.words else None
    )
