"""
Invoice Parser Module.

Heuristic extraction of a structured invoice from recognized text:
    - Line and numeric token normalization (multi-locale numbers)
    - Header fields: party, invoice number, date
    - Item table boundary detection
    - Line-item matching with arithmetic validation
    - Totals extraction and final assembly

Author: ML Engineering Team
"""

from .parser_config import ParserConfig
from .invoice_result import LineItem, LineItemCandidate, NormalizedInvoice, TotalsBlock
from .numbers import NumericToken, canonicalize_number, extract_numeric_tokens
from .table import TableBounds, detect_table_bounds
from .line_items import LineItemMatcher, generate_item_code
from .validators import ItemValidator, ValidationResult
from .assembler import assemble_invoice
from .pipeline import InvoiceParser, process_invoice

__all__ = [
    'ParserConfig',
    'LineItem',
    'LineItemCandidate',
    'NormalizedInvoice',
    'TotalsBlock',
    'NumericToken',
    'canonicalize_number',
    'extract_numeric_tokens',
    'TableBounds',
    'detect_table_bounds',
    'LineItemMatcher',
    'generate_item_code',
    'ItemValidator',
    'ValidationResult',
    'assemble_invoice',
    'InvoiceParser',
    'process_invoice'
]
