"""
Invoice OCR Parser - Source Package.

Turns invoice images (or their recognized text) into structured invoice
records ready for review and ledger entry.

Modules:
    - config: YAML settings with dot-notation access
    - ocr_engine: Text recognition (Tesseract) behind an async session
    - parser: Heuristic extraction of party, dates, items and totals
    - utils: Logging, exceptions and helpers

Architecture:
    Image -> RecognitionSession -> text -> InvoiceParser -> NormalizedInvoice
"""

__version__ = "1.0.0"
__author__ = "ML Engineering Team"

__all__ = [
    'config',
    'ocr_engine',
    'parser',
    'utils'
]
