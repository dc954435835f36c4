"""
OCR Engine Module for the invoice OCR parser.

This module provides the recognition collaborator boundary:
    - OCREngine: synchronous text recognition from images
    - RecognitionSession: reusable asynchronous handle on an engine
    - OCRResult: recognized lines and confidences

Supports the Tesseract backend (pytesseract).

Author: ML Engineering Team
"""

from .engine import OCREngine, RecognitionSession, describe_image
from .tesseract_backend import TesseractBackend
from .ocr_result import OCRResult, OCRWord, OCRLine

__all__ = [
    'OCREngine',
    'RecognitionSession',
    'describe_image',
    'TesseractBackend',
    'OCRResult',
    'OCRWord',
    'OCRLine'
]
