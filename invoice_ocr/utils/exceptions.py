"""
Custom Exceptions Module.

This module defines the exceptions raised by the invoice OCR engine.
Missing invoice fields are never exceptions: the parser always returns a
best-effort record. Only input loading and the recognition call raise.

Exception Hierarchy:
    InvoiceExtractionError (base)
    ├── InputError
    │   ├── UnsupportedFileTypeError
    │   └── CorruptedFileError
    ├── OCRError
    │   ├── OCREngineNotAvailableError
    │   ├── RecognitionFailure
    │   └── RecognitionSessionClosedError
    └── ConfigurationError
"""


class InvoiceExtractionError(Exception):
    """
    Base exception for the package.

    ``details`` carries structured context (paths, reasons) so callers can
    log or report it without parsing the message.
    """

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{k}={v}" for k, v in self.details.items() if v is not None)
        return f"{self.message} ({context})" if context else self.message


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(InvoiceExtractionError):
    """Base exception for input handling errors."""
    pass


class UnsupportedFileTypeError(InputError):
    """
    Raised when an unsupported file type is provided.

    Example:
        >>> raise UnsupportedFileTypeError(".doc", [".png", ".jpg", ".txt"])
    """

    def __init__(self, file_type: str, supported_types: list):
        message = f"Unsupported file type: '{file_type}'"
        details = {"file_type": file_type, "supported_types": supported_types}
        super().__init__(message, details)


class CorruptedFileError(InputError):
    """Raised when an image or text file cannot be read."""

    def __init__(self, filepath: str, reason: str = None):
        message = f"Corrupted or unreadable file: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# OCR ERRORS
# =============================================================================

class OCRError(InvoiceExtractionError):
    """Base exception for OCR-related errors."""
    pass


class OCREngineNotAvailableError(OCRError):
    """Raised when the configured OCR engine is not available."""

    def __init__(self, engine_name: str):
        message = f"OCR engine not available: {engine_name}"
        details = {"engine": engine_name}
        super().__init__(message, details)


class RecognitionFailure(OCRError):
    """
    Raised when the recognition call itself fails.

    Fatal to the current document only. The session that raised it stays
    usable: it recreates its engine on the next call.
    """

    def __init__(self, source: str, reason: str = None):
        message = f"Text recognition failed for: {source}"
        details = {"source": source, "reason": reason}
        super().__init__(message, details)


class RecognitionSessionClosedError(OCRError):
    """Raised when a recognition session is used after it was closed."""

    def __init__(self):
        super().__init__("Recognition session is closed")


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(InvoiceExtractionError):
    """Raised when a settings file is missing or malformed."""

    def __init__(self, path: str, reason: str = None):
        message = f"Invalid configuration: {path}"
        details = {"path": path, "reason": reason}
        super().__init__(message, details)


# Export all exceptions
__all__ = [
    'InvoiceExtractionError',
    'InputError',
    'UnsupportedFileTypeError',
    'CorruptedFileError',
    'OCRError',
    'OCREngineNotAvailableError',
    'RecognitionFailure',
    'RecognitionSessionClosedError',
    'ConfigurationError',
]
