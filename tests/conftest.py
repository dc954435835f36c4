"""Pytest configuration and fixtures."""

import logging
import threading
import time
from typing import List, Optional

import pytest

from invoice_ocr.config import ConfigurationManager
from invoice_ocr.ocr_engine import OCRResult
from invoice_ocr.parser import InvoiceParser, ParserConfig


ACME_LINES = [
    "Bill To: Acme Corp",
    "Item Qty Rate Total",
    "Widget 2 15.00 30.00",
    "Service Fee 50.00 50.00",
    "Subtotal: 80.00",
    "Grand Total: 80.00",
]

LOCALE_LINES = [
    "Bill To: Contoso GmbH",
    "Invoice No: RE-2026-17",
    "Date: 15.03.2026",
    "Description Qty Rate Amount",
    "HP Computer 5,00 each 37,75 188,75",
    "Subtotal: 188,75",
    "VAT: 35,86",
    "Total Due: 224,61",
]


# ============================================================================
# Fake recognition engine
# ============================================================================

class FakeEngine:
    """Recognition engine double that returns canned text."""

    def __init__(self, factory: 'FakeEngineFactory') -> None:
        self.factory = factory
        self.calls = 0

    def extract(self, image) -> OCRResult:
        self.calls += 1
        factory = self.factory

        with factory.state_lock:
            factory.active += 1
            factory.max_active = max(factory.max_active, factory.active)
        try:
            if factory.gate is not None:
                factory.gate.wait(timeout=5)
            if factory.delay:
                time.sleep(factory.delay)
            if factory.error is not None:
                error, factory.error = factory.error, None
                raise error
            return OCRResult(raw_text=factory.text, engine="fake")
        finally:
            with factory.state_lock:
                factory.active -= 1


class FakeEngineFactory:
    """Creates FakeEngines and records every one it created."""

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.delay = 0.0
        self.gate: Optional[threading.Event] = None
        self.error: Optional[Exception] = None
        self.created: List[FakeEngine] = []
        self.state_lock = threading.Lock()
        self.active = 0
        self.max_active = 0

    def __call__(self) -> FakeEngine:
        engine = FakeEngine(self)
        self.created.append(engine)
        return engine


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def config() -> ParserConfig:
    """Default parser configuration."""
    return ParserConfig()


@pytest.fixture
def parser(config: ParserConfig) -> InvoiceParser:
    """Invoice parser with the default configuration."""
    return InvoiceParser(config)


@pytest.fixture
def acme_lines() -> List[str]:
    return list(ACME_LINES)


@pytest.fixture
def acme_text() -> str:
    return "\n".join(ACME_LINES)


@pytest.fixture
def locale_text() -> str:
    return "\n".join(LOCALE_LINES)


@pytest.fixture
def engine_factory(acme_text: str) -> FakeEngineFactory:
    """Fake engine factory returning the Acme invoice text."""
    return FakeEngineFactory(acme_text)


@pytest.fixture
def fresh_settings():
    """Reset the configuration singleton around a test."""
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


class _RecordingHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def log_records():
    """Capture records logged under the package logger."""
    logger = logging.getLogger("invoice_ocr")
    handler = _RecordingHandler()
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    yield handler.records
    logger.removeHandler(handler)
    logger.setLevel(previous_level)
