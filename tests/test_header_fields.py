"""Tests for party, invoice number and date extraction."""

from datetime import date

import pytest

from invoice_ocr.parser.header_fields import (
    DateNormalizer,
    clean_captured_text,
    extract_date,
    extract_invoice_number,
    extract_party,
)


class TestExtractParty:
    """Tests for customer name extraction."""

    def test_bill_to_same_line(self, acme_lines, config):
        assert extract_party(acme_lines, config) == "Acme Corp"

    def test_anchor_alone_takes_next_line(self, config):
        lines = ["INVOICE", "Bill To:", "Globex Corporation", "123 Main Street"]
        assert extract_party(lines, config) == "Globex Corporation"

    def test_anchor_inside_a_sentence_does_not_take_next_line(self, config):
        lines = ["Thank you, valued customer", "Item Qty Rate Total"]
        assert extract_party(lines, config) == ""

    def test_anchor_alone_skips_table_header(self, config):
        lines = ["Bill To:", "Description Qty Rate Amount", "Widget 2 15.00 30.00"]
        assert extract_party(lines, config) == ""

    def test_anchor_alone_skips_line_with_numbers(self, config):
        lines = ["Bill To:", "221B 2024", "Customer: Baker Street Ltd"]
        assert extract_party(lines, config) == "Baker Street Ltd"

    def test_short_candidates_are_skipped(self, config):
        lines = ["Customer: Al", "Sold To: Initech LLC"]
        assert extract_party(lines, config) == "Initech LLC"

    def test_disallowed_characters_are_stripped(self, config):
        lines = ["Client: *Smith & Sons, Ltd.*"]
        assert extract_party(lines, config) == "Smith & Sons Ltd"

    def test_company_label(self, config):
        assert extract_party(["Company: Wayne Enterprises"], config) == "Wayne Enterprises"

    def test_missing_party_is_empty(self, config):
        assert extract_party(["INVOICE", "Widget 2 15.00 30.00"], config) == ""
        assert extract_party([], config) == ""

    def test_window_is_bounded(self, config):
        lines = ["filler"] * config.party_window + ["Bill To: Late Corp"]
        assert extract_party(lines, config) == ""


class TestExtractInvoiceNumber:
    """Tests for invoice identifier extraction."""

    @pytest.mark.parametrize("line,expected", [
        ("Invoice No: INV-2024-001", "INV-2024-001"),
        ("Invoice Number: 10045", "10045"),
        ("Invoice #: 12345", "12345"),
        ("INVOICE # A-778", "A-778"),
        ("Ref INV-9001 dated today", "INV-9001"),
        ("Inv No. 5521", "5521"),
        ("Receipt No: R-42", "R-42"),
        ("Invoice No. 2024/001", "2024/001"),
    ])
    def test_patterns(self, line, expected, config):
        assert extract_invoice_number([line], config) == expected

    def test_identifier_needs_a_digit(self, config):
        assert extract_invoice_number(["Invoice Number: PENDING"], config) == ""

    def test_missing_identifier_is_empty(self, acme_lines, config):
        assert extract_invoice_number(acme_lines, config) == ""


class TestExtractDate:
    """Tests for invoice date extraction."""

    def test_labelled_date(self, config):
        assert extract_date(["Date: 01/15/2026"], config) == "2026-01-15"

    def test_invoice_date_beats_earlier_due_date(self, config):
        lines = ["Due Date: 02/20/2026", "Invoice Date: 01/20/2026"]
        assert extract_date(lines, config) == "2026-01-20"

    def test_european_dotted_date(self, config):
        assert extract_date(["Invoice Date: 15.03.2026"], config) == "2026-03-15"

    def test_month_name_date(self, config):
        assert extract_date(["Issued March 5, 2026"], config) == "2026-03-05"

    def test_unparseable_date_is_kept_raw(self, config):
        assert extract_date(["Date: 31/31/2026"], config) == "31/31/2026"

    def test_defaults_to_today(self, acme_lines, config):
        assert extract_date(acme_lines, config, today=date(2026, 10, 18)) == "2026-10-18"

    def test_no_lines_defaults_to_today(self, config):
        assert extract_date([], config) == date.today().isoformat()


class TestDateNormalizer:
    """Tests for the date normalizer."""

    @pytest.mark.parametrize("text,expected", [
        ("2026-01-15", "2026-01-15"),
        ("01/15/2026", "2026-01-15"),
        ("15/01/2026", "2026-01-15"),
        ("15 January 2026", "2026-01-15"),
        ("Jan 15th, 2026", "2026-01-15"),
    ])
    def test_formats(self, text, expected):
        assert DateNormalizer().normalize(text) == expected

    def test_garbage_is_none(self):
        assert DateNormalizer().normalize("not a date") is None
        assert DateNormalizer().normalize("") is None


def test_clean_captured_text():
    assert clean_captured_text("  Acme   Corp!! ") == "Acme Corp"
