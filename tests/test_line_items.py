"""Tests for the line-item matcher."""

import logging

import pytest

from invoice_ocr.parser import ParserConfig
from invoice_ocr.parser.line_items import (
    ITEM_MATCHERS,
    LineItemMatcher,
    extract_description,
    generate_item_code,
    looks_like_item_row,
    match_line,
    parse_line,
)
from invoice_ocr.parser.numbers import extract_numeric_tokens
from invoice_ocr.parser.table import TableBounds


def _match(line, config=None):
    return match_line(parse_line(line, config), config)


class TestExtractDescription:
    """Tests for description extraction."""

    @pytest.mark.parametrize("line,expected", [
        ("Widget 2 15.00 30.00", "Widget"),
        ("01 Widget 2 pcs 15.00 30.00", "Widget"),
        ("HP Computer 5,00 each 37,75 188,75", "HP Computer"),
        ("3 x Cable Ties @ 4.00 = 12.00", "Cable Ties"),
        ("Design work | 10 | 95.00 | 950.00", "Design work"),
        ("12 15.00 180.00", ""),
    ])
    def test_descriptions(self, line, expected, config):
        assert extract_description(line, extract_numeric_tokens(line), config) == expected

    def test_parse_line_collapses_whitespace(self, config):
        parsed = parse_line("Widget     2    15.00   30.00", config)
        assert parsed.text == "Widget 2 15.00 30.00"
        assert parsed.values == [2.0, 15.0, 30.0]
        assert parsed.description == "Widget"


class TestGenerateItemCode:
    """Tests for item code generation."""

    @pytest.mark.parametrize("name,expected", [
        ("Widget", "WID"),
        ("Service Fee", "SERFEE"),
        ("HP Computer", "HPCOM"),
        ("Dell XPS 15 laptop bag", "DELXPSLAP"),
        ("123 456", "ITEM"),
        ("", "ITEM"),
    ])
    def test_codes(self, name, expected):
        assert generate_item_code(name) == expected


class TestMatchLine:
    """Tests for the matcher bank."""

    def test_matchers_are_ordered_callables(self):
        assert len(ITEM_MATCHERS) >= 2
        assert all(callable(matcher) for matcher in ITEM_MATCHERS)

    def test_quantity_rate_amount(self, config):
        candidate = _match("Widget 2 15.00 30.00", config)
        assert (candidate.name, candidate.quantity, candidate.rate, candidate.amount) == (
            "Widget", 2.0, 15.0, 30.0
        )

    def test_row_number_is_not_the_quantity(self, config):
        candidate = _match("01 Widget 2 15.00 30.00", config)
        assert (candidate.quantity, candidate.rate, candidate.amount) == (2.0, 15.0, 30.0)

    def test_quantity_before_description(self, config):
        candidate = _match("4 Toner cartridge 62.50 250.00", config)
        assert (candidate.quantity, candidate.rate, candidate.amount) == (4.0, 62.5, 250.0)

    def test_european_locale_row(self, config):
        candidate = _match("HP Computer 5,00 each 37,75 188,75", config)
        assert candidate.quantity == 5.0
        assert candidate.rate == 37.75
        assert candidate.amount == 188.75

    def test_two_numbers_with_implicit_unit_quantity(self, config):
        candidate = _match("Service Fee 50.00 50.00", config)
        assert (candidate.quantity, candidate.rate, candidate.amount) == (1.0, 50.0, 50.0)

    def test_two_numbers_with_quantity(self, config):
        candidate = _match("Consulting hours 8 760.00", config)
        assert candidate.quantity == 8.0
        assert candidate.rate == 95.0
        assert candidate.amount == 760.0

    def test_two_numbers_without_plausible_quantity(self, config):
        candidate = _match("Laptop 850.00 1700.00", config)
        assert (candidate.quantity, candidate.rate, candidate.amount) == (1.0, 850.0, 1700.0)

    def test_year_like_rows_are_rejected(self, config):
        assert _match("Period 2023 2024", config) is None

    def test_small_two_number_noise_is_rejected(self, config):
        assert _match("Page 1 of 2", config) is None

    def test_single_number_is_not_a_row(self, config):
        assert _match("Total: 80.00", config) is None

    def test_fallback_when_arithmetic_never_fits(self, config):
        candidate = _match("Gizmo 3 10.00 50.00", config)
        assert (candidate.quantity, candidate.rate, candidate.amount) == (3.0, 10.0, 50.0)

    def test_space_grouped_quantity_and_rate_are_split(self, config):
        candidate = _match("Monitor 2 150,00 300,00", config)
        assert candidate.name == "Monitor"
        assert (candidate.quantity, candidate.rate, candidate.amount) == (2.0, 150.0, 300.0)

    def test_consistent_space_grouped_amount_stays_whole(self, config):
        candidate = _match("Laptop 1 1 234,56 1 234,56", config)
        assert (candidate.quantity, candidate.rate, candidate.amount) == (1.0, 1234.56, 1234.56)


class TestLooksLikeItemRow:
    """Tests for table seeding without a header."""

    def test_consistent_row(self, config):
        assert looks_like_item_row("Widget 2 15.00 30.00", config)

    def test_rows_without_description_do_not_seed(self, config):
        assert not looks_like_item_row("2 15.00 30.00", config)

    def test_inconsistent_row_does_not_seed(self, config):
        assert not looks_like_item_row("Phone 555 1234", config)
        assert not looks_like_item_row("Gizmo 3 10.00 50.00", config)


class TestLineItemMatcher:
    """Tests for extracting items from the table region."""

    def test_acme_items(self, acme_lines, config):
        items = LineItemMatcher(config).extract_items(acme_lines)

        assert [(i.name, i.quantity, i.rate, i.amount) for i in items] == [
            ("Widget", 2.0, 15.0, 30.0),
            ("Service Fee", 1.0, 50.0, 50.0),
        ]
        assert [i.item_code for i in items] == ["WID", "SERFEE"]
        assert all(i.consistent for i in items)

    def test_lines_outside_bounds_are_ignored(self, config):
        lines = ["Widget 2 15.00 30.00", "Gadget 1 70.00 70.00"]
        items = LineItemMatcher(config).extract_items(lines, TableBounds(start_index=1, end_index=2))
        assert [i.name for i in items] == ["Gadget"]

    def test_pending_description_names_next_row(self, config):
        lines = [
            "Item Qty Rate Total",
            "Consulting services for March",
            "10 95.00 950.00",
            "Total: 950.00",
        ]
        items = LineItemMatcher(config).extract_items(lines)
        assert len(items) == 1
        assert items[0].name == "Consulting services for March"
        assert (items[0].quantity, items[0].rate) == (10.0, 95.0)

    def test_pending_description_is_cleared_on_acceptance(self, config):
        lines = [
            "Item Qty Rate Total",
            "Annual support plan",
            "1 120.00 120.00",
            "2 15.00 30.00",
        ]
        items = LineItemMatcher(config).extract_items(lines)
        assert [i.name for i in items] == ["Annual support plan"]

    def test_row_without_any_name_is_discarded(self, config):
        lines = ["Item Qty Rate Total", "2 15.00 30.00"]
        assert LineItemMatcher(config).extract_items(lines) == []

    def test_noise_before_table_does_not_open_it(self, config):
        lines = [
            "Acme Supplies Ltd",
            "Phone 555 1234",
            "Widget 2 15.00 30.00",
            "Subtotal 30.00",
        ]
        matcher = LineItemMatcher(config)

        bounds = matcher.resolve_bounds(lines)
        assert bounds == TableBounds(start_index=2, end_index=3)
        assert [i.name for i in matcher.extract_items(lines, bounds)] == ["Widget"]

    def test_table_lock_rejects_inconsistent_first_row(self, config):
        lines = ["Description Qty Rate Amount", "Gizmo 3 10.00 50.00", "Widget 2 15.00 30.00"]
        items = LineItemMatcher(config).extract_items(lines)
        assert [i.name for i in items] == ["Widget"]

    def test_grouped_number_row_is_not_lost(self, config):
        lines = ["Description Qty Rate Total", "Monitor 2 150,00 300,00"]
        items = LineItemMatcher(config).extract_items(lines)
        assert [(i.name, i.quantity, i.rate, i.amount) for i in items] == [
            ("Monitor", 2.0, 150.0, 300.0)
        ]

    def test_inconsistent_row_after_first_is_kept_and_flagged(self, config, log_records):
        lines = ["Description Qty Rate Amount", "Widget 2 15.00 30.00", "Gizmo 3 10.00 50.00"]

        items = LineItemMatcher(config).extract_items(lines)

        assert [(i.name, i.consistent) for i in items] == [("Widget", True), ("Gizmo", False)]
        warnings = [r.getMessage() for r in log_records if r.levelno == logging.WARNING]
        assert any("Gizmo" in message for message in warnings)

    def test_hard_rule_failures_are_dropped(self, config):
        lines = [
            "Description Qty Rate Amount",
            "Widget 2 15.00 30.00",
            "Yacht 1 20,000,000.00 20,000,000.00",
        ]
        items = LineItemMatcher(config).extract_items(lines)
        assert [i.name for i in items] == ["Widget"]

    def test_no_table_anywhere(self, config):
        lines = ["Hello there", "This is a letter", "Regards"]
        matcher = LineItemMatcher(config)
        assert matcher.resolve_bounds(lines) is None
        assert matcher.extract_items(lines) == []

    def test_custom_unit_words(self):
        config = ParserConfig(unit_words=("hrs",))
        candidate = _match("Consulting 8 hrs 95.00 760.00", config)
        assert candidate.name == "Consulting"
