"""Tests for line classification and amount parsing."""

import time
from decimal import Decimal

import pytest

from fixtures import CLASS_SAMPLES
from invoice_fsm.classifier import (
    LineClassifier,
    build_rules,
    parse_amount,
    parse_english_amount,
    parse_german_amount,
    parse_rate,
)
from invoice_fsm.config import ParserConfig
from invoice_fsm.schemas import LINE_CLASSES, LineClass


class TestAmountParsing:
    """Tests for amount parsing functions."""

    def test_german_amount(self):
        """Parse German amounts (comma decimal, dot thousands)."""
        assert parse_german_amount("11,48") == Decimal("11.48")
        assert parse_german_amount("1.234,56") == Decimal("1234.56")
        assert parse_german_amount("1.234.567,89") == Decimal("1234567.89")

    def test_english_amount(self):
        """Parse English amounts (dot decimal, comma thousands)."""
        assert parse_english_amount("11.48") == Decimal("11.48")
        assert parse_english_amount("12,345.00") == Decimal("12345.00")

    def test_format_detected_from_decimal_separator(self):
        """The separator two digits from the end decides the format."""
        assert parse_amount("1.234,56") == Decimal("1234.56")
        assert parse_amount("1,234.56") == Decimal("1234.56")
        assert parse_amount("150.00") == Decimal("150.00")
        assert parse_amount("12,50") == Decimal("12.50")

    def test_other_decimal_digits(self):
        """The separator position follows the configured number of decimals."""
        assert parse_amount("1.234", digits=0) == Decimal("1234")
        assert parse_amount("12,000", digits=0) == Decimal("12000")
        assert parse_amount("1.234,567", digits=3) == Decimal("1234.567")
        assert parse_amount("1,250.500", digits=3) == Decimal("1250.500")

    def test_rate(self):
        assert parse_rate("0.92") == Decimal("0.92")
        assert parse_rate("0,92") == Decimal("0.92")
        assert parse_rate("1.0850") == Decimal("1.0850")


class TestClassifier:
    """Tests for the rule table and dispatch loop."""

    @pytest.mark.parametrize("line_class, text", sorted(CLASS_SAMPLES.items()))
    def test_sample_per_class(self, classifier, line_class, text):
        """Each sample line gets its own class."""
        assert classifier.classify(text).line_class == LineClass(line_class)

    def test_samples_cover_every_class(self):
        assert {LineClass(c) for c in CLASS_SAMPLES} == set(LINE_CLASSES)

    def test_end_of_input_never_produced(self, classifier):
        """The synthetic end marker does not come from text."""
        for text in ["", "end", "END OF INPUT", "\f"]:
            assert classifier.classify(text).line_class != LineClass.END_OF_INPUT

    def test_local_entry_fields(self, classifier):
        line = classifier.classify("Software licence        1,234.56", index=7)

        assert line.line_class == LineClass.ENTRY_LOCAL
        assert line.index == 7
        assert line.rule == "local_entry"
        assert line.get("description") == "Software licence"
        assert line.get("amount") == Decimal("1234.56")
        assert line.get("currency") == "EUR"
        assert line.get("currency_tagged") is False

    def test_local_entry_with_local_currency_tag(self, classifier):
        line = classifier.classify("Beratung    1.234,56 EUR")

        assert line.line_class == LineClass.ENTRY_LOCAL
        assert line.get("amount") == Decimal("1234.56")
        assert line.get("currency_tagged") is True

    def test_foreign_entry_code_prefix(self, classifier):
        line = classifier.classify("Hotel New York   USD 200.00")

        assert line.line_class == LineClass.ENTRY_FOREIGN
        assert line.get("description") == "Hotel New York"
        assert line.get("currency") == "USD"
        assert line.get("amount") == Decimal("200.00")

    def test_foreign_entry_symbol(self, classifier):
        """Currency symbols map to ISO codes."""
        line = classifier.classify("Taxi $45.00")

        assert line.line_class == LineClass.ENTRY_FOREIGN
        assert line.get("currency") == "USD"

        line = classifier.classify("Train ticket 30.00 £")
        assert line.line_class == LineClass.ENTRY_FOREIGN
        assert line.get("currency") == "GBP"

    def test_euro_symbol_is_local(self, classifier):
        line = classifier.classify("Coffee €3.50")

        assert line.line_class == LineClass.ENTRY_LOCAL
        assert line.get("currency") == "EUR"

    def test_conflicting_currency_tags_unrecognized(self, classifier):
        """USD before and EUR after the amount is not an entry."""
        line = classifier.classify("Hotel USD 200.00 EUR")
        assert line.line_class == LineClass.UNRECOGNIZED

    def test_credit_amounts_negative(self, classifier):
        """Leading minus, parentheses and CR suffix all mean a credit."""
        assert classifier.classify("Refund -10.00").get("amount") == Decimal("-10.00")
        assert classifier.classify("Discount (5.00)").get("amount") == Decimal("-5.00")
        assert classifier.classify("Credit 7.50 CR").get("amount") == Decimal("-7.50")

    def test_description_may_contain_numbers(self, classifier):
        line = classifier.classify("Item 2 of order 77    10.00")

        assert line.line_class == LineClass.ENTRY_LOCAL
        assert line.get("description") == "Item 2 of order 77"
        assert line.get("amount") == Decimal("10.00")

    def test_total_variants(self, classifier):
        cases = {
            "Total: 650.00 EUR": (Decimal("650.00"), "EUR"),
            "Grand Total 1,000.00": (Decimal("1000.00"), "EUR"),
            "Amount due (USD): 12.00": (Decimal("12.00"), "USD"),
            "Gesamtbetrag EUR 330,00": (Decimal("330.00"), "EUR"),
            "TOTAL usd 5.00": (Decimal("5.00"), "USD"),
        }
        for text, (amount, currency) in cases.items():
            line = classifier.classify(text)
            assert line.line_class == LineClass.TOTAL, text
            assert line.get("amount") == amount, text
            assert line.get("currency") == currency, text

    def test_total_keyword_wins_over_entry(self, classifier):
        """A total line also looks like an entry; the total rule runs first."""
        line = classifier.classify("Total EUR 30.00")
        assert line.line_class == LineClass.TOTAL
        assert line.rule == "total"

    def test_subtotal_not_an_entry(self, classifier):
        for text in ["Subtotal: 300.00", "Net total 300.00", "Zwischensumme 330,00"]:
            assert classifier.classify(text).line_class == LineClass.SUBTOTAL, text

    def test_exchange_rate_variants(self, classifier):
        line = classifier.classify("Exchange rate: 1 USD = 0.90 EUR")
        assert line.line_class == LineClass.EXCHANGE
        assert line.get("rate") == Decimal("0.90")
        assert line.get("from_currency") == "USD"
        assert line.get("to_currency") == "EUR"

        line = classifier.classify("Kurs: 0,92")
        assert line.line_class == LineClass.EXCHANGE
        assert line.get("rate") == Decimal("0.92")
        assert line.get("from_currency") is None

    def test_zero_rate_not_exchange(self, classifier):
        assert classifier.classify("FX rate 0").line_class != LineClass.EXCHANGE

    def test_header_field_before_entry(self, classifier):
        """A header value that looks like an amount stays a header field."""
        line = classifier.classify("Reference: Order 10.00")

        assert line.line_class == LineClass.HEADER_FIELD
        assert line.get("key") == "reference"
        assert line.get("value") == "Order 10.00"

    def test_header_key_normalized(self, classifier):
        line = classifier.classify("  Invoice   No :  INV-1 ")
        assert line.line_class == LineClass.UNRECOGNIZED  # Inner spacing is not a key

        line = classifier.classify("INVOICE NO: INV-1")
        assert line.get("key") == "invoice no"
        assert line.get("value") == "INV-1"

    def test_title_must_stand_alone(self, classifier):
        assert classifier.classify("  Tax Invoice  ").line_class == LineClass.TITLE
        assert classifier.classify("Invoice for services").line_class == LineClass.UNRECOGNIZED

    def test_pagination_variants(self, classifier):
        for text in ["Page 1 of 2", "Seite 2/3", "(continued)", "Continued on next page",
                     "--- page break ---", "\f"]:
            assert classifier.classify(text).line_class == LineClass.PAGINATION, repr(text)

    def test_form_feed_is_not_blank(self, classifier):
        assert classifier.classify("   ").line_class == LineClass.BLANK
        assert classifier.classify("\f").line_class == LineClass.PAGINATION

    def test_trailing_newline_ignored(self, classifier):
        line = classifier.classify("Consulting 10.00\r\n")
        assert line.line_class == LineClass.ENTRY_LOCAL
        assert line.text == "Consulting 10.00"

    def test_never_raises_on_garbage(self, classifier):
        for text in ["\x00\x01", "€€€", "9" * 500, "((((", ":::", "1,2,3,4.5.6"]:
            assert classifier.classify(text).line_class in LINE_CLASSES

    def test_context_free(self, classifier):
        """Same text yields the same class regardless of what came before."""
        first = [classifier.classify(t) for t in ["INVOICE", "Consulting 10.00"]]
        again = classifier.classify("Consulting 10.00")
        assert again.line_class == first[1].line_class
        assert again.fields == first[1].fields

    def test_long_lines_classified_in_linear_time(self, classifier):
        """Long lines without an amount are rejected quickly."""
        texts = ["a" * 20000, "a" + " " * 20000 + "b", "Item " * 4000]

        start = time.perf_counter()
        for text in texts:
            assert classifier.classify(text).line_class == LineClass.UNRECOGNIZED

        assert time.perf_counter() - start < 1.0

    def test_entry_description_needs_a_letter(self, classifier):
        assert classifier.classify("12 10.00").line_class == LineClass.UNRECOGNIZED
        assert classifier.classify("2 x Widget 10.00").get("description") == "2 x Widget"

    def test_classify_all_numbers_lines(self, classifier):
        lines = list(classifier.classify_all(["INVOICE", "", "Total: 1.00"]))
        assert [line.index for line in lines] == [0, 1, 2]


class TestRuleConfiguration:
    """Tests for configuration-driven rules."""

    def test_rule_order_fixed(self):
        names = [rule.name for rule in build_rules()]
        assert names == [
            "blank",
            "separator",
            "page_marker",
            "subtotal",
            "total",
            "exchange_rate",
            "title",
            "header_field",
            "foreign_entry",
            "local_entry",
        ]

    def test_local_currency_switches_entry_kind(self):
        classifier = LineClassifier(ParserConfig(local_currency="USD"))

        assert classifier.classify("Hotel USD 200.00").line_class == LineClass.ENTRY_LOCAL
        assert classifier.classify("Beratung 100,00 EUR").line_class == LineClass.ENTRY_FOREIGN
        assert classifier.classify("Consulting 10.00").get("currency") == "USD"

    def test_custom_header_keys(self):
        classifier = LineClassifier(ParserConfig(header_keys=["po number"]))

        assert classifier.classify("PO Number: 4711").line_class == LineClass.HEADER_FIELD
        assert classifier.classify("Date: 2024-11-20").line_class == LineClass.UNRECOGNIZED

    def test_custom_currency_symbol(self):
        config = ParserConfig(currency_symbols={"€": "EUR", "Fr.": "CHF"})
        classifier = LineClassifier(config)

        line = classifier.classify("Zimmer Fr. 120.00")
        assert line.line_class == LineClass.ENTRY_FOREIGN
        assert line.get("currency") == "CHF"

    def test_zero_decimal_currency(self):
        classifier = LineClassifier(ParserConfig(local_currency="JPY"), minor_unit_digits=0)

        line = classifier.classify("Zimmer 12.000")
        assert line.line_class == LineClass.ENTRY_LOCAL
        assert line.get("amount") == Decimal("12000")
        assert line.get("currency") == "JPY"

    def test_three_decimal_currency(self):
        classifier = LineClassifier(minor_unit_digits=3)

        assert classifier.classify("Fee 1,250.500").get("amount") == Decimal("1250.500")
        assert classifier.classify("Fee 10.00").line_class == LineClass.UNRECOGNIZED
