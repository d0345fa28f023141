"""Tests for field_resolver.py - alias resolution and value coercion."""

from datetime import date
from decimal import Decimal

import pytest

from src.processors.field_resolver import (
    FIELD_ALIASES,
    CanonicalField,
    format_amount,
    format_short_date,
    has_field,
    parse_amount,
    parse_service_date,
    resolve,
)


class TestResolve:
    """Tests for resolve()."""

    def test_first_alias_wins(self):
        row = {"Service": "Office visit", "CPT": "99213"}
        assert resolve(row, CanonicalField.SERVICE_CODE) == "99213"

    def test_falls_through_alias_order(self):
        assert resolve({"description": "Consult"}, CanonicalField.SERVICE_CODE) == "Consult"

    def test_empty_value_counts_as_present(self):
        """A present but empty key stops the search."""
        row = {"CPT": "", "Service": "Office visit"}
        assert resolve(row, CanonicalField.SERVICE_CODE) == ""

    def test_missing_returns_empty_string(self):
        assert resolve({"Unrelated": "x"}, CanonicalField.DIAGNOSIS) == ""

    def test_key_match_is_case_sensitive(self):
        """Only spellings listed in the table are recognized."""
        assert resolve({"CpT": "99213"}, CanonicalField.SERVICE_CODE) == ""

    def test_custom_alias_table(self):
        aliases = {CanonicalField.SERVICE_CODE: ("Proc",)}
        assert resolve({"Proc": "90837"}, CanonicalField.SERVICE_CODE, aliases) == "90837"

    def test_service_code_alias_order(self):
        assert FIELD_ALIASES[CanonicalField.SERVICE_CODE] == (
            "CPT",
            "cpt",
            "Service",
            "service",
            "Description",
            "description",
        )

    def test_has_field(self):
        assert has_field({"Amount Due": ""}, CanonicalField.DUE) is True
        assert has_field({"Charge": "1"}, CanonicalField.DUE) is False


class TestParseAmount:
    """Tests for parse_amount()."""

    def test_plain_number(self):
        assert parse_amount("150.00") == Decimal("150.00")

    def test_strips_currency_and_commas(self):
        assert parse_amount("$1,234.50") == Decimal("1234.50")

    def test_empty_is_zero(self):
        assert parse_amount("") == Decimal("0.00")
        assert parse_amount(None) == Decimal("0.00")

    def test_garbage_is_zero(self):
        assert parse_amount("N/A") == Decimal("0.00")
        assert parse_amount("--") == Decimal("0.00")

    def test_negative_is_zero(self):
        assert parse_amount("-25.00") == Decimal("0.00")

    def test_leading_number_prefix(self):
        assert parse_amount("12.5.3") == Decimal("12.50")

    def test_rounds_half_up(self):
        assert parse_amount("0.005") == Decimal("0.01")
        assert parse_amount("2.675") == Decimal("2.68")
        assert parse_amount("1.004") == Decimal("1.00")

    @pytest.mark.parametrize("raw", ["150", "$99.999", "abc", "", "-3", "1,000.1"])
    def test_idempotent(self, raw):
        once = parse_amount(raw)
        assert parse_amount(once) == once
        assert parse_amount(format_amount(once)) == once

    @pytest.mark.parametrize("raw", ["150", "$99.999", "abc", "-3", "7.1"])
    def test_two_decimal_display(self, raw):
        text = format_amount(parse_amount(raw))
        assert text.split(".")[1].isdigit()
        assert len(text.split(".")[1]) == 2
        assert not text.startswith("-")


class TestDates:
    """Tests for parse_service_date() and format_short_date()."""

    def test_iso_date(self):
        assert parse_service_date("2024-01-15", date(2026, 1, 1)) == date(2024, 1, 15)

    def test_us_dates(self):
        default = date(2026, 1, 1)
        assert parse_service_date("01/15/2024", default) == date(2024, 1, 15)
        assert parse_service_date("1/5/24", default) == date(2024, 1, 5)

    def test_unparsable_uses_default(self):
        default = date(2026, 3, 2)
        assert parse_service_date("sometime", default) == default
        assert parse_service_date("", default) == default

    def test_short_format(self):
        assert format_short_date(date(2024, 1, 15)) == "01-15-24"
