"""
Unit tests for derived display values (dates, ages, labels).
"""
from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from apps.casework.lib.derived_values import (
    compute_age,
    date_only,
    display_age,
    format_income,
    living_label,
    long_date,
    parse_timestamp,
    short_date,
    yes_no,
)
from packages.shared.models import CaseFields


class TestDateOnly:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2024-01-05T10:00:00.000Z", "2024-01-05"),
            ("2024-01-05 08:30", "2024-01-05"),
            ("2024-01-05", "2024-01-05"),
            ("1/5/2024", "2024-01-05"),
            ("12/25/2023", "2023-12-25"),
            ("2/1/2017 10:30 AM", "2017-02-01"),
            ("2/1/2017, 14:05:09", "2017-02-01"),
            (date(2024, 1, 5), "2024-01-05"),
            (datetime(2024, 1, 5, 23, 59), "2024-01-05"),
            (1704412800000, "2024-01-05"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalizes(self, value, expected):
        assert date_only(value) == expected

    def test_free_text_unchanged(self):
        assert date_only("sometime last year") == "sometime last year"

    def test_text_starting_with_date_unchanged(self):
        assert date_only("2024-01-05 admitted after referral") == "2024-01-05 admitted after referral"

    def test_impossible_us_date_unchanged(self):
        assert date_only("13/45/2024") == "13/45/2024"

    def test_us_date_with_trailing_text_unchanged(self):
        assert date_only("2/1/2017 admitted") == "2/1/2017 admitted"


class TestAge:
    def test_birthday_reached(self):
        assert compute_age("2014-06-15", today=date(2024, 6, 15)) == 10

    def test_day_before_birthday(self):
        assert compute_age("2014-06-15", today=date(2024, 6, 14)) == 9

    def test_missing_or_invalid(self):
        assert compute_age("", today=date(2024, 1, 1)) is None
        assert compute_age("not a date", today=date(2024, 1, 1)) is None

    def test_future_birthdate(self):
        assert compute_age("2030-01-01", today=date(2024, 1, 1)) is None

    def test_display_age_prefers_explicit(self):
        fields = CaseFields(age="12", birthdate="2014-06-15")
        assert display_age(fields, today=date(2024, 6, 15)) == "12"

    def test_display_age_derived(self):
        fields = CaseFields(birthdate="2014-06-15T00:00:00.000Z")
        assert display_age(fields, today=date(2024, 6, 15)) == "10"

    def test_display_age_blank(self):
        assert display_age(CaseFields(), today=date(2024, 6, 15)) == ""


class TestDateLabels:
    def test_long_date(self):
        assert long_date("2024-01-05") == "January 5, 2024"
        assert long_date("garbage") == ""

    def test_short_date(self):
        assert short_date("2024-01-05T10:00:00Z") == "Jan 5, 2024"
        assert short_date("soon") == "soon"
        assert short_date(None) == ""

    def test_parse_timestamp_naive_is_utc(self):
        parsed = parse_timestamp("2024-01-05T10:00:00")
        assert parsed == datetime(2024, 1, 5, 10, tzinfo=timezone.utc)

    def test_parse_timestamp_zulu(self):
        parsed = parse_timestamp("2024-01-05T10:00:00Z")
        assert parsed.tzinfo is not None
        assert parsed.hour == 10


class TestLabels:
    def test_yes_no(self):
        assert yes_no(True) == "YES"
        assert yes_no(False) == "NO"
        assert yes_no("no") == "NO"
        assert yes_no("Yes", "Yes", "No") == "Yes"
        assert yes_no("") == ""
        assert yes_no("maybe") == "maybe"

    def test_living_label(self):
        assert living_label(True) == "Living"
        assert living_label(False) == "Deceased"
        assert living_label("alive") == "Living"
        assert living_label("") == ""

    def test_format_income(self):
        assert format_income("5000") == "₱5000"
        assert format_income("₱5000") == "₱5000"
        assert format_income("5000", "PHP ") == "PHP 5000"
        assert format_income("") == ""
