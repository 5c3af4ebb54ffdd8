"""
Unit tests for the reporting window resolver

Author: TM3
Date: 2025-11-11
"""
import pytest
from datetime import date

from inventory_optimizer.core.exceptions import InputValidationError
from inventory_optimizer.services.time_window import (
    ReportingMode,
    calendar_year_window,
    parse_as_of,
    parse_mode,
    resolve_window,
    trailing_window,
)


class TestTrailingWindow:
    """Trailing twelve months ending with the anchor month"""

    def test_month_keys_are_twelve_consecutive_month_starts(self):
        window = trailing_window(date(2025, 6, 15))

        assert len(window.month_keys) == 12
        assert window.month_keys[0] == date(2024, 7, 1)
        assert window.month_keys[-1] == date(2025, 6, 1)
        assert all(k.day == 1 for k in window.month_keys)

    def test_range_covers_whole_anchor_month(self):
        window = trailing_window(date(2025, 2, 3))

        assert window.start_date == date(2024, 3, 1)
        assert window.end_date == date(2025, 2, 28)
        assert window.label == "last12"

    def test_year_boundary(self):
        window = trailing_window(date(2025, 1, 31))

        assert window.month_keys[0] == date(2024, 2, 1)
        assert window.end_date == date(2025, 1, 31)

    def test_month_index(self):
        window = trailing_window(date(2025, 6, 15))

        assert window.month_index(date(2024, 7, 1)) == 0
        assert window.month_index(date(2024, 12, 31)) == 5
        assert window.month_index(date(2025, 6, 30)) == 11
        assert window.month_index(date(2024, 6, 30)) is None
        assert window.month_index(date(2025, 7, 1)) is None


class TestCalendarYearWindow:

    def test_january_to_december(self):
        window = calendar_year_window(2024)

        assert window.month_keys[0] == date(2024, 1, 1)
        assert window.month_keys[-1] == date(2024, 12, 1)
        assert window.end_date == date(2024, 12, 31)
        assert window.to_dict()["label"] == "2024"

    def test_out_of_range_year_rejected(self):
        with pytest.raises(InputValidationError):
            calendar_year_window(10000)

    def test_resolve_requires_year(self):
        with pytest.raises(InputValidationError) as exc_info:
            resolve_window(ReportingMode.CALENDAR_YEAR)
        assert exc_info.value.field == "year"


class TestParameterParsing:

    @pytest.mark.parametrize("raw", [None, "", "trailing12", "last12", "LAST12"])
    def test_trailing_aliases(self, raw):
        assert parse_mode(raw) == (ReportingMode.TRAILING_12, None)

    def test_calendar_year_with_year(self):
        assert parse_mode("year", "2024") == (ReportingMode.CALENDAR_YEAR, 2024)

    def test_unknown_mode(self):
        with pytest.raises(InputValidationError) as exc_info:
            parse_mode("quarter")
        assert exc_info.value.field == "mode"

    @pytest.mark.parametrize("raw_year", [None, "", "twenty", "1800"])
    def test_bad_year(self, raw_year):
        with pytest.raises(InputValidationError):
            parse_mode("calendar_year", raw_year)

    def test_as_of(self):
        assert parse_as_of("2025-06-15") == date(2025, 6, 15)
        assert parse_as_of(None) is None
        with pytest.raises(InputValidationError):
            parse_as_of("15/06/2025")


class TestAnchorBounds:
    """Anchors whose trailing window would leave the supported date range"""

    @pytest.mark.parametrize("raw", ["0001-01-15", "1899-12-31", "9999-12-15"])
    def test_rejected_as_of(self, raw):
        with pytest.raises(InputValidationError) as exc_info:
            parse_as_of(raw)
        assert exc_info.value.field == "as_of"

    def test_rejected_by_trailing_window(self):
        with pytest.raises(InputValidationError):
            trailing_window(date(9999, 12, 1))

    def test_edges_accepted(self):
        assert trailing_window(parse_as_of("1900-01-01")).start_date == date(1899, 2, 1)
        assert trailing_window(parse_as_of("9999-11-30")).end_date == date(9999, 11, 30)
