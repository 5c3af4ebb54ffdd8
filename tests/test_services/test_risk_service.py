"""
Unit tests for stockout risk detection and pagination

Author: TM3
Date: 2025-11-11
"""
import pytest
from datetime import date

from inventory_optimizer.core.exceptions import DataIntegrityWarning, InputValidationError
from inventory_optimizer.domain.product import Product
from inventory_optimizer.services.demand_forecasting_service import DemandStats
from inventory_optimizer.services.risk_service import (
    PLACEHOLDER_NAME,
    attach_names,
    compute_gap,
    detect_at_risk,
    paginate,
    validate_page,
)


def _stats(moq):
    return DemandStats(weighted_avg=moq / 4, sigma=0, weighted_moq=moq)


class TestGap:

    def test_covered_stock_has_no_gap(self):
        assert compute_gap(on_hand=10, weighted_moq=7) == 0

    def test_shortfall(self):
        assert compute_gap(on_hand=3, weighted_moq=7) == 4

    @pytest.mark.parametrize("on_hand,moq", [(0, 0), (5, 0), (-2, 3), (100, 99)])
    def test_never_negative(self, on_hand, moq):
        assert compute_gap(on_hand, moq) >= 0


class TestDetectAtRisk:

    def test_only_positive_gaps_sorted_desc(self):
        stats = {"A": _stats(7), "B": _stats(20), "C": _stats(3)}
        on_hand = {"A": 10, "B": 5, "C": 1}

        entries = detect_at_risk(stats, on_hand)

        assert [(e.product_id, e.gap) for e in entries] == [("B", 15), ("C", 2)]

    def test_equal_gaps_break_ties_by_product_id(self):
        stats = {"Z": _stats(5), "A": _stats(5), "M": _stats(5)}

        entries = detect_at_risk(stats, {})

        assert [e.product_id for e in entries] == ["A", "M", "Z"]

    def test_missing_inventory_means_zero_on_hand(self):
        entries = detect_at_risk({"A": _stats(4)}, {})

        assert entries[0].on_hand == 0
        assert entries[0].gap == 4

    def test_stock_without_sales_is_not_at_risk(self):
        assert detect_at_risk({}, {"A": 0, "B": 10}) == []

    def test_last_sale_date_carried(self):
        entries = detect_at_risk({"A": _stats(4)}, {}, {"A": date(2025, 6, 1)})

        assert entries[0].last_sale_date == date(2025, 6, 1)


class TestPagination:

    def test_pages_concatenate_to_full_list(self):
        stats = {f"P{i:02d}": _stats(i + 1) for i in range(23)}
        full = detect_at_risk(stats, {})

        collected = []
        page = 1
        while True:
            result = paginate(full, page, 5)
            if not result.items:
                break
            collected.extend(result.items)
            page += 1

        assert collected == full
        assert len({e.product_id for e in collected}) == 23
        assert paginate(full, 1, 5).pages == 5

    def test_page_past_end_is_empty(self):
        result = paginate([1, 2, 3], 3, 2)

        assert result.items == []
        assert result.total == 3

    def test_empty_list_has_one_page(self):
        assert paginate([], 1, 10).pages == 1

    @pytest.mark.parametrize("page,page_size", [(0, 10), (1, 0), (1, 101), ("x", 10)])
    def test_invalid_parameters(self, page, page_size):
        with pytest.raises(InputValidationError):
            validate_page(page, page_size, max_page_size=100)

    def test_valid_parameters_coerced(self):
        assert validate_page("2", "25") == (2, 25)


class TestAttachNames:

    def test_names_and_placeholders(self):
        full = detect_at_risk({"A": _stats(5), "B": _stats(4), "C": _stats(3)}, {})
        page = paginate(full, 1, 3)
        catalog = {"A": Product(id="A", name="Alpha"), "B": Product(id="B", name="  ")}

        with pytest.warns(DataIntegrityWarning):
            named = attach_names(page, catalog)

        assert [e.product_name for e in named.items] == ["Alpha", PLACEHOLDER_NAME, PLACEHOLDER_NAME]
        assert page.items[0].product_name == ""
