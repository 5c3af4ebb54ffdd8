"""
Unit tests for point-in-time cost resolution

Author: TM3
Date: 2025-11-11
"""
from datetime import date

from inventory_optimizer.domain.product import PriceRecord
from inventory_optimizer.services.cost_timeline import CostTimelineIndex, build_cost_timelines


def _price(product_id, day, cost, price=None):
    return PriceRecord(product_id=product_id, effective_date=day, unit_cost=cost, unit_price=price)


class TestCostTimeline:
    """cost_at picks the latest entry effective on or before the date"""

    def test_lookup_between_before_and_after_entries(self):
        index = CostTimelineIndex([
            _price("P1", date(2024, 1, 1), 5),
            _price("P1", date(2024, 6, 1), 7),
        ])

        assert index.cost_at("P1", date(2024, 3, 15)) == 5
        assert index.cost_at("P1", date(2023, 12, 1)) == 0
        assert index.cost_at("P1", date(2024, 7, 1)) == 7

    def test_effective_date_itself_uses_new_cost(self):
        index = CostTimelineIndex([_price("P1", date(2024, 1, 1), 5), _price("P1", date(2024, 6, 1), 7)])

        assert index.cost_at("P1", date(2024, 6, 1)) == 7
        assert index.cost_at("P1", date(2024, 5, 31)) == 5

    def test_insertion_order_does_not_matter(self):
        records = [
            _price("P1", date(2024, 6, 1), 7),
            _price("P1", date(2023, 1, 1), 3),
            _price("P1", date(2024, 1, 1), 5),
        ]
        forward = CostTimelineIndex(records)
        backward = CostTimelineIndex(list(reversed(records)))

        for day in (date(2023, 6, 1), date(2024, 2, 1), date(2025, 1, 1)):
            assert forward.cost_at("P1", day) == backward.cost_at("P1", day)

    def test_unknown_product_costs_zero(self):
        assert CostTimelineIndex([]).cost_at("missing", date(2024, 1, 1)) == 0

    def test_null_cost_counts_as_zero_from_its_date(self):
        index = CostTimelineIndex([
            _price("P1", date(2024, 1, 1), 5),
            _price("P1", date(2024, 6, 1), None),
        ])

        assert index.cost_at("P1", date(2024, 7, 1)) == 0

    def test_entries_sorted_per_product(self):
        timelines = build_cost_timelines([
            _price("P2", date(2024, 3, 1), 2),
            _price("P1", date(2024, 6, 1), 7),
            _price("P1", date(2024, 1, 1), 5),
        ])

        assert timelines["P1"].entries == [(date(2024, 1, 1), 5), (date(2024, 6, 1), 7)]
        assert len(timelines["P2"]) == 1

    def test_current_price_point(self):
        index = CostTimelineIndex([
            _price("P1", date(2024, 1, 1), 5, 10),
            _price("P1", date(2025, 1, 1), 7, 12),
        ])

        assert index.current("P1", date(2024, 12, 31)).unit_price == 10
        assert index.current("P1").unit_cost == 7
        assert index.current("P1", date(2023, 1, 1)) is None
        assert index.current("P9") is None
