"""
Cost Timeline Resolver

Point-in-time cost attribution: a sale must be costed with the unit cost that
was in effect on the sale date, not with today's cost. Price records arrive
unordered; they are grouped per product, sorted by effective date and
queried with binary search.

Author: TM3
Date: 2025-11-06
"""
from bisect import bisect_right
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from inventory_optimizer.domain.product import PriceRecord


@dataclass(frozen=True)
class PricePoint:
    """Cost and list price in effect from ``effective_date`` onward"""
    effective_date: date
    unit_cost: float
    unit_price: Optional[float]


class CostTimeline:
    """
    Sorted price history of one product.

    A record with a null unit_cost keeps its position with cost 0, so it
    still ends the previous price point.
    """

    def __init__(self, product_id: str, points: Iterable[PricePoint]):
        self.product_id = product_id
        # sorted() is stable: among equal dates the later input wins lookups
        self._points: Tuple[PricePoint, ...] = tuple(sorted(points, key=lambda p: p.effective_date))
        self._dates: List[date] = [p.effective_date for p in self._points]

    def __len__(self) -> int:
        return len(self._points)

    @property
    def entries(self) -> List[Tuple[date, float]]:
        """(effective_date, unit_cost) pairs, ascending"""
        return [(p.effective_date, p.unit_cost) for p in self._points]

    def price_at(self, day: date) -> Optional[PricePoint]:
        """Latest price point with effective_date <= day"""
        index = bisect_right(self._dates, day)
        if index == 0:
            return None
        return self._points[index - 1]

    def cost_at(self, day: date) -> float:
        """Unit cost in effect on ``day``; 0 when no price point applies yet"""
        point = self.price_at(day)
        return point.unit_cost if point is not None else 0.0

    @property
    def latest(self) -> Optional[PricePoint]:
        return self._points[-1] if self._points else None


def _to_point(record: PriceRecord) -> PricePoint:
    return PricePoint(
        effective_date=record.effective_date,
        unit_cost=record.unit_cost if record.unit_cost is not None else 0.0,
        unit_price=record.unit_price,
    )


def build_cost_timelines(records: Iterable[PriceRecord]) -> Dict[str, CostTimeline]:
    """Group unordered price records into one sorted timeline per product"""
    grouped: Dict[str, List[PricePoint]] = defaultdict(list)
    for record in records:
        grouped[record.product_id].append(_to_point(record))
    return {product_id: CostTimeline(product_id, points) for product_id, points in grouped.items()}


class CostTimelineIndex:
    """
    Per-request lookup of cost timelines.

    Unknown products have an empty timeline, so their cost is 0 on any date.
    """

    def __init__(self, records: Iterable[PriceRecord] = ()):
        self._timelines = build_cost_timelines(records)

    def timeline(self, product_id: str) -> CostTimeline:
        return self._timelines.get(product_id) or CostTimeline(product_id, ())

    def cost_at(self, product_id: str, day: date) -> float:
        timeline = self._timelines.get(product_id)
        if timeline is None:
            return 0.0
        return timeline.cost_at(day)

    def current(self, product_id: str, as_of: Optional[date] = None) -> Optional[PricePoint]:
        """
        Price point in effect on ``as_of`` (or the latest one if no date given)
        """
        timeline = self._timelines.get(product_id)
        if timeline is None:
            return None
        if as_of is None:
            return timeline.latest
        return timeline.price_at(as_of)
