"""
Profitability Service

Two gross-profit figures exist and they answer different questions:

- historical: Σ qty · (unit_price − cost in effect on the sale date).
  This is the accurate figure and the one used for rankings.
- display: (average selling price − current unit cost) · total qty.
  A "what does it look like at today's cost" figure for product pages.

They are separate functions with separate result types; one is never used
in place of the other.

Author: TM3
Date: 2025-11-07
"""
from collections import defaultdict
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List, Mapping, Optional

from inventory_optimizer.domain.analytics import TopProductEntry
from inventory_optimizer.domain.sales import SaleRecord
from inventory_optimizer.services.cost_timeline import CostTimelineIndex
from inventory_optimizer.services.time_window import TimeWindow


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class HistoricalProfit:
    """Window totals costed at the cost in effect on each sale date"""
    total_qty: float = 0.0
    total_revenue: float = 0.0
    total_cost: float = 0.0

    @property
    def gross_profit(self) -> float:
        return self.total_revenue - self.total_cost

    def to_dict(self) -> dict:
        data = asdict(self)
        data["gross_profit"] = self.gross_profit
        return data


@dataclass(frozen=True)
class DisplayProfit:
    """Window totals valued at the current unit cost"""
    total_qty: float
    total_revenue: float
    average_selling_price: float
    current_unit_cost: float
    gross_profit: float

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# Calculations
# =============================================================================

def _in_window(sales: Iterable[SaleRecord], window: Optional[TimeWindow]) -> Iterable[SaleRecord]:
    if window is None:
        return sales
    return (s for s in sales if window.contains(s.date))


def historical_profit(
    sales: Iterable[SaleRecord],
    costs: CostTimelineIndex,
    window: Optional[TimeWindow] = None
) -> HistoricalProfit:
    """
    Revenue, point-in-time cost and gross profit over a set of sales.

    Products without price history are costed at 0, so their gross profit
    equals their revenue.
    """
    qty = revenue = cost = 0.0
    for sale in _in_window(sales, window):
        qty += sale.quantity
        revenue += sale.quantity * sale.unit_price
        cost += sale.quantity * costs.cost_at(sale.product_id, sale.date)
    return HistoricalProfit(total_qty=qty, total_revenue=revenue, total_cost=cost)


def historical_profit_by_product(
    sales: Iterable[SaleRecord],
    costs: CostTimelineIndex,
    window: Optional[TimeWindow] = None
) -> Dict[str, HistoricalProfit]:
    """historical_profit grouped by product id"""
    grouped: Dict[str, List[SaleRecord]] = defaultdict(list)
    for sale in _in_window(sales, window):
        grouped[sale.product_id].append(sale)
    return {product_id: historical_profit(rows, costs) for product_id, rows in grouped.items()}


def display_profit(
    sales: Iterable[SaleRecord],
    current_unit_cost: Optional[float],
    current_unit_price: Optional[float] = None,
    window: Optional[TimeWindow] = None
) -> DisplayProfit:
    """
    Gross profit at today's cost.

    ASP is revenue / qty when something was sold; with no units sold it
    falls back to the current list price (0 if unknown), and gross profit
    is 0 because it scales with total qty.
    """
    qty = revenue = 0.0
    for sale in _in_window(sales, window):
        qty += sale.quantity
        revenue += sale.quantity * sale.unit_price

    unit_cost = current_unit_cost if current_unit_cost is not None else 0.0
    if qty != 0:
        asp = revenue / qty
    else:
        asp = current_unit_price if current_unit_price is not None else 0.0

    return DisplayProfit(
        total_qty=qty,
        total_revenue=revenue,
        average_selling_price=asp,
        current_unit_cost=unit_cost,
        gross_profit=(asp - unit_cost) * qty,
    )


# =============================================================================
# Ranking
# =============================================================================

def rank_products(
    profits: Mapping[str, HistoricalProfit],
    descending: bool = True,
    limit: Optional[int] = None
) -> List[TopProductEntry]:
    """
    Order products by historical gross profit.

    Ties are broken by product_id ascending in both directions so the
    order is deterministic.
    """
    if descending:
        ordered = sorted(profits.items(), key=lambda kv: (-kv[1].gross_profit, kv[0]))
    else:
        ordered = sorted(profits.items(), key=lambda kv: (kv[1].gross_profit, kv[0]))

    if limit is not None:
        ordered = ordered[:limit]

    return [
        TopProductEntry(
            product_id=product_id,
            qty=profit.total_qty,
            revenue=profit.total_revenue,
            gross_profit=profit.gross_profit,
        )
        for product_id, profit in ordered
    ]


def rank_top_products(profits: Mapping[str, HistoricalProfit], top: int) -> List[TopProductEntry]:
    """Top-N by historical gross profit, descending"""
    return rank_products(profits, descending=True, limit=top)
