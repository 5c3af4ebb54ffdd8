"""
Demand Forecasting Service

Builds calendar-aligned, zero-filled monthly demand series and derives the
weighted 12-month average, its dispersion and the weighted MOQ (minimum
order quantity covering the next few months of demand).

Monthly quantities live in one pre-allocated numpy matrix per request
(rows = products, columns = month offsets 0..11), so aggregation never grows
per-product structures and stats are computed for all products at once.

Author: TM3
Date: 2025-11-06
"""
import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from inventory_optimizer.domain.analytics import MonthlyBucket
from inventory_optimizer.domain.sales import SaleRecord
from inventory_optimizer.services.time_window import WINDOW_MONTHS, TimeWindow

logger = logging.getLogger(__name__)


# =============================================================================
# Forecast constants
# =============================================================================

# Oldest month weighs 1, most recent weighs 12
WEIGHTS = np.arange(1, WINDOW_MONTHS + 1, dtype=float)
WEIGHT_SUM = float(WEIGHTS.sum())  # 78

# Months of forecast demand a reorder should cover
COVERAGE_MONTHS = 4

# Guards ceil() against float noise such as 7.000000000001
_CEIL_PRECISION = 9


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class DemandStats:
    """Weighted demand statistics of a 12-month series"""
    weighted_avg: float
    sigma: float
    weighted_moq: int

    def to_dict(self) -> dict:
        return {
            "weighted_avg_12m": self.weighted_avg,
            "sigma_12m": self.sigma,
            "weighted_moq": self.weighted_moq,
        }


# =============================================================================
# Pure calculations
# =============================================================================

def _as_series(quantities: Sequence[float]) -> np.ndarray:
    series = np.asarray(quantities, dtype=float)
    if series.shape != (WINDOW_MONTHS,):
        raise ValueError(f"expected {WINDOW_MONTHS} monthly quantities, got shape {series.shape}")
    return series


def weighted_average(quantities: Sequence[float]) -> float:
    """Σ qty_i · weight_i / 78 over a 12-month series, oldest first"""
    series = _as_series(quantities)
    return float(series @ WEIGHTS) / WEIGHT_SUM


def weighted_moq(weighted_avg: float, coverage_months: int = COVERAGE_MONTHS) -> int:
    """
    ceil(weighted_avg × coverage_months), never negative.

    Net returns can make a month negative; an order quantity cannot be.
    """
    raw = round(weighted_avg * coverage_months, _CEIL_PRECISION)
    return max(0, int(math.ceil(raw)))


def compute_demand_stats(quantities: Sequence[float]) -> DemandStats:
    """Weighted average, population sigma and weighted MOQ of one series"""
    series = _as_series(quantities)
    avg = float(series @ WEIGHTS) / WEIGHT_SUM
    return DemandStats(
        weighted_avg=avg,
        sigma=float(series.std()),  # ddof=0: population standard deviation
        weighted_moq=weighted_moq(avg),
    )


def seasonality(buckets: Iterable[MonthlyBucket]) -> List[dict]:
    """
    Average quantity per calendar month number (1..12).

    Calendar months with no bucket report 0.
    """
    totals = np.zeros(12)
    counts = np.zeros(12)
    for bucket in buckets:
        totals[bucket.month_key.month - 1] += bucket.quantity
        counts[bucket.month_key.month - 1] += 1

    averages = np.divide(totals, counts, out=np.zeros(12), where=counts > 0)
    return [{"month_num": i + 1, "avg_qty": float(averages[i])} for i in range(12)]


# =============================================================================
# Monthly demand matrix
# =============================================================================

class MonthlyDemandMatrix:
    """
    Zero-filled monthly quantities for a fixed set of products over one window.

    Rows are allocated up front from the product id list; sales for products
    outside it, or dated outside the window, are ignored.
    """

    def __init__(self, window: TimeWindow, product_ids: Iterable[str]):
        self.window = window
        self._rows: Dict[str, int] = {}
        for product_id in product_ids:
            if product_id not in self._rows:
                self._rows[product_id] = len(self._rows)

        self.quantities = np.zeros((len(self._rows), WINDOW_MONTHS), dtype=float)
        self._last_sale: List[Optional[date]] = [None] * len(self._rows)

    @classmethod
    def from_sales(
        cls,
        window: TimeWindow,
        sales: Sequence[SaleRecord],
        product_ids: Optional[Iterable[str]] = None
    ) -> "MonthlyDemandMatrix":
        """Allocate rows for ``product_ids`` (default: every product sold) and aggregate"""
        ids = list(product_ids) if product_ids is not None else [s.product_id for s in sales]
        matrix = cls(window, ids)
        placed = sum(1 for sale in sales if matrix.add(sale))
        logger.debug(f"Bucketed {placed}/{len(sales)} sales into {len(matrix)} product series")
        return matrix

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._rows

    @property
    def product_ids(self) -> List[str]:
        return list(self._rows)

    def add(self, sale: SaleRecord) -> bool:
        """Add one sale to its month bucket; False if it does not belong here"""
        row = self._rows.get(sale.product_id)
        if row is None:
            return False
        offset = self.window.month_index(sale.date)
        if offset is None:
            return False

        self.quantities[row, offset] += sale.quantity
        last = self._last_sale[row]
        if last is None or sale.date > last:
            self._last_sale[row] = sale.date
        return True

    def series(self, product_id: str) -> np.ndarray:
        """12 quantities oldest first; zeros for products without a row"""
        row = self._rows.get(product_id)
        if row is None:
            return np.zeros(WINDOW_MONTHS)
        return self.quantities[row].copy()

    def buckets(self, product_id: str) -> List[MonthlyBucket]:
        series = self.series(product_id)
        return [
            MonthlyBucket(product_id=product_id, month_key=key, quantity=float(qty))
            for key, qty in zip(self.window.month_keys, series)
        ]

    def last_sale_date(self, product_id: str) -> Optional[date]:
        row = self._rows.get(product_id)
        return self._last_sale[row] if row is not None else None

    def stats(self, product_id: str) -> DemandStats:
        return compute_demand_stats(self.series(product_id))

    def all_stats(self) -> Dict[str, DemandStats]:
        """Stats for every row, vectorized over the whole matrix"""
        if not self._rows:
            return {}

        averages = (self.quantities @ WEIGHTS) / WEIGHT_SUM
        sigmas = self.quantities.std(axis=1)
        return {
            product_id: DemandStats(
                weighted_avg=float(averages[row]),
                sigma=float(sigmas[row]),
                weighted_moq=weighted_moq(float(averages[row])),
            )
            for product_id, row in self._rows.items()
        }

    def monthly_totals(self) -> List[float]:
        """Quantity per month summed over all products"""
        return [float(q) for q in self.quantities.sum(axis=0)] if self._rows else [0.0] * WINDOW_MONTHS
