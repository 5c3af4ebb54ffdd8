"""
Pytest fixtures and configuration for Inventory Optimizer tests

Provides an in-memory tabular store that honours the same query/count
contract as the Supabase-backed TabularStore, plus a small sample dataset.

Author: TM3
Date: 2025-11-11
"""
import re
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from inventory_optimizer.repositories.chunked_fetcher import ChunkedFetcher
from inventory_optimizer.repositories.store import Filter, Order, TabularStore, _to_wire
from inventory_optimizer.services.analytics_service import AnalyticsService


def _ilike(pattern: str, value) -> bool:
    regex = "".join(
        ".*" if ch == "%" else "." if ch == "_" else re.escape(ch)
        for ch in pattern
    )
    return value is not None and re.fullmatch(regex, str(value), flags=re.IGNORECASE) is not None


def _matches(row: dict, f: Filter) -> bool:
    value = row.get(f.column)
    expected = _to_wire(f.value)
    if f.op == "in":
        return value in expected
    if f.op == "ilike":
        return _ilike(expected, value)
    if f.op == "eq":
        return value == expected
    if f.op == "neq":
        return value != expected
    if value is None:
        return False
    return {
        "gt": value > expected,
        "gte": value >= expected,
        "lt": value < expected,
        "lte": value <= expected,
    }[f.op]


class InMemoryStore(TabularStore):
    """
    Tabular store backed by lists of dicts

    Records every query so tests can assert on batching and paging.
    """

    def __init__(self, tables: Optional[Dict[str, List[dict]]] = None):
        super().__init__(client=object())
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.queries: List[Tuple[str, Tuple[Filter, ...], Optional[Tuple[int, int]]]] = []
        self.orders: List[Tuple[str, Tuple[Order, ...]]] = []

    def _select(self, table: str, filters: Sequence[Filter]) -> List[dict]:
        rows = self.tables.get(table, [])
        return [r for r in rows if all(_matches(r, f) for f in filters)]

    def query(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: Sequence[Order] = (),
        range_: Optional[Tuple[int, int]] = None
    ) -> List[dict]:
        self.queries.append((table, tuple(filters), range_))
        self.orders.append((table, tuple(order)))
        rows = self._select(table, filters)
        for column, descending in reversed(list(order)):
            rows = sorted(
                rows,
                key=lambda r: (r.get(column) is None, r.get(column) if r.get(column) is not None else ""),
                reverse=descending,
            )
        if range_ is not None:
            rows = rows[range_[0]:range_[1] + 1]
        if columns != "*":
            wanted = [c.strip() for c in columns.split(",")]
            rows = [{c: r.get(c) for c in wanted} for r in rows]
        return rows

    def count(self, table: str, filters: Sequence[Filter] = ()) -> int:
        return len(self._select(table, filters))


# Anchor date used by the sample dataset: trailing window is 2024-07 .. 2025-06
AS_OF = date(2025, 6, 15)


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def sample_tables():
    """
    Four products, two customers, one year of sales

    P1 Widget: cost 5 -> 7 on 2025-01-01, low stock (at risk, gap 11)
    P2 Gadget: plenty of stock
    P3 (blank name): no price history, no stock (at risk, gap 8)
    P4 Idle: never sold
    """
    return {
        "products": [
            {"id": "P1", "name": "Widget"},
            {"id": "P2", "name": "Gadget"},
            {"id": "P3", "name": ""},
            {"id": "P4", "name": "Idle"},
        ],
        "customers": [
            {"id": "C1", "name": "Acme"},
            {"id": "C2", "name": "Globex"},
        ],
        "sales": [
            {"product_id": "P1", "customer_id": "C1", "date": "2025-06-10", "quantity": 10, "unit_price": 10},
            {"product_id": "P1", "customer_id": "C2", "date": "2024-12-05", "quantity": 20, "unit_price": 10},
            {"product_id": "P2", "customer_id": "C1", "date": "2025-05-20", "quantity": 3, "unit_price": 4},
            {"product_id": "P3", "customer_id": "C2", "date": "2025-06-01", "quantity": 12, "unit_price": 5},
            {"product_id": "P1", "customer_id": "C1", "date": "2023-03-01", "quantity": 5, "unit_price": 9},
        ],
        "prices": [
            {"product_id": "P1", "effective_date": "2025-01-01", "unit_cost": 7, "unit_price": 12},
            {"product_id": "P1", "effective_date": "2024-01-01", "unit_cost": 5, "unit_price": 10},
            {"product_id": "P2", "effective_date": "2024-01-01", "unit_cost": 2, "unit_price": 4},
        ],
        "inventory_current": [
            {"product_id": "P1", "on_hand": 2, "backorder": 1, "as_of": "2025-06-14"},
            {"product_id": "P2", "on_hand": 100, "backorder": 0, "as_of": "2025-06-14"},
            {"product_id": "P4", "on_hand": 5, "backorder": 0, "as_of": "2025-06-14"},
        ],
    }


@pytest.fixture
def fast_fetcher():
    """Fetcher with no delays and small pages so paging is exercised"""
    return ChunkedFetcher(
        batch_size=2,
        page_size=2,
        max_retries=3,
        retry_delay=0,
        inter_batch_delay=0,
        concurrency=2,
        call_timeout=5,
    )


@pytest.fixture
def memory_store(sample_tables):
    return InMemoryStore(sample_tables)


@pytest.fixture
def analytics_service(memory_store, fast_fetcher):
    return AnalyticsService(store=memory_store, fetcher=fast_fetcher)
