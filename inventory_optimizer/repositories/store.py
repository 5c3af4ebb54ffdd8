"""
Tabular Store Adapter

Thin read-only wrapper around the Supabase (PostgREST) query builder. It
exposes the two primitives the analytics core consumes:

    query(table, columns, filters, order, range) -> rows
    count(table, filters) -> int

Calls are blocking; the ChunkedFetcher runs them in worker threads.

Author: TM3
Date: 2025-11-05
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, List, Optional, Sequence, Tuple

from supabase import Client

from inventory_optimizer.core.database import get_supabase

SUPPORTED_OPS = ("eq", "neq", "gt", "gte", "lt", "lte", "in", "ilike")


@dataclass(frozen=True)
class Filter:
    """One column predicate, e.g. Filter("date", "gte", date(2025, 1, 1))"""
    column: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in SUPPORTED_OPS:
            raise ValueError(f"Unsupported filter op '{self.op}', expected one of {SUPPORTED_OPS}")


# (column, descending)
Order = Tuple[str, bool]


def _to_wire(value: Any) -> Any:
    """Dates travel as ISO strings"""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple, set)):
        return [_to_wire(v) for v in value]
    return value


class TabularStore:
    """Read-only access to the tabular store"""

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    @staticmethod
    def _apply_filters(builder, filters: Sequence[Filter]):
        for f in filters:
            value = _to_wire(f.value)
            if f.op == "in":
                builder = builder.in_(f.column, value)
            else:
                builder = getattr(builder, f.op)(f.column, value)
        return builder

    def query(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: Sequence[Order] = (),
        range_: Optional[Tuple[int, int]] = None
    ) -> List[dict]:
        """
        Select rows from a table

        Args:
            table: Table or view name
            columns: PostgREST column list (e.g. "id,name")
            filters: Column predicates, combined with AND
            order: (column, descending) pairs, applied in order
            range_: Inclusive (start, end) row offsets

        Returns:
            List of row dicts
        """
        builder = self.client.table(table).select(columns)
        builder = self._apply_filters(builder, filters)
        for column, descending in order:
            builder = builder.order(column, desc=descending)
        if range_ is not None:
            builder = builder.range(range_[0], range_[1])

        response = builder.execute()
        return list(response.data or [])

    def count(self, table: str, filters: Sequence[Filter] = ()) -> int:
        """Exact row count without transferring rows"""
        builder = self.client.table(table).select("*", count="exact", head=True)
        builder = self._apply_filters(builder, filters)

        response = builder.execute()
        return int(response.count or 0)
