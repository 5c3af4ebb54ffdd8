"""
Customer Repository - Data Access Layer for customers

Author: TM3
Date: 2025-11-05
"""
from typing import Dict, Iterable, List, Optional, Tuple

from inventory_optimizer.core.config import settings
from inventory_optimizer.domain.sales import Customer
from inventory_optimizer.repositories.base import BaseRepository
from inventory_optimizer.repositories.store import Filter


class CustomerRepository(BaseRepository):
    """Repository for Customer data access"""

    COLUMNS = "id,name"

    @property
    def table(self) -> str:
        return settings.CUSTOMERS_TABLE

    @staticmethod
    def _map_row_to_customer(row: dict) -> Customer:
        return Customer(id=str(row["id"]), name=str(row.get("name") or "").strip())

    async def count(self) -> int:
        return await self._count(self.table)

    async def find_by_id(self, customer_id: str) -> Optional[Customer]:
        rows = await self.fetcher.run(
            f"{self.table} by id",
            self.store.query, self.table, self.COLUMNS, [Filter("id", "eq", customer_id)], (), (0, 0)
        )
        if not rows:
            return None
        return self._map_row_to_customer(rows[0])

    async def find_by_ids(self, customer_ids: Iterable[str]) -> Dict[str, Customer]:
        rows = await self.bulk_lookup_by_ids(self.table, customer_ids, self.COLUMNS)
        customers = (self._map_row_to_customer(row) for row in rows)
        return {c.id: c for c in customers}

    async def find_page(
        self,
        search: Optional[str] = None,
        limit: int = 15,
        offset: int = 0
    ) -> Tuple[List[Customer], int]:
        """
        One page of customers ordered by name

        Returns:
            Tuple of (list of customers, total count)
        """
        filters = [Filter("name", "ilike", f"%{search}%")] if search else []
        total = await self._count(self.table, filters)
        rows = await self._query_page(
            self.table, self.COLUMNS, filters, [("name", False), ("id", False)], offset, offset + limit - 1
        )
        return [self._map_row_to_customer(row) for row in rows], total
