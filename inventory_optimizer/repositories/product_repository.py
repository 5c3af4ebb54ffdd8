"""
Product Repository - Data Access Layer for the product catalog

Author: TM3
Date: 2025-10-17
Updated: 2025-11-05 (read through ChunkedFetcher, bulk name lookup)
"""
from typing import Dict, Iterable, List, Optional, Tuple

from inventory_optimizer.core.config import settings
from inventory_optimizer.domain.product import Product
from inventory_optimizer.repositories.base import BaseRepository
from inventory_optimizer.repositories.store import Filter


class ProductRepository(BaseRepository):
    """
    Repository for Product data access

    Returns Product domain models, not raw dictionaries.
    """

    COLUMNS = "id,name"

    @property
    def table(self) -> str:
        return settings.PRODUCTS_TABLE

    @staticmethod
    def _map_row_to_product(row: dict) -> Product:
        """Map a store row to a Product; a null name becomes an empty string"""
        return Product(id=str(row["id"]), name=str(row.get("name") or "").strip())

    async def count(self) -> int:
        return await self._count(self.table)

    async def find_by_id(self, product_id: str) -> Optional[Product]:
        """
        Find product by ID

        Returns:
            Product or None if not found
        """
        rows = await self.fetcher.run(
            f"{self.table} by id",
            self.store.query, self.table, self.COLUMNS, [Filter("id", "eq", product_id)], (), (0, 0)
        )
        if not rows:
            return None
        return self._map_row_to_product(rows[0])

    async def find_by_ids(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        """Bulk lookup keyed by product id; unknown ids are simply absent"""
        rows = await self.bulk_lookup_by_ids(self.table, product_ids, self.COLUMNS)
        products = (self._map_row_to_product(row) for row in rows)
        return {p.id: p for p in products}

    async def find_all(self, search: Optional[str] = None) -> List[Product]:
        """Whole catalog ordered by name, optionally filtered by name substring"""
        filters = [Filter("name", "ilike", f"%{search}%")] if search else []
        rows = await self._query_all(self.table, self.COLUMNS, filters, [("name", False), ("id", False)])
        return [self._map_row_to_product(row) for row in rows]

    async def find_page(
        self,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Product], int]:
        """
        One page of the catalog ordered by name

        Returns:
            Tuple of (list of products, total count)
        """
        filters = [Filter("name", "ilike", f"%{search}%")] if search else []
        total = await self._count(self.table, filters)
        rows = await self._query_page(
            self.table, self.COLUMNS, filters, [("name", False), ("id", False)], offset, offset + limit - 1
        )
        return [self._map_row_to_product(row) for row in rows], total
