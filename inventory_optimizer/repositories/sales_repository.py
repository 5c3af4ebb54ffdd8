"""
Sales Repository - read-only access to sale lines

Rows are parsed with explicit defaults: a missing quantity or unit price
counts as 0, while a row without a usable date or product id cannot be
placed in any bucket and is dropped with a DataIntegrityWarning.

Author: TM3
Date: 2025-11-05
"""
import logging
from datetime import date
from typing import List, Optional

from inventory_optimizer.core.config import settings
from inventory_optimizer.core.exceptions import warn_data_integrity
from inventory_optimizer.domain.parsing import parse_date, parse_number
from inventory_optimizer.domain.sales import SaleRecord
from inventory_optimizer.repositories.base import BaseRepository
from inventory_optimizer.repositories.store import Filter, Order

logger = logging.getLogger(__name__)


class SalesRepository(BaseRepository):
    """Repository for SaleRecord data access"""

    COLUMNS = "product_id,customer_id,date,quantity,unit_price"
    @property
    def table(self) -> str:
        return settings.SALES_TABLE

    @property
    def order(self) -> List[Order]:
        """Date order, ending on the primary key so ties never straddle a page boundary"""
        return [("date", False), ("product_id", False), ("customer_id", False), (settings.SALES_KEY_COLUMN, False)]

    @staticmethod
    def _map_row_to_sale(row: dict) -> Optional[SaleRecord]:
        """Map a store row to a SaleRecord, or None if it cannot be used"""
        product_id = row.get("product_id")
        if product_id is None or str(product_id) == "":
            warn_data_integrity(f"sale row without product_id dropped: {row!r}")
            return None

        sale_date = parse_date(row.get("date"))
        if not sale_date.is_valid:
            warn_data_integrity(f"sale row for product {product_id} dropped: date {sale_date.reason}")
            return None

        customer_id = row.get("customer_id")
        return SaleRecord(
            product_id=str(product_id),
            customer_id=str(customer_id) if customer_id is not None else "",
            date=sale_date.value,
            quantity=parse_number(row.get("quantity")).or_default(0),
            unit_price=parse_number(row.get("unit_price")).or_default(0),
        )

    def _map_rows(self, rows: List[dict]) -> List[SaleRecord]:
        sales = [self._map_row_to_sale(row) for row in rows]
        return [s for s in sales if s is not None]

    async def find_in_window(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        product_id: Optional[str] = None,
        customer_id: Optional[str] = None
    ) -> List[SaleRecord]:
        """
        All sale lines in the inclusive [start, end] range

        Args:
            start: First day included (None = unbounded)
            end: Last day included (None = unbounded)
            product_id: Restrict to one product
            customer_id: Restrict to one customer

        Returns:
            SaleRecords ordered by date
        """
        filters = []
        if start is not None:
            filters.append(Filter("date", "gte", start))
        if end is not None:
            filters.append(Filter("date", "lte", end))
        if product_id is not None:
            filters.append(Filter("product_id", "eq", product_id))
        if customer_id is not None:
            filters.append(Filter("customer_id", "eq", customer_id))

        rows = await self._query_all(self.table, self.COLUMNS, filters, self.order)
        sales = self._map_rows(rows)
        logger.debug(f"Loaded {len(sales)} sales ({start} .. {end})")
        return sales
