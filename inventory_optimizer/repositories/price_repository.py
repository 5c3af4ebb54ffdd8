"""
Price Repository - read-only access to price history

Author: TM3
Date: 2025-11-05
"""
from datetime import date
from typing import Iterable, List, Optional

from inventory_optimizer.core.config import settings
from inventory_optimizer.core.exceptions import warn_data_integrity
from inventory_optimizer.domain.parsing import parse_date, parse_number
from inventory_optimizer.domain.product import PriceRecord
from inventory_optimizer.repositories.base import BaseRepository
from inventory_optimizer.repositories.store import Filter


class PriceRepository(BaseRepository):
    """Repository for PriceRecord data access"""

    COLUMNS = "product_id,effective_date,unit_cost,unit_price"

    @property
    def table(self) -> str:
        return settings.PRICES_TABLE

    @staticmethod
    def _map_row_to_price(row: dict) -> Optional[PriceRecord]:
        """
        Map a store row to a PriceRecord.

        A null unit_cost stays None here; the cost timeline decides how to
        treat it. A row without a valid effective_date cannot be ordered and
        is dropped.
        """
        effective = parse_date(row.get("effective_date"))
        if not effective.is_valid:
            warn_data_integrity(
                f"price row for product {row.get('product_id')} dropped: effective_date {effective.reason}"
            )
            return None

        return PriceRecord(
            product_id=str(row["product_id"]),
            effective_date=effective.value,
            unit_cost=parse_number(row.get("unit_cost")).or_default(None),
            unit_price=parse_number(row.get("unit_price")).or_default(None),
        )

    async def find_for_products(
        self,
        product_ids: Iterable[str],
        effective_on_or_before: Optional[date] = None
    ) -> List[PriceRecord]:
        """
        Price history of the given products, chunked by product id.

        Args:
            product_ids: Products to look up (any number)
            effective_on_or_before: Ignore price points that start after this date

        Returns:
            PriceRecords in store order (callers must not rely on it)
        """
        extra = [Filter("effective_date", "lte", effective_on_or_before)] if effective_on_or_before else []
        rows = await self.bulk_lookup_by_ids(
            self.table,
            product_ids,
            self.COLUMNS,
            id_column="product_id",
            extra_filters=extra,
            order=[("product_id", False), ("effective_date", False), (settings.PRICES_KEY_COLUMN, False)]
        )
        prices = [self._map_row_to_price(row) for row in rows if row.get("product_id") is not None]
        return [p for p in prices if p is not None]
