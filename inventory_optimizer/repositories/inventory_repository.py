"""
Inventory Repository - read-only access to the current stock snapshot

Author: TM3
Date: 2025-11-05
"""
from typing import Dict, List, Optional

from inventory_optimizer.core.config import settings
from inventory_optimizer.domain.parsing import parse_date, parse_number
from inventory_optimizer.domain.product import InventorySnapshot
from inventory_optimizer.repositories.base import BaseRepository
from inventory_optimizer.repositories.store import Filter, Order


class InventoryRepository(BaseRepository):
    """Repository for InventorySnapshot data access"""

    COLUMNS = "product_id,on_hand,backorder,as_of"

    @property
    def table(self) -> str:
        return settings.INVENTORY_TABLE

    @property
    def order(self) -> List[Order]:
        return [("product_id", False), (settings.INVENTORY_KEY_COLUMN, False)]

    @staticmethod
    def _map_row_to_snapshot(row: dict) -> InventorySnapshot:
        return InventorySnapshot(
            product_id=str(row["product_id"]),
            on_hand=parse_number(row.get("on_hand")).or_default(0),
            backorder=parse_number(row.get("backorder")).or_default(0),
            as_of=parse_date(row.get("as_of")).or_default(None),
        )

    async def find_all(self) -> Dict[str, InventorySnapshot]:
        """
        Current snapshot for every product, keyed by product id.

        Duplicate rows for one product are summed, matching how uploads
        aggregate repeated product names.
        """
        rows = await self._query_all(self.table, self.COLUMNS, [], self.order)

        snapshots: Dict[str, InventorySnapshot] = {}
        for row in rows:
            if row.get("product_id") is None:
                continue
            snapshot = self._map_row_to_snapshot(row)
            previous = snapshots.get(snapshot.product_id)
            if previous is not None:
                snapshot = InventorySnapshot(
                    product_id=snapshot.product_id,
                    on_hand=previous.on_hand + snapshot.on_hand,
                    backorder=previous.backorder + snapshot.backorder,
                    as_of=max(filter(None, [previous.as_of, snapshot.as_of]), default=None),
                )
            snapshots[snapshot.product_id] = snapshot
        return snapshots

    async def find_by_product(self, product_id: str) -> Optional[InventorySnapshot]:
        rows = await self._query_all(
            self.table, self.COLUMNS, [Filter("product_id", "eq", product_id)], self.order
        )
        if not rows:
            return None

        on_hand = sum(parse_number(r.get("on_hand")).or_default(0) for r in rows)
        backorder = sum(parse_number(r.get("backorder")).or_default(0) for r in rows)
        as_of = max(filter(None, (parse_date(r.get("as_of")).or_default(None) for r in rows)), default=None)
        return InventorySnapshot(product_id=str(product_id), on_hand=on_hand, backorder=backorder, as_of=as_of)
