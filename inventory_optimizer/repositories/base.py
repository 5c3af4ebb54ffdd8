"""
Base Repository

Shared plumbing for the read-only repositories: every store call is routed
through the ChunkedFetcher so it inherits batching, pagination and retry.

Author: TM3
Date: 2025-11-05
"""
from typing import Any, Iterable, List, Optional, Sequence

from inventory_optimizer.repositories.chunked_fetcher import ChunkedFetcher
from inventory_optimizer.repositories.store import Filter, Order, TabularStore


def unique_keys(keys: Iterable[Any]) -> List[str]:
    """Distinct, non-empty keys as strings, in first-seen order"""
    seen = set()
    result = []
    for key in keys:
        if key is None:
            continue
        text = str(key)
        if text and text not in seen:
            seen.add(text)
            result.append(text)
    return result


class BaseRepository:
    """Store + fetcher pair used by all repositories"""

    def __init__(self, store: Optional[TabularStore] = None, fetcher: Optional[ChunkedFetcher] = None):
        self.store = store or TabularStore()
        self.fetcher = fetcher or ChunkedFetcher()

    async def _query_all(
        self,
        table: str,
        columns: str,
        filters: Sequence[Filter] = (),
        order: Sequence[Order] = ()
    ) -> List[dict]:
        """All rows matching ``filters``, paged with range requests"""
        def fetch_page(start: int, end: int) -> List[dict]:
            return self.store.query(table, columns, filters, order, (start, end))

        return await self.fetcher.fetch_pages(f"{table} scan", fetch_page)

    async def _query_page(
        self,
        table: str,
        columns: str,
        filters: Sequence[Filter],
        order: Sequence[Order],
        start: int,
        end: int
    ) -> List[dict]:
        """A single range of rows"""
        return await self.fetcher.run(
            f"{table} rows {start}-{end}",
            self.store.query, table, columns, filters, order, (start, end)
        )

    async def _count(self, table: str, filters: Sequence[Filter] = ()) -> int:
        return await self.fetcher.run(f"{table} count", self.store.count, table, filters)

    async def bulk_lookup_by_ids(
        self,
        table: str,
        ids: Iterable[Any],
        columns: str = "*",
        id_column: str = "id",
        extra_filters: Sequence[Filter] = (),
        order: Optional[Sequence[Order]] = None
    ) -> List[dict]:
        """
        Fetch rows whose ``id_column`` is in ``ids``, in bounded IN-batches.

        Duplicate and empty ids are dropped before batching.
        """
        keys = unique_keys(ids)
        if not keys:
            return []
        ordering = order if order is not None else ((id_column, False),)

        # A batch could in principle exceed one page (e.g. many sales per product),
        # so each batch pages on its own.
        def fetch_batch(batch: List[str]) -> List[dict]:
            filters = [Filter(id_column, "in", batch), *extra_filters]
            rows: List[dict] = []
            start = 0
            page_size = self.fetcher.page_size
            while True:
                page = self.store.query(table, columns, filters, ordering, (start, start + page_size - 1))
                rows.extend(page)
                if len(page) < page_size:
                    return rows
                start += page_size

        return await self.fetcher.fetch_batches(f"{table} by {id_column}", keys, fetch_batch)
