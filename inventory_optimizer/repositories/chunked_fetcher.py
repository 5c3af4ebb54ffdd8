"""
Chunked Fetcher / Retrier

Every read against the tabular store goes through this module. It:
- splits large key sets into bounded batches (the store rejects huge IN lists)
- pages through long result sets with range requests
- retries transient failures with exponential backoff
- never returns partial results: if one batch or page exhausts its retry
  budget the whole retrieval fails with a RetrievalError naming it

Store clients are blocking, so each call is offloaded to a worker thread and
bounded by a per-call timeout.

Author: TM3
Date: 2025-11-05
"""
import asyncio
import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple, Type, TypeVar

import httpx
from postgrest.exceptions import APIError

from inventory_optimizer.core.config import settings
from inventory_optimizer.core.exceptions import RetrievalError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_BATCH_SIZE = 1000

# Failures worth retrying: network hiccups, timeouts and PostgREST errors
# (the store surfaces dropped connections and statement timeouts as APIError)
TRANSIENT_ERRORS: Tuple[Type[BaseException], ...] = (
    httpx.HTTPError,
    APIError,
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
)


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    """Split ``items`` into consecutive lists of at most ``size`` elements"""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class ChunkedFetcher:
    """
    Bounded, retrying retrieval of large key sets and long tables.

    One instance holds only configuration, so it can be shared freely;
    all per-retrieval state lives in local variables.
    """

    def __init__(
        self,
        batch_size: Optional[int] = None,
        page_size: Optional[int] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        inter_batch_delay: Optional[float] = None,
        concurrency: Optional[int] = None,
        call_timeout: Optional[float] = None,
        transient_errors: Tuple[Type[BaseException], ...] = TRANSIENT_ERRORS
    ):
        self.batch_size = batch_size if batch_size is not None else settings.FETCH_BATCH_SIZE
        self.page_size = page_size if page_size is not None else settings.FETCH_PAGE_SIZE
        self.max_retries = max_retries if max_retries is not None else settings.FETCH_MAX_RETRIES
        self.retry_delay = retry_delay if retry_delay is not None else settings.FETCH_RETRY_DELAY_SECONDS
        self.inter_batch_delay = (
            inter_batch_delay if inter_batch_delay is not None else settings.FETCH_INTER_BATCH_DELAY_SECONDS
        )
        self.concurrency = concurrency if concurrency is not None else settings.FETCH_CONCURRENCY
        self.call_timeout = call_timeout if call_timeout is not None else settings.FETCH_CALL_TIMEOUT_SECONDS
        self.transient_errors = transient_errors

        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}, got {self.batch_size}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {self.max_retries}")
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")

    # =========================================================================
    # Retry core
    # =========================================================================

    async def _call_with_retry(self, operation: str, batch: Optional[str], fn: Callable[..., T], *args: Any) -> T:
        """Run a blocking store call in a thread, retrying transient failures"""
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                logger.debug(f"{operation} {batch or ''} attempt {attempt}/{self.max_retries}")
                return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=self.call_timeout)

            except self.transient_errors as e:
                last_error = e
                logger.warning(
                    f"Transient error in {operation} {batch or ''} "
                    f"(attempt {attempt}/{self.max_retries}): {e!r}"
                )
                if attempt < self.max_retries:
                    delay = self.retry_delay * (2 ** (attempt - 1))
                    logger.info(f"Retrying in {delay:.2f} seconds...")
                    await asyncio.sleep(delay)

            except Exception as e:
                # Not transient: fail immediately
                logger.error(f"Unexpected error in {operation} {batch or ''}: {e!r}")
                raise RetrievalError(operation, batch, attempt, e) from e

        logger.error(f"All {self.max_retries} attempts failed for {operation} {batch or ''}")
        raise RetrievalError(operation, batch, self.max_retries, last_error) from last_error

    async def run(self, operation: str, fn: Callable[..., T], *args: Any) -> T:
        """Single store call (counts, single-row lookups) under the retry policy"""
        return await self._call_with_retry(operation, None, fn, *args)

    # =========================================================================
    # Key batches
    # =========================================================================

    async def fetch_batches(
        self,
        operation: str,
        keys: Sequence[Any],
        fetch_batch: Callable[[List[Any]], List[dict]]
    ) -> List[dict]:
        """
        Fetch rows for an arbitrarily large key set.

        Args:
            operation: Name used in logs and errors (e.g. "products by id")
            keys: Keys to look up; split into batches of ``batch_size``
            fetch_batch: Blocking callable fetching the rows of one batch

        Returns:
            Rows of all batches concatenated in batch order

        Raises:
            RetrievalError: a batch failed past the retry budget
        """
        batches = chunked(list(keys), self.batch_size)
        if not batches:
            return []

        semaphore = asyncio.Semaphore(self.concurrency)
        total = len(batches)

        async def _fetch_one(index: int, batch: List[Any]) -> List[dict]:
            label = f"batch {index + 1}/{total} (keys {batch[0]!s}..{batch[-1]!s})"
            async with semaphore:
                rows = await self._call_with_retry(operation, label, fetch_batch, batch)
                if self.inter_batch_delay and index + 1 < total:
                    await asyncio.sleep(self.inter_batch_delay)
                return list(rows or [])

        tasks = [asyncio.ensure_future(_fetch_one(i, batch)) for i, batch in enumerate(batches)]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        rows: List[dict] = []
        for batch_rows in results:
            rows.extend(batch_rows)

        logger.debug(f"{operation}: {len(rows)} rows from {total} batch(es)")
        return rows

    # =========================================================================
    # Range pagination
    # =========================================================================

    async def fetch_pages(
        self,
        operation: str,
        fetch_page: Callable[[int, int], List[dict]]
    ) -> List[dict]:
        """
        Page through a result set with inclusive [start, end] row ranges.

        Stops at the first short page. Each page is retried independently,
        and a page that exhausts its retries fails the whole retrieval.
        """
        rows: List[dict] = []
        start = 0
        page_number = 1

        while True:
            end = start + self.page_size - 1
            label = f"page {page_number} (rows {start}-{end})"
            page = list(await self._call_with_retry(operation, label, fetch_page, start, end) or [])
            rows.extend(page)

            if len(page) < self.page_size:
                break

            start += self.page_size
            page_number += 1
            if self.inter_batch_delay:
                await asyncio.sleep(self.inter_batch_delay)

        logger.debug(f"{operation}: {len(rows)} rows from {page_number} page(s)")
        return rows
