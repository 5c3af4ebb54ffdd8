"""
Unit tests for ChunkedFetcher

Store calls are plain callables here; no store is involved.

Author: TM3
Date: 2025-11-11
"""
import asyncio
import threading
import pytest

import httpx

from inventory_optimizer.core.exceptions import RetrievalError
from inventory_optimizer.repositories.chunked_fetcher import MAX_BATCH_SIZE, ChunkedFetcher, chunked


def _fetcher(**overrides):
    options = dict(
        batch_size=3,
        page_size=4,
        max_retries=3,
        retry_delay=0,
        inter_batch_delay=0,
        concurrency=2,
        call_timeout=5,
    )
    options.update(overrides)
    return ChunkedFetcher(**options)


class TestChunked:

    def test_last_chunk_is_short(self):
        assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]

    def test_empty(self):
        assert chunked([], 10) == []


class TestConfiguration:

    @pytest.mark.parametrize("overrides", [
        {"batch_size": 0},
        {"batch_size": MAX_BATCH_SIZE + 1},
        {"page_size": 0},
        {"max_retries": 0},
        {"concurrency": 0},
    ])
    def test_invalid_settings_rejected(self, overrides):
        with pytest.raises(ValueError):
            _fetcher(**overrides)


class TestFetchBatches:

    def test_results_in_batch_order(self):
        fetcher = _fetcher()
        keys = [f"K{i}" for i in range(10)]
        seen_batches = []

        def fetch_batch(batch):
            seen_batches.append(list(batch))
            return [{"key": k} for k in batch]

        rows = asyncio.run(fetcher.fetch_batches("lookup", keys, fetch_batch))

        assert [r["key"] for r in rows] == keys
        assert len(seen_batches) == 4
        assert all(len(b) <= 3 for b in seen_batches)

    def test_transient_failure_then_success(self):
        fetcher = _fetcher()
        calls = {"count": 0}
        lock = threading.Lock()

        def fetch_batch(batch):
            with lock:
                calls["count"] += 1
                first_call = calls["count"] == 1
            if first_call:
                raise httpx.ReadTimeout("slow")
            return [{"key": k} for k in batch]

        rows = asyncio.run(fetcher.fetch_batches("lookup", ["a", "b", "c", "d"], fetch_batch))

        assert sorted(r["key"] for r in rows) == ["a", "b", "c", "d"]
        assert calls["count"] == 3

    def test_exhausted_retries_name_batch(self):
        fetcher = _fetcher()

        def fetch_batch(batch):
            if "d" in batch:
                raise httpx.ConnectError("refused")
            return [{"key": k} for k in batch]

        with pytest.raises(RetrievalError) as exc_info:
            asyncio.run(fetcher.fetch_batches("products by id", ["a", "b", "c", "d"], fetch_batch))

        error = exc_info.value
        assert error.operation == "products by id"
        assert error.batch.startswith("batch 2/2")
        assert error.attempts == 3
        assert isinstance(error.__cause__, httpx.ConnectError)

    def test_non_transient_error_not_retried(self):
        fetcher = _fetcher()
        calls = []

        def fetch_batch(batch):
            calls.append(batch)
            raise KeyError("id")

        with pytest.raises(RetrievalError):
            asyncio.run(fetcher.fetch_batches("lookup", ["a"], fetch_batch))
        assert len(calls) == 1

    def test_timeout_is_retried(self):
        fetcher = _fetcher(call_timeout=0.05, max_retries=2)
        release = threading.Event()

        def fetch_batch(batch):
            release.wait(1)
            return []

        try:
            with pytest.raises(RetrievalError) as exc_info:
                asyncio.run(fetcher.fetch_batches("lookup", ["a"], fetch_batch))
        finally:
            release.set()
        assert exc_info.value.attempts == 2

    def test_no_keys_no_calls(self):
        def fetch_batch(batch):
            raise AssertionError("should not be called")

        assert asyncio.run(_fetcher().fetch_batches("lookup", [], fetch_batch)) == []


class TestFetchPages:

    def test_stops_at_short_page(self):
        fetcher = _fetcher(page_size=4)
        data = list(range(10))
        ranges = []

        def fetch_page(start, end):
            ranges.append((start, end))
            return [{"n": n} for n in data[start:end + 1]]

        rows = asyncio.run(fetcher.fetch_pages("scan", fetch_page))

        assert [r["n"] for r in rows] == data
        assert ranges == [(0, 3), (4, 7), (8, 11)]

    def test_exact_multiple_needs_empty_page(self):
        fetcher = _fetcher(page_size=5)
        data = list(range(10))

        rows = asyncio.run(fetcher.fetch_pages("scan", lambda s, e: [{"n": n} for n in data[s:e + 1]]))

        assert len(rows) == 10

    def test_failing_page_named(self):
        fetcher = _fetcher(page_size=2)

        def fetch_page(start, end):
            if start >= 2:
                raise httpx.RemoteProtocolError("dropped")
            return [{"n": 0}, {"n": 1}]

        with pytest.raises(RetrievalError) as exc_info:
            asyncio.run(fetcher.fetch_pages("sales scan", fetch_page))
        assert exc_info.value.batch == "page 2 (rows 2-3)"
