"""Tests for the async query facade: caching, de-duplication and cancellation."""

from __future__ import annotations

import asyncio
import sys
import threading
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from CatalogSearch.cache import CacheEngine, NamespacePolicy
from CatalogSearch.core.errors import FetchFailure, SearchSuperseded
from CatalogSearch.core.models import CatalogItem
from CatalogSearch.core.query import FilterPredicateSet
from CatalogSearch.services import QueryFacade, as_fetcher
from CatalogSearch.sources.local.source import LocalCatalogSource


class _RecordingFetcher:
    """Async fetch collaborator returning the requested signature."""

    def __init__(self, *, gated: bool = False, fail: bool = False, payload: list | None = None) -> None:
        self.calls: list[tuple[str, str]] = []
        self.gate = asyncio.Event()
        if not gated:
            self.gate.set()
        self.fail = fail
        self.payload = payload

    async def __call__(self, predicates: FilterPredicateSet, namespace: str) -> list:
        self.calls.append((predicates.signature, namespace))
        await self.gate.wait()
        if self.fail:
            raise ConnectionError("backend unreachable")
        if self.payload is not None:
            return list(self.payload)
        return [predicates.signature]


async def _settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


class TestQueryFacade(unittest.IsolatedAsyncioTestCase):
    def _facade(self, fetcher) -> QueryFacade:
        cache = CacheEngine(default_policy=NamespacePolicy(ttl=60, capacity=16))
        return QueryFacade(fetcher, cache)

    async def test_miss_fetches_and_seeds_cache(self) -> None:
        fetcher = _RecordingFetcher()
        facade = self._facade(fetcher)

        first = await facade.search("tag:React level:Beginner hello world", "catalog")
        second = await facade.search("level:beginner Hello World tag:react", "catalog")

        self.assertTrue(first.ok)
        self.assertFalse(first.from_cache)
        self.assertTrue(second.from_cache)
        self.assertEqual(first.data, second.data)
        self.assertEqual(first.signature, second.signature)
        self.assertEqual(len(fetcher.calls), 1)

    async def test_concurrent_identical_searches_fetch_once(self) -> None:
        fetcher = _RecordingFetcher(gated=True)
        facade = self._facade(fetcher)

        first = asyncio.create_task(facade.search("tag:react", "catalog"))
        second = asyncio.create_task(facade.search("tag:react", "catalog"))
        await _settle()
        fetcher.gate.set()
        results = await asyncio.gather(first, second)

        self.assertEqual(len(fetcher.calls), 1)
        self.assertEqual(results[0].data, results[1].data)
        self.assertTrue(all(result.ok for result in results))

    async def test_newer_search_supersedes_older_fetch(self) -> None:
        fetcher = _RecordingFetcher(gated=True)
        facade = self._facade(fetcher)

        older = asyncio.create_task(facade.search("tag:react", "catalog"))
        await _settle()
        newer = asyncio.create_task(facade.search("tag:vue", "catalog"))
        await _settle()
        fetcher.gate.set()

        older_result = await older
        newer_result = await newer

        self.assertIsInstance(older_result.error, SearchSuperseded)
        self.assertIsNone(older_result.data)
        self.assertEqual(newer_result.data, ['tag=["vue"]'])
        self.assertFalse(facade.cache.lookup('tag=["react"]', "catalog").hit)
        self.assertTrue(facade.cache.lookup('tag=["vue"]', "catalog").hit)

    async def test_searches_in_other_namespaces_are_not_superseded(self) -> None:
        fetcher = _RecordingFetcher(gated=True)
        facade = self._facade(fetcher)

        catalog = asyncio.create_task(facade.search("tag:react", "catalog"))
        await _settle()
        listing = asyncio.create_task(facade.search("tag:vue", "listing"))
        await _settle()
        fetcher.gate.set()

        self.assertTrue((await catalog).ok)
        self.assertTrue((await listing).ok)
        self.assertEqual(len(fetcher.calls), 2)

    async def test_same_query_is_cached_per_namespace(self) -> None:
        fetcher = _RecordingFetcher()
        facade = self._facade(fetcher)

        await facade.search("tag:react", "catalog")
        result = await facade.search("tag:react", "listing")

        self.assertFalse(result.from_cache)
        self.assertEqual(fetcher.calls, [('tag=["react"]', "catalog"), ('tag=["react"]', "listing")])

    async def test_fetch_failure_is_reported_and_not_cached(self) -> None:
        fetcher = _RecordingFetcher(fail=True)
        facade = self._facade(fetcher)

        result = await facade.search("tag:react", "catalog")

        self.assertIsInstance(result.error, FetchFailure)
        self.assertTrue(result.error.retryable)
        self.assertIsInstance(result.error.cause, ConnectionError)
        self.assertIsNone(result.data)
        self.assertEqual(facade.cache.size("catalog"), 0)

        fetcher.fail = False
        retried = await result.refetch()
        self.assertTrue(retried.ok)
        self.assertEqual(retried.data, ['tag=["react"]'])
        self.assertEqual(facade.cache.size("catalog"), 1)

    async def test_empty_result_is_cached(self) -> None:
        fetcher = _RecordingFetcher(payload=[])
        facade = self._facade(fetcher)

        await facade.search("tag:nothing", "catalog")
        result = await facade.search("tag:nothing", "catalog")

        self.assertTrue(result.from_cache)
        self.assertEqual(result.data, [])
        self.assertEqual(len(fetcher.calls), 1)

    async def test_refetch_bypasses_cache(self) -> None:
        fetcher = _RecordingFetcher()
        facade = self._facade(fetcher)

        result = await facade.search("tag:react", "catalog")
        refreshed = await result.refetch()

        self.assertFalse(refreshed.from_cache)
        self.assertEqual(len(fetcher.calls), 2)

    async def test_invalidate_forces_new_fetch(self) -> None:
        fetcher = _RecordingFetcher()
        facade = self._facade(fetcher)

        await facade.search("tag:react", "catalog")
        removed = facade.invalidate("catalog", "TAG:React")
        result = await facade.search("tag:react", "catalog")

        self.assertEqual(removed, 1)
        self.assertFalse(result.from_cache)
        self.assertEqual(len(fetcher.calls), 2)

    async def test_invalidation_during_fetch_rejects_stale_store(self) -> None:
        fetcher = _RecordingFetcher(gated=True)
        facade = self._facade(fetcher)

        pending = asyncio.create_task(facade.search("tag:react", "catalog"))
        await _settle()
        facade.invalidate("catalog")
        fetcher.gate.set()
        result = await pending

        self.assertEqual(result.data, ['tag=["react"]'])
        self.assertEqual(facade.cache.size("catalog"), 0)

    async def test_invalidating_another_query_keeps_in_flight_store(self) -> None:
        fetcher = _RecordingFetcher(gated=True)
        facade = self._facade(fetcher)

        pending = asyncio.create_task(facade.search("tag:react", "catalog"))
        await _settle()
        facade.invalidate("catalog", "tag:unrelated")
        fetcher.gate.set()
        await pending

        self.assertEqual(facade.cache.size("catalog"), 1)
        self.assertTrue((await facade.search("tag:react", "catalog")).from_cache)

    async def test_latest_signature_is_dropped_when_namespace_is_idle(self) -> None:
        fetcher = _RecordingFetcher(gated=True)
        facade = self._facade(fetcher)

        pending = asyncio.create_task(facade.search("tag:react", "catalog"))
        await _settle()
        self.assertEqual(facade._latest, {"catalog": 'tag=["react"]'})

        fetcher.gate.set()
        await pending
        await _settle()
        self.assertEqual(facade._latest, {})

    async def test_peek_reports_loading_then_cached_data(self) -> None:
        fetcher = _RecordingFetcher(gated=True)
        facade = self._facade(fetcher)

        self.assertIsNone(facade.peek("tag:react", "catalog").data)

        pending = asyncio.create_task(facade.search("tag:react", "catalog"))
        await _settle()
        self.assertTrue(facade.peek("tag:react", "catalog").is_loading)

        fetcher.gate.set()
        await pending
        snapshot = facade.peek("tag:react", "catalog")
        self.assertFalse(snapshot.is_loading)
        self.assertTrue(snapshot.from_cache)
        self.assertEqual(snapshot.data, ['tag=["react"]'])

    async def test_cancelled_caller_does_not_cancel_shared_fetch(self) -> None:
        fetcher = _RecordingFetcher(gated=True)
        facade = self._facade(fetcher)

        impatient = asyncio.create_task(facade.search("tag:react", "catalog"))
        patient = asyncio.create_task(facade.search("tag:react", "catalog"))
        await _settle()
        impatient.cancel()
        await _settle()
        fetcher.gate.set()

        with self.assertRaises(asyncio.CancelledError):
            await impatient
        self.assertTrue((await patient).ok)
        self.assertEqual(len(fetcher.calls), 1)

    async def test_aclose_cancels_in_flight_fetches(self) -> None:
        fetcher = _RecordingFetcher(gated=True)
        facade = self._facade(fetcher)

        pending = asyncio.create_task(facade.search("tag:react", "catalog"))
        await _settle()
        self.assertEqual(facade.in_flight("catalog"), 1)

        await facade.aclose()
        result = await pending

        self.assertIsInstance(result.error, SearchSuperseded)
        self.assertEqual(facade.in_flight(), 0)
        self.assertEqual(facade.cache.size("catalog"), 0)

    async def test_sync_source_through_thread_adapter(self) -> None:
        source = LocalCatalogSource(
            items=(
                CatalogItem(id="1", title="React Basics", tags=("react",), level="beginner"),
                CatalogItem(id="2", title="Vue Basics", tags=("vue",), level="beginner"),
            )
        )
        facade = QueryFacade(as_fetcher(source), CacheEngine(), source=source)

        result = await facade.search("level:beginner tag:vue", "catalog")

        self.assertEqual([item.id for item in result.data], ["2"])
        await facade.aclose()

    async def test_thread_adapter_signals_cancel_to_source(self) -> None:
        source = _BlockingSource()
        fetch = as_fetcher(source)

        task = asyncio.create_task(fetch(FilterPredicateSet(), "catalog"))
        self.assertTrue(await asyncio.to_thread(source.started.wait, 5))
        task.cancel()

        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertTrue(source.cancelled.is_set())


class _BlockingSource:
    """Sync source that blocks until its search is cancelled."""

    name = "blocking"

    def __init__(self) -> None:
        self.started = threading.Event()
        self.cancelled: threading.Event | None = None

    def fetch(self, predicates, *, namespace, cancelled=None) -> list:
        self.cancelled = cancelled
        self.started.set()
        cancelled.wait(5)
        return []

    def close(self) -> None:
        return


if __name__ == "__main__":
    unittest.main()
