"""Query facade: compiles raw queries and serves them from cache or fetch."""

from __future__ import annotations

import asyncio
import functools
import threading
from typing import Any, Awaitable, Callable, Protocol, Sequence

from CatalogSearch.cache.engine import CacheEngine
from CatalogSearch.core.errors import FetchFailure, SearchSuperseded
from CatalogSearch.core.models import CatalogItem, SearchResult
from CatalogSearch.core.query import FilterPredicateSet
from CatalogSearch.dsl import CompiledQuery, QueryCompiler
from CatalogSearch.utils.log import log

Fetcher = Callable[[FilterPredicateSet, str], Awaitable[Any]]


class CatalogSource(Protocol):
    """Protocol for a synchronous catalog data source."""

    name: str

    def fetch(
        self,
        predicates: FilterPredicateSet,
        *,
        namespace: str,
        cancelled: threading.Event | None = None,
    ) -> Sequence[CatalogItem]:
        """Return the items matching ``predicates``.

        ``cancelled`` is set once the awaiting search is superseded; sources
        that retry should stop at their next attempt.
        """
        raise NotImplementedError

    def close(self) -> None:
        """Close resources held by source."""
        raise NotImplementedError


def as_fetcher(source: CatalogSource) -> Fetcher:
    """Adapt a blocking source to the async fetch contract.

    The source runs in a worker thread. Cancelling the awaiting task drops
    its result and sets the cancel event passed to the source, but the thread
    itself finishes on its own.
    """

    async def fetch(predicates: FilterPredicateSet, namespace: str) -> Sequence[CatalogItem]:
        cancelled = threading.Event()
        try:
            return await asyncio.to_thread(source.fetch, predicates, namespace=namespace, cancelled=cancelled)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    return fetch


class QueryFacade:
    """Serve raw catalog queries from cache, fetching on a miss.

    Guarantees, per namespace:

    - concurrent searches with the same signature share one fetch;
    - a search with a different signature cancels outstanding fetches of
      older ones, whose callers receive a ``SearchSuperseded`` error;
    - cancelled fetches never write to the cache, and neither do fetches
      that started before an invalidation of their namespace or query;
    - fetch failures are returned as ``FetchFailure`` and never cached.

    Must be used from a single event loop.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        cache: CacheEngine,
        compiler: QueryCompiler | None = None,
        *,
        source: CatalogSource | None = None,
    ) -> None:
        """Initialize the facade.

        Args:
            fetcher: Async fetch collaborator.
            cache: Cache engine owned by this facade.
            compiler: Query compiler; a default-vocabulary one if omitted.
            source: Source behind ``fetcher``, closed by ``aclose``.
        """
        self.fetcher = fetcher
        self.cache = cache
        self.compiler = compiler or QueryCompiler()
        self.source = source
        self._inflight: dict[tuple[str, str], asyncio.Task] = {}
        self._latest: dict[str, str] = {}

    def compile(self, raw: str) -> CompiledQuery:
        return self.compiler.compile(raw)

    async def search(self, raw: str, namespace: str, *, force: bool = False) -> SearchResult:
        """Run a raw query.

        Args:
            raw: Raw query string.
            namespace: Cache namespace of the calling view.
            force: Skip the cache lookup and fetch again.

        Returns:
            Search result; failures are reported in ``error``, not raised.
        """
        compiled = self.compile(raw)
        signature = compiled.signature
        refetch = functools.partial(self.search, raw, namespace, force=True)

        self._latest[namespace] = signature
        self._cancel_superseded(namespace, signature)

        if not force:
            cached = self.cache.lookup(signature, namespace)
            if cached.hit:
                log.debug("Cache hit: namespace=%s signature=%s", namespace, signature)
                return SearchResult(
                    data=cached.payload,
                    refetch=refetch,
                    signature=signature,
                    namespace=namespace,
                    from_cache=True,
                )

        key = (namespace, signature)
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(
                self._fetch_and_store(compiled.predicates, namespace, signature),
                name=f"catalog-fetch:{namespace}:{signature}",
            )
            self._inflight[key] = task
            task.add_done_callback(functools.partial(self._forget, key))
        else:
            log.debug("Joining in-flight fetch: namespace=%s signature=%s", namespace, signature)

        try:
            data = await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            return SearchResult(
                error=SearchSuperseded(namespace, signature),
                refetch=refetch,
                signature=signature,
                namespace=namespace,
            )
        except FetchFailure as failure:
            return SearchResult(error=failure, refetch=refetch, signature=signature, namespace=namespace)

        return SearchResult(data=data, refetch=refetch, signature=signature, namespace=namespace)

    def peek(self, raw: str, namespace: str) -> SearchResult:
        """Return a snapshot without starting a fetch.

        ``is_loading`` is True while a fetch for the query is in flight;
        otherwise ``data`` holds the cached payload, if any.
        """
        compiled = self.compile(raw)
        signature = compiled.signature
        refetch = functools.partial(self.search, raw, namespace, force=True)
        task = self._inflight.get((namespace, signature))
        if task is not None and not task.done():
            return SearchResult(is_loading=True, refetch=refetch, signature=signature, namespace=namespace)
        cached = self.cache.lookup(signature, namespace)
        return SearchResult(
            data=cached.payload,
            refetch=refetch,
            signature=signature,
            namespace=namespace,
            from_cache=cached.hit,
        )

    def invalidate(self, namespace: str, raw: str | None = None) -> int:
        """Mutation hook: drop cached results of a namespace or of one query.

        Returns:
            Number of cache entries removed.
        """
        signature = self.compile(raw).signature if raw is not None else None
        return self.cache.invalidate(namespace, signature)

    def in_flight(self, namespace: str | None = None) -> int:
        return sum(1 for ns, _ in self._inflight if namespace is None or ns == namespace)

    async def aclose(self) -> None:
        """Cancel in-flight fetches and close the source."""
        tasks = list(self._inflight.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
        close_func = getattr(self.source, "close", None)
        if callable(close_func):
            try:
                close_func()
            except Exception as error:  # noqa: BLE001 - close failure must be isolated
                log.warning("Catalog source close failed: source=%s error=%s", getattr(self.source, "name", "unknown"), error)

    async def _fetch_and_store(self, predicates: FilterPredicateSet, namespace: str, signature: str) -> Any:
        generation = self.cache.generation(namespace)
        try:
            payload = await self.fetcher(predicates, namespace)
        except asyncio.CancelledError:
            log.debug("Fetch cancelled: namespace=%s signature=%s", namespace, signature)
            raise
        except Exception as error:  # noqa: BLE001 - collaborator failures are reported, not cached
            log.warning("Fetch failed: namespace=%s signature=%s error=%s", namespace, signature, error)
            raise FetchFailure(namespace, signature, error) from error

        if self._latest.get(namespace) != signature:
            log.debug("Discarding superseded fetch: namespace=%s signature=%s", namespace, signature)
            return payload

        stored = self.cache.store(signature, namespace, payload, generation=generation)
        log.info(
            "Fetch completed: namespace=%s signature=%s count=%s cached=%s",
            namespace,
            signature,
            len(payload) if hasattr(payload, "__len__") else "-",
            stored,
        )
        return payload

    def _cancel_superseded(self, namespace: str, signature: str) -> None:
        for (ns, sig), task in list(self._inflight.items()):
            if ns == namespace and sig != signature and not task.done():
                log.debug("Cancelling superseded fetch: namespace=%s signature=%s", ns, sig)
                del self._inflight[(ns, sig)]
                task.cancel()

    def _forget(self, key: tuple[str, str], task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        namespace = key[0]
        if not any(ns == namespace for ns, _ in self._inflight):
            # Only in-flight fetches read the latest signature.
            self._latest.pop(namespace, None)
        if not task.cancelled():
            # Mark the exception as retrieved when no caller awaited it.
            task.exception()
