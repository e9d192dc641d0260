"""Namespaced response cache with TTL expiry and LRU eviction.

Entries are keyed by ``(namespace, signature)``; each namespace has its own
policy (TTL and capacity) and its own LRU order, so unrelated query domains
sharing a field vocabulary never collide or evict each other.

Every public operation runs under one re-entrant lock and is therefore
indivisible with respect to concurrent lookups, including lookups issued from
worker threads.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Any, Callable, Mapping

from CatalogSearch.core.errors import CacheCapacityViolation
from CatalogSearch.core.models import CacheEntry
from CatalogSearch.utils.log import log

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_CAPACITY = 128


@dataclass(frozen=True, slots=True)
class NamespacePolicy:
    """Cache policy of one namespace.

    Attributes:
        ttl: Entry lifetime in seconds.
        capacity: Maximum number of entries held by the namespace.
    """

    ttl: float = DEFAULT_TTL_SECONDS
    capacity: int = DEFAULT_CAPACITY


@dataclass(frozen=True, slots=True)
class CacheLookup:
    """Result of ``CacheEngine.lookup``."""

    hit: bool
    payload: Any = None


MISS = CacheLookup(hit=False)


@dataclass(slots=True)
class CacheStats:
    hits: int = 0
    misses: int = 0
    stores: int = 0
    rejected: int = 0
    evictions: int = 0
    expirations: int = 0
    invalidations: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0


class CacheEngine:
    """In-process cache for search payloads.

    The engine is owned by the service that created it (see
    ``create_query_facade``); there is no module-level instance.
    """

    def __init__(
        self,
        policies: Mapping[str, NamespacePolicy] | None = None,
        *,
        default_policy: NamespacePolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the engine.

        Args:
            policies: Per-namespace policies.
            default_policy: Policy for namespaces missing from ``policies``.
            clock: Monotonic time source in seconds; injectable for tests.
        """
        self._policies = dict(policies or {})
        self._default_policy = default_policy or NamespacePolicy()
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, OrderedDict[str, CacheEntry]] = {}
        # Invalidation counter, plus its value at the last clear, at the last
        # invalidation of each namespace and at that of each single entry.
        self._counter = 0
        self._floor = 0
        self._namespace_marks: dict[str, int] = {}
        self._entry_marks: dict[str, dict[str, int]] = {}
        self._stats = CacheStats()

    def policy(self, namespace: str) -> NamespacePolicy:
        return self._policies.get(namespace, self._default_policy)

    def lookup(self, signature: str, namespace: str) -> CacheLookup:
        """Return the live entry for ``signature`` in ``namespace``.

        An expired entry counts as a miss and is removed on the spot. A hit
        marks the entry as most recently used.
        """
        _require_namespace(namespace)
        with self._lock:
            bucket = self._entries.get(namespace)
            entry = bucket.get(signature) if bucket else None
            if entry is None:
                self._stats.misses += 1
                return MISS
            if not entry.is_live(self._clock()):
                del bucket[signature]
                self._stats.expirations += 1
                self._stats.misses += 1
                log.debug("Cache expired: namespace=%s signature=%s", namespace, signature)
                return MISS
            bucket.move_to_end(signature)
            self._stats.hits += 1
            return CacheLookup(hit=True, payload=entry.payload)

    def store(
        self,
        signature: str,
        namespace: str,
        payload: Any,
        ttl: float | None = None,
        *,
        generation: int | None = None,
    ) -> bool:
        """Insert or overwrite an entry.

        Expired entries of the namespace are swept first; if the namespace is
        still full, least recently used entries are evicted before the insert.

        Args:
            signature: Canonical query signature.
            namespace: Cache namespace.
            payload: Value to cache.
            ttl: Lifetime in seconds; defaults to the namespace policy.
            generation: Value of ``generation()`` taken before the payload was
                produced. If the namespace or this entry was invalidated
                since, the store is rejected.

        Returns:
            True if the payload was stored.

        Raises:
            ValueError: If ``ttl`` is not positive.
            CacheCapacityViolation: If the insert would exceed capacity.
        """
        _require_namespace(namespace)
        policy = self.policy(namespace)
        lifetime = policy.ttl if ttl is None else float(ttl)
        if lifetime <= 0:
            raise ValueError(f"Cache ttl must be positive: {lifetime}")

        with self._lock:
            if generation is not None and generation < self._invalidated_at(namespace, signature):
                self._stats.rejected += 1
                log.debug("Cache store rejected after invalidation: namespace=%s signature=%s", namespace, signature)
                return False

            now = self._clock()
            bucket = self._entries.setdefault(namespace, OrderedDict())
            if signature not in bucket:
                self._sweep_bucket(namespace, bucket, now)
                while bucket and len(bucket) >= policy.capacity:
                    evicted, _ = bucket.popitem(last=False)
                    self._stats.evictions += 1
                    log.debug("Cache evicted: namespace=%s signature=%s", namespace, evicted)
                if len(bucket) >= policy.capacity:
                    raise CacheCapacityViolation(namespace, len(bucket) + 1, policy.capacity)

            bucket[signature] = CacheEntry(
                signature=signature,
                namespace=namespace,
                payload=payload,
                stored_at=now,
                ttl=lifetime,
            )
            bucket.move_to_end(signature)
            self._stats.stores += 1
            return True

    def invalidate(self, namespace: str, signature: str | None = None) -> int:
        """Remove entries of a namespace, or a single entry.

        Payloads fetched before the invalidation are then rejected by
        ``store``, for the whole namespace or only for ``signature``.

        Returns:
            Number of entries removed.
        """
        _require_namespace(namespace)
        with self._lock:
            self._counter += 1
            bucket = self._entries.get(namespace)
            if signature is None:
                removed = len(bucket) if bucket else 0
                self._entries.pop(namespace, None)
                self._entry_marks.pop(namespace, None)
                self._namespace_marks[namespace] = self._counter
            else:
                removed = 1 if bucket and bucket.pop(signature, None) is not None else 0
                self._entry_marks.setdefault(namespace, {})[signature] = self._counter
            self._stats.invalidations += 1
        log.debug("Cache invalidated: namespace=%s signature=%s removed=%d", namespace, signature or "*", removed)
        return removed

    def generation(self, namespace: str) -> int:
        """Return the value to pass as ``store(..., generation=)``."""
        del namespace
        with self._lock:
            return self._counter

    def sweep(self, namespace: str | None = None) -> int:
        """Remove expired entries; returns how many were removed."""
        with self._lock:
            now = self._clock()
            names = [namespace] if namespace is not None else list(self._entries)
            return sum(self._sweep_bucket(name, self._entries.get(name), now) for name in names)

    def size(self, namespace: str) -> int:
        with self._lock:
            return len(self._entries.get(namespace) or ())

    def namespaces(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(sorted(name for name, bucket in self._entries.items() if bucket))

    def stats(self) -> CacheStats:
        with self._lock:
            return replace(self._stats)

    def clear(self) -> None:
        """Drop every entry in every namespace along with invalidation marks."""
        with self._lock:
            self._counter += 1
            self._floor = self._counter
            self._entries.clear()
            self._namespace_marks.clear()
            self._entry_marks.clear()
            self._stats.invalidations += 1
        log.debug("Cache cleared")

    def _invalidated_at(self, namespace: str, signature: str) -> int:
        return max(
            self._floor,
            self._namespace_marks.get(namespace, 0),
            self._entry_marks.get(namespace, {}).get(signature, 0),
        )

    def _sweep_bucket(self, namespace: str, bucket: OrderedDict[str, CacheEntry] | None, now: float) -> int:
        if not bucket:
            return 0
        expired = [sig for sig, entry in bucket.items() if not entry.is_live(now)]
        for sig in expired:
            del bucket[sig]
        if expired:
            self._stats.expirations += len(expired)
            log.debug("Cache swept: namespace=%s expired=%d", namespace, len(expired))
        return len(expired)


def _require_namespace(namespace: str) -> None:
    if not isinstance(namespace, str) or not namespace.strip():
        raise ValueError("Cache namespace must be a non-empty string")
