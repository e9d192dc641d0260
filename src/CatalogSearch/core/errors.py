"""Exception types raised or reported by the query engine."""

from __future__ import annotations


class CatalogSearchError(Exception):
    """Base class for CatalogSearch errors."""


class FetchFailure(CatalogSearchError):
    """The fetch collaborator failed for a search.

    Reported to callers through ``SearchResult.error`` and never cached, so
    the same search can be retried.

    Attributes:
        namespace: Cache namespace of the failed search.
        signature: Canonical signature of the failed search.
        cause: Original exception raised by the collaborator.
    """

    retryable = True

    def __init__(self, namespace: str, signature: str, cause: BaseException) -> None:
        super().__init__(f"Fetch failed for namespace={namespace} signature={signature}: {cause}")
        self.namespace = namespace
        self.signature = signature
        self.cause = cause


class SearchSuperseded(CatalogSearchError):
    """A newer search in the same namespace cancelled this one."""

    retryable = False

    def __init__(self, namespace: str, signature: str) -> None:
        super().__init__(f"Search superseded in namespace={namespace}: {signature}")
        self.namespace = namespace
        self.signature = signature


class CacheCapacityViolation(CatalogSearchError):
    """A namespace would hold more entries than its configured capacity."""

    def __init__(self, namespace: str, size: int, capacity: int) -> None:
        super().__init__(f"Cache namespace {namespace} holds {size} entries, capacity is {capacity}")
        self.namespace = namespace
        self.size = size
        self.capacity = capacity
