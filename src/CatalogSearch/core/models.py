from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence


@dataclass(frozen=True, slots=True)
class CatalogItem:
    """Internal canonical catalog item model.

    This is the unified data format that all fetch collaborators map to.

    Attributes:
        id: Source-specific unique identifier.
        title: Display title.
        description: Free-form description text.
        tags: Topic tags (e.g. "react", "python").
        level: Difficulty level (e.g. "beginner").
        language: Content language or programming language.
        updated: Last update datetime if known.
        extra: Extension point for source-specific fields.
    """

    id: str
    title: str
    description: str = ""
    tags: Sequence[str] = ()
    level: Optional[str] = None
    language: Optional[str] = None
    updated: Optional[datetime] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One cached search payload.

    Owned by the cache engine; callers only see payloads.
    """

    signature: str
    namespace: str
    payload: Any
    stored_at: float
    ttl: float

    def is_live(self, now: float) -> bool:
        return now - self.stored_at < self.ttl


@dataclass(frozen=True, slots=True)
class SearchResult:
    """Uniform result shape returned by the query facade.

    Attributes:
        data: Fetched or cached payload, ``None`` on failure or while loading.
        is_loading: True only for snapshots taken while a fetch is in flight.
        error: ``FetchFailure`` or ``SearchSuperseded`` when no data is
            available, otherwise ``None``.
        refetch: Coroutine function re-running the search past the cache.
        signature: Canonical signature of the query.
        namespace: Cache namespace of the query.
        from_cache: Whether ``data`` was served from the cache.
    """

    data: Any = None
    is_loading: bool = False
    error: Optional[Exception] = None
    refetch: Optional[Callable[[], Awaitable["SearchResult"]]] = None
    signature: str = ""
    namespace: str = ""
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.is_loading
