"""Cache domain configuration: per-namespace TTL and capacity."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from CatalogSearch.cache.engine import DEFAULT_CAPACITY, DEFAULT_TTL_SECONDS, NamespacePolicy
from CatalogSearch.config.common import (
    expect_float,
    expect_int,
    expect_mapping,
    get_optional_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Store validated cache policies."""

    default: NamespacePolicy
    namespaces: Mapping[str, NamespacePolicy]


def load_cache(raw: Mapping[str, Any]) -> CacheConfig:
    """Load cache domain config from raw mapping.

    Namespaces inherit any key they omit from ``cache.default``.

    Raises:
        TypeError: If config types are invalid.
    """
    section = get_section(raw, "cache", required=False)
    default = _parse_policy(
        get_section(section, "default", required=False),
        "cache.default",
        NamespacePolicy(ttl=DEFAULT_TTL_SECONDS, capacity=DEFAULT_CAPACITY),
    )
    namespaces_obj = expect_mapping(get_optional_value(section, "namespaces", {}) or {}, "cache.namespaces")
    namespaces = {
        name: _parse_policy(expect_mapping(value or {}, f"cache.namespaces.{name}"), f"cache.namespaces.{name}", default)
        for name, value in namespaces_obj.items()
    }
    return CacheConfig(default=default, namespaces=MappingProxyType(namespaces))


def check_cache(config: CacheConfig) -> None:
    """Validate cache domain constraints.

    Raises:
        ValueError: If a TTL or capacity is not positive, or a namespace is blank.
    """
    _check_policy(config.default, "cache.default")
    for name, policy in config.namespaces.items():
        if not name.strip():
            raise ValueError("cache.namespaces names must not be empty")
        _check_policy(policy, f"cache.namespaces.{name}")


def _parse_policy(section: Mapping[str, Any], config_key: str, fallback: NamespacePolicy) -> NamespacePolicy:
    return NamespacePolicy(
        ttl=expect_float(get_optional_value(section, "ttl", fallback.ttl), f"{config_key}.ttl"),
        capacity=expect_int(get_optional_value(section, "capacity", fallback.capacity), f"{config_key}.capacity"),
    )


def _check_policy(policy: NamespacePolicy, config_key: str) -> None:
    if policy.ttl <= 0:
        raise ValueError(f"{config_key}.ttl must be positive")
    if policy.capacity <= 0:
        raise ValueError(f"{config_key}.capacity must be positive")
