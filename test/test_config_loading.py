"""Tests for YAML config loading, defaults merge and validation."""

import sys
import tempfile
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from CatalogSearch.cache import NamespacePolicy
from CatalogSearch.config import load_config, load_config_with_defaults, parse_config_dict
from CatalogSearch.core.query import CONTAINS, DEFAULT_FIELDS, EQUALS
from CatalogSearch.services import create_query_facade


def _raw(**overrides) -> dict:
    raw = {
        "log": {"level": "info"},
        "source": {"kind": "local", "path": "config/catalog.yml"},
    }
    raw.update(overrides)
    return raw


class TestConfigLoading(unittest.TestCase):
    def test_default_file(self) -> None:
        cfg = load_config(REPO_ROOT / "config" / "default.yml")

        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertEqual(dict(cfg.query.fields), dict(DEFAULT_FIELDS))
        self.assertEqual(cfg.cache.namespaces["listing"], NamespacePolicy(ttl=60.0, capacity=32))
        self.assertEqual(cfg.source.kind, "local")

    def test_minimal_config_uses_defaults(self) -> None:
        cfg = parse_config_dict(_raw())

        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertFalse(cfg.runtime.to_file)
        self.assertEqual(cfg.query.fields["title"], CONTAINS)
        self.assertEqual(cfg.query.parse_cache_size, 256)
        self.assertEqual(cfg.cache.default, NamespacePolicy())
        self.assertEqual(dict(cfg.cache.namespaces), {})
        self.assertEqual(cfg.source.max_results, 50)

    def test_namespace_inherits_default_policy(self) -> None:
        cfg = parse_config_dict(
            _raw(cache={"default": {"ttl": 120, "capacity": 10}, "namespaces": {"listing": {"ttl": 5}}})
        )
        self.assertEqual(cfg.cache.namespaces["listing"], NamespacePolicy(ttl=5.0, capacity=10))

    def test_custom_fields_are_lowercased(self) -> None:
        cfg = parse_config_dict(_raw(query={"fields": {"Author": "Equals", "tag": "equals"}}))
        self.assertEqual(dict(cfg.query.fields), {"author": EQUALS, "tag": EQUALS})

    def test_invalid_values(self) -> None:
        cases = [
            (_raw(log={"level": "LOUD"}), ValueError),
            (_raw(query={"fields": {"tag": "regex"}}), ValueError),
            (_raw(query={"fields": {"freetext": "contains"}}), ValueError),
            (_raw(query={"fields": {"two words": "equals"}}), ValueError),
            (_raw(query={"fields": ["tag"]}), TypeError),
            (_raw(cache={"default": {"capacity": 0}}), ValueError),
            (_raw(cache={"namespaces": {"catalog": {"ttl": "soon"}}}), TypeError),
            (_raw(source={"kind": "ftp"}), ValueError),
            (_raw(source={"kind": "graphql"}), ValueError),
            (_raw(source={"kind": "local", "path": "x", "max_results": 0}), ValueError),
            ({"log": {"level": "INFO"}}, ValueError),
        ]
        for raw, error in cases:
            with self.subTest(raw=raw):
                with self.assertRaises(error):
                    parse_config_dict(raw)

    def test_override_merges_with_defaults(self) -> None:
        base_yaml = """
log:
  level: INFO
cache:
  default:
    ttl: 300
    capacity: 128
  namespaces:
    catalog:
      ttl: 300
source:
  kind: local
  path: config/catalog.yml
"""
        override_yaml = """
log:
  level: DEBUG
cache:
  namespaces:
    catalog:
      capacity: 4
"""
        with tempfile.TemporaryDirectory() as tmp:
            base_path = Path(tmp) / "default.yml"
            override_path = Path(tmp) / "override.yml"
            base_path.write_text(base_yaml, encoding="utf-8")
            override_path.write_text(override_yaml, encoding="utf-8")

            cfg = load_config_with_defaults(override_path, default_path=base_path)

        self.assertEqual(cfg.runtime.level, "DEBUG")
        self.assertEqual(cfg.cache.namespaces["catalog"], NamespacePolicy(ttl=300.0, capacity=4))
        self.assertEqual(cfg.source.path, "config/catalog.yml")

    def test_factory_applies_policies(self) -> None:
        cfg = parse_config_dict(
            _raw(
                query={"parse_cache_size": 8},
                cache={"namespaces": {"listing": {"ttl": 5, "capacity": 2}}},
            )
        )

        async def fetcher(predicates, namespace):
            return []

        facade = create_query_facade(cfg, fetcher=fetcher)

        self.assertEqual(facade.cache.policy("listing"), NamespacePolicy(ttl=5.0, capacity=2))
        self.assertEqual(facade.compiler.cache_info().maxsize, 8)
        self.assertIsNone(facade.source)


if __name__ == "__main__":
    unittest.main()
