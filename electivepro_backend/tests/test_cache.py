"""
Unit tests for app/core/cache.py

The cache is keyed by (key, scope) and expires entries after the TTL,
optionally persisting to a JSON file.
"""

import json

import pytest

from app.core.cache import STORAGE_KEY, DataCache


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return DataCache(ttl_seconds=60, clock=clock)


class TestExpiry:

    def test_fresh_entry_is_returned(self, cache):
        cache.set("degrees", 1, [{"id": 1}])
        assert cache.get("degrees", 1) == [{"id": 1}]

    def test_entry_older_than_ttl_is_a_miss(self, cache, clock):
        cache.set("degrees", 1, ["x"])
        clock.now += 61
        assert cache.get("degrees", 1) is None

    def test_entry_at_ttl_boundary_is_still_fresh(self, cache, clock):
        cache.set("degrees", 1, ["x"])
        clock.now += 60
        assert cache.get("degrees", 1) == ["x"]

    def test_missing_key_is_a_miss(self, cache):
        assert cache.get("courses", 1) is None


class TestScopes:

    def test_scopes_do_not_overwrite_each_other(self, cache):
        cache.set("courses", 1, ["a"])
        cache.set("courses", 2, ["b"])
        assert cache.get("courses", 1) == ["a"]
        assert cache.get("courses", 2) == ["b"]

    def test_invalidate_one_scope_keeps_the_others(self, cache):
        cache.set("courses", 1, ["a"])
        cache.set("courses", 2, ["b"])
        cache.invalidate("courses", 1)
        assert cache.get("courses", 1) is None
        assert cache.get("courses", 2) == ["b"]

    def test_invalidate_without_scope_drops_every_scope(self, cache):
        cache.set("courses", 1, ["a"])
        cache.set("courses", 2, ["b"])
        cache.invalidate("courses")
        assert cache.get("courses", 1) is None
        assert cache.get("courses", 2) is None

    def test_invalidate_unknown_key_is_a_no_op(self, cache):
        cache.invalidate("nothing")


class TestGetOrLoad:

    def test_loader_runs_once_while_fresh(self, cache):
        calls = []

        def loader():
            calls.append(1)
            return ["loaded"]

        assert cache.get_or_load("users", 7, loader) == ["loaded"]
        assert cache.get_or_load("users", 7, loader) == ["loaded"]
        assert len(calls) == 1

    def test_loader_runs_again_after_expiry(self, cache, clock):
        calls = []
        cache.get_or_load("users", 7, lambda: calls.append(1) or ["v1"])
        clock.now += 120
        cache.get_or_load("users", 7, lambda: calls.append(1) or ["v2"])
        assert len(calls) == 2
        assert cache.get("users", 7) == ["v2"]


class TestPersistence:

    def test_entries_survive_a_reload(self, tmp_path, clock):
        path = tmp_path / "cache.json"
        DataCache(60, str(path), clock=clock).set("degrees", 3, [{"id": 9}])

        document = json.loads(path.read_text(encoding="utf-8"))
        assert STORAGE_KEY in document

        reloaded = DataCache(60, str(path), clock=clock)
        assert reloaded.get("degrees", 3) == [{"id": 9}]

    def test_corrupt_file_is_discarded(self, tmp_path, clock):
        path = tmp_path / "cache.json"
        path.write_text("{not json", encoding="utf-8")

        cache = DataCache(60, str(path), clock=clock)

        assert cache.get("degrees", 3) is None
        assert not path.exists()

    def test_clear_removes_the_file(self, tmp_path, clock):
        path = tmp_path / "cache.json"
        cache = DataCache(60, str(path), clock=clock)
        cache.set("degrees", 1, ["x"])
        cache.clear()
        assert not path.exists()
        assert cache.get("degrees", 1) is None
