"""Tests for the DocumentCache facade."""

from __future__ import annotations

from pathlib import Path

import pytest

from schemafetch.cache import DocumentCache, DisabledStore, FileStore
from schemafetch.cache import codec
from schemafetch.models import CacheConfig, CacheEntry

URL = "https://example.com/catalog.json"


def _entry(body: object = None, etag: str | None = '"abc"') -> CacheEntry:
    return CacheEntry(etag=etag, fetched_at=1700000000.0, body=body or {"schemas": []})


@pytest.fixture(params=["file", "diskcache"])
def cache(request: pytest.FixtureRequest, tmp_path: Path) -> DocumentCache:
    c = DocumentCache.open(CacheConfig(dir=tmp_path, backend=request.param), "schemastore")
    yield c
    c.close()


@pytest.fixture()
def disabled_cache(tmp_path: Path) -> DocumentCache:
    c = DocumentCache.open(CacheConfig(enabled=False, dir=tmp_path), "schemastore")
    yield c
    c.close()


# ------------------------------------------------------------------ #
# Core get/put behaviour
# ------------------------------------------------------------------ #


class TestGetPut:
    def test_put_and_get(self, cache: DocumentCache) -> None:
        assert cache.put(URL, _entry())
        hit = cache.get(URL)
        assert hit is not None
        assert hit.etag == '"abc"'
        assert hit.body == {"schemas": []}

    def test_miss_returns_none(self, cache: DocumentCache) -> None:
        assert cache.get("https://example.com/missing.json") is None

    def test_structured_keys(self, cache: DocumentCache) -> None:
        cache.put({"url": URL, "v": 2}, _entry(body=[1]))
        assert cache.get({"v": 2, "url": URL}).body == [1]

    def test_put_replaces_wholesale(self, cache: DocumentCache) -> None:
        cache.put(URL, _entry(body={"old": True}, etag='"abc"'))
        cache.put(URL, CacheEntry(etag=None, fetched_at=2.0, body={"new": True}))
        hit = cache.get(URL)
        assert hit.body == {"new": True}
        assert hit.etag is None

    def test_delete(self, cache: DocumentCache) -> None:
        cache.put(URL, _entry())
        assert cache.delete(URL)
        assert cache.get(URL) is None

    def test_delete_missing_no_error(self, cache: DocumentCache) -> None:
        assert cache.delete("https://example.com/nope")


# ------------------------------------------------------------------ #
# Fail-open behaviour
# ------------------------------------------------------------------ #


class TestFailOpen:
    def test_corrupt_entry_is_a_miss(self, cache: DocumentCache) -> None:
        cache.store.put(codec.to_key(URL), b"{not json")
        assert cache.get(URL) is None

    def test_unserialisable_key_is_a_miss(
        self, cache: DocumentCache, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level("ERROR", logger="schemafetch.cache.cache"):
            assert cache.get(object()) is None
            assert cache.put(object(), _entry()) is False
        assert "Unable to serialize cache key" in caplog.text

    def test_unserialisable_body_is_not_stored(self, cache: DocumentCache) -> None:
        assert cache.put(URL, CacheEntry(fetched_at=1.0, body={1, 2})) is False
        assert cache.get(URL) is None

    def test_unopenable_directory_disables_cache(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        c = DocumentCache.open(CacheConfig(dir=blocker), "schemastore")
        assert not c.enabled
        assert c.put(URL, _entry()) is False
        assert c.get(URL) is None


# ------------------------------------------------------------------ #
# Disabled cache
# ------------------------------------------------------------------ #


class TestDisabled:
    def test_disabled_uses_disabled_store(self, disabled_cache: DocumentCache) -> None:
        assert isinstance(disabled_cache.store, DisabledStore)
        assert not disabled_cache.enabled

    def test_disabled_touches_no_storage(self, disabled_cache: DocumentCache, tmp_path: Path) -> None:
        disabled_cache.put(URL, _entry())
        assert disabled_cache.get(URL) is None
        assert list(tmp_path.iterdir()) == []

    def test_disabled_stats(self, disabled_cache: DocumentCache) -> None:
        assert disabled_cache.stats() == {"enabled": False}

    def test_missing_dir_disables(self) -> None:
        c = DocumentCache.open(CacheConfig(dir=None), "schemastore")
        assert not c.enabled


# ------------------------------------------------------------------ #
# Stats and clear
# ------------------------------------------------------------------ #


class TestStatsAndClear:
    def test_stats_empty(self, cache: DocumentCache, tmp_path: Path) -> None:
        s = cache.stats()
        assert s["enabled"] is True
        assert s["group"] == "schemastore"
        assert s["size"] == 0
        assert s["directory"] == str(tmp_path / "schemastore")

    def test_stats_after_inserts(self, cache: DocumentCache) -> None:
        cache.put("https://example.com/a", _entry())
        cache.put("https://example.com/b", _entry())
        assert cache.stats()["size"] == 2

    def test_clear(self, cache: DocumentCache) -> None:
        cache.put("https://example.com/a", _entry())
        cache.put("https://example.com/b", _entry())
        assert cache.clear()
        assert cache.get("https://example.com/a") is None
        assert cache.stats()["size"] == 0

    def test_backend_reported(self, tmp_path: Path) -> None:
        with DocumentCache.open(CacheConfig(dir=tmp_path), "g") as c:
            assert isinstance(c.store, FileStore)
            assert c.stats()["backend"] == "FileStore"
