"""Unit tests for the cache store."""

import json
import math

import pytest

from topicfeed.data.cache import CacheStore, format_age


class TestCacheStore:
    """Test cache store operations."""

    def test_set_and_get(self, cache):
        """Test basic set/get and missing keys."""
        cache.set("coingecko:crypto", {"btc": 1})

        assert cache.get("coingecko:crypto") == {"btc": 1}
        assert cache.get("missing") is None
        assert cache.has("coingecko:crypto")
        assert "coingecko:crypto" in cache
        assert len(cache) == 1

    def test_age_is_infinite_when_never_set(self, cache):
        """Test get_age for unknown keys."""
        assert math.isinf(cache.get_age("never"))
        assert cache.is_stale("never", 10_000)
        assert not cache.is_fresh("never", 10_000)

    def test_age_tracks_clock(self, cache, clock):
        """Test ages follow the injected clock and reset on set."""
        cache.set("key", "v1")
        clock.advance(90)
        assert cache.get_age("key") == 90

        cache.set("key", "v2")
        assert cache.get_age("key") == 0
        assert cache.get("key") == "v2"

    def test_freshness_boundary(self, cache, clock):
        """Test an entry exactly ttl old is still fresh."""
        cache.set("key", "value")
        clock.advance(300)

        assert cache.is_fresh("key", 300)
        assert not cache.is_stale("key", 300)

        clock.advance(1)
        assert cache.is_stale("key", 300)
        assert not cache.is_fresh("key", 300)

    def test_get_does_not_refresh_age(self, cache, clock):
        """Test reads leave the age untouched."""
        cache.set("key", "value")
        clock.advance(60)
        cache.get("key")

        assert cache.get_age("key") == 60

    def test_delete_and_clear(self, cache):
        """Test deletion."""
        cache.set("a", 1)
        cache.set("b", 2)

        cache.delete("a")
        cache.delete("not-there")
        assert not cache.has("a")
        assert cache.has("b")

        cache.clear()
        assert len(cache) == 0

    def test_clear_prefix(self, cache):
        """Test prefix removal only touches matching keys."""
        cache.set("reddit-ai:ai", 1)
        cache.set("reddit-crypto:crypto", 2)
        cache.set("rss-ai:ai", 3)

        removed = cache.clear_prefix("reddit-")

        assert removed == 2
        assert list(cache) == ["rss-ai:ai"]

    def test_cleanup_removes_only_old_entries(self, cache, clock):
        """Test cleanup keeps fresher entries and their values."""
        cache.set("old", {"v": "old"})
        clock.advance(3600)
        cache.set("young", {"v": "young"})
        clock.advance(60)

        removed = cache.cleanup(max_age=1800)

        assert removed == 1
        assert not cache.has("old")
        assert cache.get("young") == {"v": "young"}
        assert cache.get_age("young") == 60

    def test_get_stats(self, cache, clock):
        """Test stats are sorted youngest first."""
        cache.set("first", 1)
        clock.advance(120)
        cache.set("second", 2)

        stats = cache.get_stats()

        assert stats['size'] == 2
        assert [e['key'] for e in stats['entries']] == ["second", "first"]
        assert stats['entries'][1]['age_formatted'] == "2min"


class TestCacheSnapshot:
    """Test JSON snapshot persistence."""

    def test_save_and_load_keeps_timestamps(self, cache, clock, tmp_path):
        """Test a restored entry continues aging from its original insertion."""
        path = tmp_path / "cache" / "snapshot.json"
        cache.set("hackernews:vibe_coding", {"stories": [{"title": "x"}]})
        clock.advance(100)

        assert cache.save(path) == 1

        restored = CacheStore(clock=clock)
        assert restored.load(path) == 1
        clock.advance(50)

        assert restored.get("hackernews:vibe_coding") == {"stories": [{"title": "x"}]}
        assert restored.get_age("hackernews:vibe_coding") == 150

    def test_load_missing_file(self, cache, tmp_path):
        """Test loading a missing snapshot is a no-op."""
        assert cache.load(tmp_path / "nope.json") == 0
        assert len(cache) == 0

    def test_load_corrupt_file(self, cache, tmp_path):
        """Test unreadable snapshots are ignored."""
        path = tmp_path / "snapshot.json"
        path.write_text("{not json")

        assert cache.load(path) == 0

    def test_load_non_object_snapshot(self, cache, tmp_path):
        """Test valid JSON that is not an object is ignored."""
        cache.set("kept", 1)
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps([1, 2]))

        assert cache.load(path) == 0
        assert list(cache) == ["kept"]

    def test_load_skips_bad_entries(self, cache, tmp_path):
        """Test malformed entries are skipped individually."""
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps({
            "good": {"key": "good", "data": 1, "timestamp": 5.0},
            "bad": {"key": "bad"}
        }))

        assert cache.load(path) == 1
        assert cache.get("good") == 1


@pytest.mark.parametrize("seconds,expected", [
    (42, "42s"),
    (300, "5min"),
    (3 * 3600, "3h"),
    (math.inf, "never"),
])
def test_format_age(seconds, expected):
    assert format_age(seconds) == expected
