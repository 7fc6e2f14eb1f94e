"""Unit tests for the background cache janitor."""

import asyncio

import pytest

from topicfeed.orchestration.housekeeping import CacheJanitor


class TestCacheJanitor:
    """Test periodic cleanup."""

    def test_run_once(self, cache, clock):
        cache.set("old", 1)
        clock.advance(7200)
        cache.set("new", 2)

        janitor = CacheJanitor(cache, max_age=3600, interval=60)

        assert janitor.run_once() == 1
        assert list(cache) == ["new"]
        assert (janitor.sweeps, janitor.removed) == (1, 1)

    def test_rejects_non_positive_interval(self, cache):
        with pytest.raises(ValueError):
            CacheJanitor(cache, max_age=60, interval=0)

    @pytest.mark.asyncio
    async def test_start_and_stop(self, cache, clock):
        cache.set("old", 1)
        clock.advance(7200)
        janitor = CacheJanitor(cache, max_age=3600, interval=0.01)

        await janitor.start()
        assert janitor.is_running
        await asyncio.sleep(0.05)
        await janitor.stop()

        assert not janitor.is_running
        assert janitor.sweeps >= 1
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_double_start_keeps_one_task(self, cache):
        janitor = CacheJanitor(cache, max_age=3600, interval=60)

        await janitor.start()
        task = janitor._task
        await janitor.start()

        assert janitor._task is task
        await janitor.stop()
        assert task.cancelled()
