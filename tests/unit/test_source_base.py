"""Unit tests for the source contract and the cache-aware fetch routine."""

import pytest

from topicfeed.data.base import FetchOutcome, Priority, SourceDescriptor
from topicfeed.data.errors import EmptyResult, ErrorKind, NetworkError
from topicfeed.utils.rate_limiter import RateLimitBudget


PAYLOAD = {"items": [{"title": "hello"}]}


class TestSourceDescriptor:
    """Test descriptor validation."""

    def test_stale_must_cover_fresh(self):
        with pytest.raises(ValueError):
            SourceDescriptor("bad", Priority.PRIMARY, fresh_ttl=600, stale_ttl=60,
                             rate_limit=RateLimitBudget(max_requests=1))

    def test_priority_rank(self):
        assert Priority.PRIMARY.rank < Priority.SECONDARY.rank < Priority.FALLBACK.rank


class TestFetchWithCache:
    """Test the fresh/rate-limit/fetch state machine."""

    @pytest.mark.asyncio
    async def test_fresh_cache_skips_fetch_and_budget(self, make_source, cache, clock):
        """Test two calls within fresh_ttl perform exactly one fetch."""
        source = make_source("stub", payload=PAYLOAD)

        first = await source.fetch_with_cache("ai", cache)
        clock.advance(120)
        second = await source.fetch_with_cache("ai", cache)

        assert source.calls == 1
        assert source.rate_limiter.used == 1
        assert first.from_cache is False
        assert second.from_cache is True
        assert second.data == first.data == PAYLOAD
        assert second.error is None
        assert second.cache_age == 120

    @pytest.mark.asyncio
    async def test_success_stores_payload(self, make_source, cache):
        """Test successful fetches are cached under the source key."""
        source = make_source("stub", payload=PAYLOAD)

        outcome = await source.fetch_with_cache("ai", cache)

        assert outcome == FetchOutcome(data=PAYLOAD, from_cache=False)
        assert cache.get("stub:ai") == PAYLOAD

    @pytest.mark.asyncio
    async def test_rate_limited_serves_stale_entry(self, make_source, cache, clock):
        """Test an exhausted budget falls back to cache within stale_ttl."""
        source = make_source("stub", payload=PAYLOAD, max_requests=1, fresh_ttl=30)
        await source.fetch_with_cache("ai", cache)
        # past fresh_ttl, still inside the 60s rate window
        clock.advance(45)

        outcome = await source.fetch_with_cache("ai", cache)

        assert source.calls == 1
        assert outcome.data == PAYLOAD
        assert outcome.from_cache is True
        assert outcome.cache_age == 45
        assert outcome.error == "rate_limited"
        assert outcome.error_kind == ErrorKind.RATE_LIMITED

    @pytest.mark.asyncio
    async def test_rate_window_resets_lazily(self, make_source, cache, clock):
        """Test the budget is restored once the window has elapsed."""
        source = make_source("stub", payload=PAYLOAD, max_requests=1, fresh_ttl=30)
        await source.fetch_with_cache("ai", cache)
        clock.advance(61)

        outcome = await source.fetch_with_cache("ai", cache)

        assert source.calls == 2
        assert outcome.from_cache is False
        assert outcome.error is None

    @pytest.mark.asyncio
    async def test_rate_limited_without_cache(self, make_source, cache):
        """Test an exhausted budget with no cache yields no data."""
        source = make_source("stub", payload=PAYLOAD, max_requests=0)

        outcome = await source.fetch_with_cache("ai", cache)

        assert source.calls == 0
        assert outcome.data is None
        assert outcome.from_cache is False
        assert outcome.error == "rate_limited"

    @pytest.mark.asyncio
    async def test_rate_limited_ignores_entries_past_stale_ttl(self, make_source, cache, clock):
        """Test the rate-limit fallback respects stale_ttl."""
        source = make_source("stub", payload=PAYLOAD, max_requests=0, stale_ttl=3600)
        cache.set("stub:ai", PAYLOAD)
        clock.advance(3601)

        outcome = await source.fetch_with_cache("ai", cache)

        assert outcome.data is None
        assert outcome.error == "rate_limited"

    @pytest.mark.asyncio
    async def test_network_error_falls_back_to_stale_cache(self, make_source, cache, clock):
        """Test a 10 minute old entry is served after a network error."""
        source = make_source("stub", payload=PAYLOAD, fresh_ttl=300, stale_ttl=3600)
        await source.fetch_with_cache("ai", cache)
        clock.advance(600)
        source.error = NetworkError("stub request: ConnectError")

        outcome = await source.fetch_with_cache("ai", cache)

        assert source.calls == 2
        assert outcome.data == PAYLOAD
        assert outcome.from_cache is True
        assert outcome.error == "stub request: ConnectError"
        assert outcome.error_kind == ErrorKind.NETWORK
        assert outcome.cache_age == 600
        assert outcome.degraded

    @pytest.mark.asyncio
    async def test_network_error_without_usable_cache(self, make_source, cache, clock):
        """Test errors past stale_ttl return no data and the message."""
        source = make_source("stub", error=NetworkError("boom"), stale_ttl=3600)
        cache.set("stub:ai", PAYLOAD)
        clock.advance(7200)

        outcome = await source.fetch_with_cache("ai", cache)

        assert outcome.data is None
        assert outcome.error == "boom"
        assert cache.get("stub:ai") == PAYLOAD

    @pytest.mark.asyncio
    async def test_empty_payload_uses_cache_of_any_age(self, make_source, cache, clock):
        """Test empty fetches fall back to cache regardless of stale_ttl."""
        source = make_source("stub", payload=None, stale_ttl=3600)
        cache.set("stub:ai", PAYLOAD)
        clock.advance(10 * 3600)

        outcome = await source.fetch_with_cache("ai", cache)

        assert outcome.data == PAYLOAD
        assert outcome.from_cache is True
        assert outcome.error == "fetch_empty"
        assert outcome.error_kind == ErrorKind.EMPTY_RESULT

    @pytest.mark.asyncio
    async def test_empty_payload_without_cache(self, make_source, cache):
        """Test empty fetch with nothing cached."""
        source = make_source("stub", payload={})

        outcome = await source.fetch_with_cache("ai", cache)

        assert outcome.data is None
        assert outcome.error == "fetch_empty"
        assert not cache.has("stub:ai")

    @pytest.mark.asyncio
    async def test_empty_result_exception_counts_as_empty(self, make_source, cache):
        """Test EmptyResult raised from fetch is treated like an empty payload."""
        source = make_source("stub", error=EmptyResult("No stories found"))

        outcome = await source.fetch_with_cache("ai", cache)

        assert outcome.data is None
        assert outcome.error == "fetch_empty"

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_captured(self, make_source, cache):
        """Test non-network failures become parse errors, never exceptions."""
        source = make_source("stub", error=KeyError("price"))

        outcome = await source.fetch_with_cache("ai", cache)

        assert outcome.data is None
        assert outcome.error_kind == ErrorKind.PARSE
        assert "price" in outcome.error

    @pytest.mark.asyncio
    async def test_upstream_429_saturates_limiter(self, make_source, cache):
        """Test HTTP 429 blocks further requests for the window."""
        source = make_source("stub", error=NetworkError("stub: 429", status_code=429))

        first = await source.fetch_with_cache("ai", cache)
        source.error = None
        source.payload = PAYLOAD
        second = await source.fetch_with_cache("ai", cache)

        assert first.error == "stub: 429"
        assert source.rate_limiter.is_limited()
        assert second.error == "rate_limited"
        assert source.calls == 1

    @pytest.mark.asyncio
    async def test_topics_are_cached_separately(self, make_source, cache):
        """Test cache keys include the topic."""
        source = make_source("stub", payload=PAYLOAD)

        await source.fetch_with_cache("ai", cache)
        await source.fetch_with_cache("crypto", cache)

        assert source.calls == 2
        assert source.cache_key("crypto") == "stub:crypto"
        assert cache.has("stub:ai") and cache.has("stub:crypto")


class TestGatherSettled:
    """Test concurrent sub-request handling."""

    @staticmethod
    async def _value(value):
        return value

    @staticmethod
    async def _fail(message):
        raise NetworkError(message)

    @pytest.mark.asyncio
    async def test_partial_failure_becomes_none(self, make_source):
        source = make_source("stub")

        results = await source._gather_settled(
            ["a", "b"],
            [self._value(1), self._fail("b down")]
        )

        assert results == [1, None]

    @pytest.mark.asyncio
    async def test_total_failure_raises_first_error(self, make_source):
        source = make_source("stub")

        with pytest.raises(NetworkError, match="a down"):
            await source._gather_settled(
                ["a", "b"],
                [self._fail("a down"), self._fail("b down")]
            )


class TestSourceInfo:

    @pytest.mark.asyncio
    async def test_get_info(self, make_source, cache):
        source = make_source("stub", payload=PAYLOAD, priority=Priority.SECONDARY, max_requests=5)
        await source.fetch_with_cache("ai", cache)

        info = source.get_info()

        assert info['name'] == "stub"
        assert info['priority'] == "secondary"
        assert info['rate_limit'] == {'max_requests': 5, 'window_seconds': 60}
        assert info['request_count'] == 1
        assert info['is_rate_limited'] is False

    @pytest.mark.asyncio
    async def test_connect_and_disconnect(self, make_source):
        source = make_source("stub")

        await source.connect()
        assert source.is_connected
        assert source.client.headers['User-Agent'] == "topicfeed-tests"

        await source.disconnect()
        assert source.client is None
        assert not source.is_connected
