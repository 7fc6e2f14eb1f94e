"""Unit tests for the fixed-window rate limiter."""

import pytest

from topicfeed.utils.rate_limiter import RateLimitBudget, RateLimited, RateLimiter


class TestRateLimiter:
    """Test request budgeting."""

    @pytest.fixture
    def limiter(self, clock):
        """Three requests per minute."""
        return RateLimiter("arxiv", RateLimitBudget(max_requests=3, window_seconds=60), clock=clock)

    def test_acquire_until_limited(self, limiter):
        """Test the budget is enforced within a window."""
        for _ in range(3):
            limiter.acquire()

        assert limiter.is_limited()
        assert limiter.remaining == 0

        with pytest.raises(RateLimited) as exc_info:
            limiter.acquire()
        assert exc_info.value.source == "arxiv"
        assert limiter.used == 3

    def test_window_resets_lazily(self, limiter, clock):
        """Test the counter resets on the first check after the window."""
        for _ in range(3):
            limiter.acquire()

        clock.advance(59)
        assert limiter.is_limited()

        clock.advance(1)
        # Nothing has reset until something checks
        assert limiter.used == 3
        assert not limiter.is_limited()
        assert limiter.used == 0

        limiter.acquire()
        assert limiter.used == 1

    def test_saturate(self, limiter, clock):
        """Test saturate blocks the rest of the window only."""
        limiter.acquire()
        limiter.saturate()

        assert limiter.is_limited()

        clock.advance(60)
        assert not limiter.is_limited()

    def test_instances_are_independent(self, clock):
        """Test counts are per instance."""
        budget = RateLimitBudget(max_requests=1)
        first = RateLimiter("a", budget, clock=clock)
        second = RateLimiter("b", budget, clock=clock)

        first.acquire()

        assert first.is_limited()
        assert not second.is_limited()

    def test_get_status(self, limiter):
        """Test status report."""
        limiter.acquire()
        status = limiter.get_status()

        assert status['used'] == 1
        assert status['limit'] == 3
        assert status['remaining'] == 2
        assert status['percentage'] == 33.3


class TestRateLimitBudget:
    """Test budget validation."""

    def test_invalid_budgets(self):
        with pytest.raises(ValueError):
            RateLimitBudget(max_requests=-1)
        with pytest.raises(ValueError):
            RateLimitBudget(max_requests=5, window_seconds=0)

    def test_zero_budget_is_always_limited(self, clock):
        limiter = RateLimiter("off", RateLimitBudget(max_requests=0), clock=clock)
        assert limiter.is_limited()
        assert limiter.usage_percentage == 100.0
