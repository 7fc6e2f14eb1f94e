"""
Per-source request budgeting
Fixed-window counters that reset lazily on the next check
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict

from .logger import get_logger

logger = get_logger(__name__)

@dataclass(frozen=True)
class RateLimitBudget:
    """Allowed requests per window"""
    max_requests: int
    window_seconds: float = 60.0

    def __post_init__(self):
        if self.max_requests < 0:
            raise ValueError("max_requests must be non-negative")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

class RateLimited(Exception):
    """Raised when a source has used up its local request budget"""
    def __init__(self, source: str, limiter: 'RateLimiter'):
        self.source = source
        self.limiter = limiter
        super().__init__(
            f"Rate limit reached for {source}: "
            f"{limiter.used}/{limiter.budget.max_requests} per {limiter.budget.window_seconds:g}s"
        )

@dataclass
class RateLimiter:
    """
    Fixed window request counter owned by a single source instance

    Nothing is shared between instances or processes; the window is
    restarted lazily by the first check made after it has elapsed.
    """
    name: str
    budget: RateLimitBudget
    clock: Callable[[], float] = time.time
    used: int = 0
    window_start: float = field(default=0.0)
    last_request: float = 0.0

    def __post_init__(self):
        if not self.window_start:
            self.window_start = self.clock()

    @property
    def remaining(self) -> int:
        return max(0, self.budget.max_requests - self.used)

    @property
    def usage_percentage(self) -> float:
        if self.budget.max_requests == 0:
            return 100.0
        return (self.used / self.budget.max_requests) * 100

    @property
    def should_reset(self) -> bool:
        return self.clock() - self.window_start >= self.budget.window_seconds

    def reset(self):
        """Start a new window"""
        if self.used:
            logger.debug(f"Reset rate window for {self.name} after {self.used} requests")
        self.used = 0
        self.window_start = self.clock()

    def is_limited(self) -> bool:
        """True when the in-window count has reached the budget"""
        if self.should_reset:
            self.reset()
        return self.used >= self.budget.max_requests

    def acquire(self):
        """
        Record one request against the budget

        Raises:
            RateLimited: If the budget for the current window is used up
        """
        if self.is_limited():
            raise RateLimited(self.name, self)

        self.used += 1
        self.last_request = self.clock()

        if self.usage_percentage >= 90:
            logger.warning(
                f"High request usage for {self.name}: "
                f"{self.used}/{self.budget.max_requests} ({self.remaining} remaining)"
            )

    def saturate(self):
        """Max out the current window, e.g. after an upstream HTTP 429"""
        if self.should_reset:
            self.reset()
        self.used = self.budget.max_requests
        logger.warning(f"{self.name} marked rate limited until window resets")

    def get_status(self) -> Dict[str, Any]:
        return {
            'used': self.used,
            'limit': self.budget.max_requests,
            'remaining': self.remaining,
            'percentage': round(self.usage_percentage, 1),
            'window_seconds': self.budget.window_seconds
        }
