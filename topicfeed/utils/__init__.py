"""
Utility modules for topicfeed
"""

from .logger import setup_logger, get_logger, log_async_performance
from .rate_limiter import RateLimitBudget, RateLimiter, RateLimited

__all__ = [
    "setup_logger",
    "get_logger",
    "log_async_performance",
    "RateLimitBudget",
    "RateLimiter",
    "RateLimited"
]
