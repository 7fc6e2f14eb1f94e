"""
topicfeed
Multi-source topic aggregation with caching, rate limiting and tiered fallback
"""

__version__ = "0.1.0"

from . import config, data, orchestration, utils

__all__ = ["config", "data", "orchestration", "utils"]
