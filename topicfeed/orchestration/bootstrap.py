"""Default topic to source wiring."""
from typing import Optional

from topicfeed.config.settings import Config, get_config
from topicfeed.data.base import Priority
from topicfeed.data.cache import CacheStore
from topicfeed.data.sources import (
    ArxivSource,
    CoinGeckoSource,
    FinnhubSource,
    GitHubSource,
    HackerNewsSource,
    HuggingFaceSource,
    RedditSource,
    RSSSource,
)
from topicfeed.orchestration.registry import SourceRegistry
from topicfeed.utils.logger import get_logger


logger = get_logger(__name__)


def build_default_registry(cache: CacheStore, config: Optional[Config] = None) -> SourceRegistry:
    """Create a registry with the built-in sources for every default topic.

    crypto:      coingecko, reddit (primary), rss (fallback)
    investing:   finnhub, reddit (primary), rss (fallback)
    ai:          huggingface, reddit (primary), arxiv (secondary), rss (fallback)
    vibe_coding: hackernews, github (primary), reddit (secondary), rss (fallback)

    Args:
        cache: Cache store shared by every source
        config: Configuration; defaults to the process singleton

    Returns:
        Populated SourceRegistry
    """
    config = config or get_config()
    registry = SourceRegistry(cache)

    wiring = {
        'crypto': [
            CoinGeckoSource(config=config),
            RedditSource('crypto', config=config),
            RSSSource('crypto', config=config),
        ],
        'investing': [
            FinnhubSource(config=config),
            RedditSource('investing', config=config),
            RSSSource('investing', config=config),
        ],
        'ai': [
            HuggingFaceSource(config=config),
            RedditSource('ai', config=config),
            ArxivSource(config=config),
            RSSSource('ai', config=config),
        ],
        'vibe_coding': [
            HackerNewsSource(config=config),
            GitHubSource(config=config),
            RedditSource('vibe_coding', priority=Priority.SECONDARY, config=config),
            RSSSource('vibe_coding', config=config),
        ],
    }

    for topic, sources in wiring.items():
        for source in sources:
            registry.register_source(topic, source)

    logger.info(f"Registered {sum(len(s) for s in wiring.values())} sources for {len(wiring)} topics")
    return registry
