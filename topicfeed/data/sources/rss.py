"""
RSS source
Syndication feeds per topic, merged and sorted newest first
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ...utils import RateLimitBudget
from ..base import Priority, Source, SourceDescriptor
from ..feeds import parse_date, parse_feed

RSS_CONFIG: Dict[str, List[Dict[str, str]]] = {
    'crypto': [
        {'url': "https://cointelegraph.com/rss", 'name': "CoinTelegraph"},
        {'url': "https://cryptonews.com/news/feed/", 'name': "CryptoNews"}
    ],
    'investing': [
        {'url': "https://feeds.marketwatch.com/marketwatch/topstories/", 'name': "MarketWatch"},
        {'url': "https://feeds.bloomberg.com/markets/news.rss", 'name': "Bloomberg"}
    ],
    'ai': [
        {'url': "https://techcrunch.com/category/artificial-intelligence/feed/", 'name': "TechCrunch AI"},
        {'url': "https://www.anthropic.com/feed", 'name': "Anthropic"},
        {'url': "https://openai.com/blog/rss/", 'name': "OpenAI"}
    ],
    'vibe_coding': [
        {'url': "https://dev.to/feed", 'name': "Dev.to"},
        {'url': "https://hnrss.org/frontpage", 'name': "HN RSS"}
    ]
}

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

class RSSSource(Source):
    """Feeds for one topic; an unreachable feed only drops its own items"""

    def __init__(self, topic: str, priority: Priority = Priority.FALLBACK,
                 feeds: Optional[List[Dict[str, str]]] = None, **kwargs):
        super().__init__(SourceDescriptor(
            name=f"rss-{topic}",
            priority=priority,
            fresh_ttl=30 * 60,
            stale_ttl=2 * 60 * 60,
            rate_limit=RateLimitBudget(max_requests=100, window_seconds=60)
        ), **kwargs)
        self.topic = topic
        self.feeds = feeds if feeds is not None else RSS_CONFIG.get(topic, [])

    async def fetch(self, topic: str) -> Optional[Dict[str, Any]]:
        if not self.feeds:
            self.logger.info("No feeds configured")
            return None

        results = await self._gather_settled(
            [feed['name'] for feed in self.feeds],
            [self.fetch_feed(feed) for feed in self.feeds]
        )

        items = [item for result in results if result for item in result]
        if not items:
            return None

        items.sort(key=lambda item: parse_date(item.get('pub_date')) or _EPOCH, reverse=True)

        return {
            'items': items[:20],
            'sources': [feed['name'] for feed in self.feeds]
        }

    async def fetch_feed(self, feed: Dict[str, str]) -> List[Dict[str, Any]]:
        xml = await self._get_text(feed['url'], feed['name'])
        return parse_feed(xml, feed['name'])

    def normalize(self, raw: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not raw:
            return None

        return {
            'rss_items': raw.get('items') or [],
            'rss_sources': raw.get('sources') or [],
            'key_data': self.extract_key_data(raw)
        }

    def extract_key_data(self, raw: Dict[str, Any]) -> List[str]:
        key_data = []
        items = raw.get('items') or []

        if items:
            key_data.append(f"{len(items)} RSS articles from {len(raw.get('sources') or [])} feeds")
            top = items[0]
            key_data.append(f"Latest: \"{top['title'][:60]}...\" ({top['source']})")

        return key_data
