"""
Finnhub source
General market news and the upcoming earnings calendar
Limited to 60 calls/minute on the free tier; requires an API key
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from ...utils import RateLimitBudget
from ..base import Priority, Source, SourceDescriptor

BASE_URL = "https://finnhub.io/api/v1"

NOTABLE_SYMBOLS = {"AAPL", "MSFT", "GOOGL", "AMZN", "NVDA", "TSLA", "META", "AMD", "NFLX", "CRM"}

class FinnhubSource(Source):

    def __init__(self, **kwargs):
        super().__init__(SourceDescriptor(
            name="finnhub",
            priority=Priority.PRIMARY,
            fresh_ttl=15 * 60,
            stale_ttl=60 * 60,
            rate_limit=RateLimitBudget(max_requests=60, window_seconds=60)
        ), **kwargs)
        self.api_key = self.config.api.finnhub_key

    async def fetch(self, topic: str) -> Optional[Dict[str, Any]]:
        if not self.api_key:
            self.logger.info("No API key configured")
            return None

        news, earnings = await self._gather_settled(
            ["news", "earnings"],
            [self.fetch_market_news(), self.fetch_upcoming_earnings()]
        )

        if not news and not earnings:
            return None

        return {
            'news': news or [],
            'earnings': earnings or []
        }

    async def fetch_market_news(self) -> List[Dict[str, Any]]:
        data = await self._get_json(f"{BASE_URL}/news", "news", params={
            'category': "general",
            'token': self.api_key
        })

        articles = []
        for article in (data or [])[:15]:
            if not article.get('headline'):
                continue
            timestamp = article.get('datetime')
            articles.append({
                'headline': article['headline'],
                'summary': (article.get('summary') or "")[:300],
                'source': article.get('source'),
                'url': article.get('url'),
                'category': article.get('category'),
                'datetime': (
                    datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()
                    if timestamp else None
                ),
                'related': article.get('related')
            })
        return articles

    async def fetch_upcoming_earnings(self, days: int = 7) -> List[Dict[str, Any]]:
        today = datetime.now(timezone.utc).date()
        data = await self._get_json(f"{BASE_URL}/calendar/earnings", "earnings", params={
            'from': today.isoformat(),
            'to': (today + timedelta(days=days)).isoformat(),
            'token': self.api_key
        })

        # Large companies (>$1B revenue estimate) or well-known symbols
        notable = [
            e for e in (data.get('earningsCalendar') or [])
            if (e.get('revenueEstimate') or 0) > 1e9 or e.get('symbol') in NOTABLE_SYMBOLS
        ]

        return [
            {
                'symbol': e.get('symbol'),
                'date': e.get('date'),
                'eps_estimate': e.get('epsEstimate'),
                'revenue_estimate': e.get('revenueEstimate'),
                'hour': e.get('hour')  # bmo / amc
            }
            for e in notable[:10]
        ]

    def normalize(self, raw: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not raw:
            return None

        return {
            'market_news': raw.get('news') or [],
            'upcoming_earnings': raw.get('earnings') or [],
            'key_data': self.extract_key_data(raw)
        }

    def extract_key_data(self, raw: Dict[str, Any]) -> List[str]:
        key_data = []

        news = raw.get('news') or []
        if news:
            key_data.append(f"{len(news)} market news articles")
            key_data.append(f"Top story: \"{news[0]['headline'][:60]}...\"")

        earnings = raw.get('earnings') or []
        if earnings:
            symbols = ", ".join(e['symbol'] for e in earnings[:5] if e.get('symbol'))
            key_data.append(f"Upcoming earnings: {symbols}")

        return key_data
