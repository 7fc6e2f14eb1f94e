"""
CoinGecko source
Crypto prices, the Fear & Greed index and trending coins
"""

from typing import Any, Dict, List, Optional

from ...utils import RateLimitBudget
from ..base import Priority, Source, SourceDescriptor

PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"
TRENDING_URL = "https://api.coingecko.com/api/v3/search/trending"
FEAR_GREED_URL = "https://api.alternative.me/fng/"

COINS = ("bitcoin", "ethereum", "solana")

def _round(value: Optional[float], digits: int = 2) -> Optional[float]:
    return round(value, digits) if isinstance(value, (int, float)) else None

class CoinGeckoSource(Source):
    """
    Crypto market snapshot
    Free tier allows roughly 30 calls/minute
    """

    def __init__(self, **kwargs):
        super().__init__(SourceDescriptor(
            name="coingecko",
            priority=Priority.PRIMARY,
            fresh_ttl=5 * 60,
            stale_ttl=30 * 60,
            rate_limit=RateLimitBudget(max_requests=30, window_seconds=60)
        ), **kwargs)

    async def fetch(self, topic: str) -> Optional[Dict[str, Any]]:
        prices, fear_greed, trending = await self._gather_settled(
            ["prices", "fear_greed", "trending"],
            [self.fetch_prices(), self.fetch_fear_greed(), self.fetch_trending()]
        )

        if not prices and not fear_greed and not trending:
            return None

        return {
            'prices': prices or {},
            'fear_greed': fear_greed,
            'trending': trending or []
        }

    async def fetch_prices(self) -> Dict[str, Dict[str, Any]]:
        data = await self._get_json(PRICE_URL, "prices", params={
            'ids': ",".join(COINS),
            'vs_currencies': "usd",
            'include_24hr_change': "true",
            'include_24hr_vol': "true"
        })

        prices = {}
        for coin in COINS:
            quote = data.get(coin)
            if not quote:
                continue
            volume = quote.get('usd_24h_vol')
            prices[coin] = {
                'price': quote.get('usd'),
                'change_24h': _round(quote.get('usd_24h_change')),
                'volume_24h': f"{volume / 1e9:.2f}B" if volume else None
            }
        return prices

    async def fetch_fear_greed(self) -> Optional[Dict[str, Any]]:
        data = await self._get_json(FEAR_GREED_URL, "fear_greed", params={'limit': 1})

        entries = data.get('data') or []
        if not entries:
            return None

        try:
            value = int(entries[0].get('value'))
        except (TypeError, ValueError):
            value = None
        # Extreme Fear, Fear, Neutral, Greed, Extreme Greed
        return {'value': value, 'label': entries[0].get('value_classification')}

    async def fetch_trending(self) -> List[Dict[str, Any]]:
        data = await self._get_json(TRENDING_URL, "trending")

        return [
            {
                'name': coin['item'].get('name'),
                'symbol': coin['item'].get('symbol'),
                'market_cap_rank': coin['item'].get('market_cap_rank')
            }
            for coin in (data.get('coins') or [])[:5]
            if coin.get('item')
        ]

    def normalize(self, raw: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not raw:
            return None

        prices = raw.get('prices') or {}
        btc = prices.get('bitcoin') or {}
        eth = prices.get('ethereum') or {}
        sol = prices.get('solana') or {}

        return {
            'real_time_data': {
                'btc_price': btc.get('price'),
                'btc_change': btc.get('change_24h'),
                'btc_volume': btc.get('volume_24h'),
                'eth_price': eth.get('price'),
                'eth_change': eth.get('change_24h'),
                'sol_price': sol.get('price'),
                'sol_change': sol.get('change_24h'),
                'fear_greed': raw.get('fear_greed')
            },
            'trending': raw.get('trending') or [],
            'key_data': self.extract_key_data(raw)
        }

    def extract_key_data(self, raw: Dict[str, Any]) -> List[str]:
        key_data = []

        btc = (raw.get('prices') or {}).get('bitcoin')
        if btc and btc.get('price') is not None:
            change = btc.get('change_24h') or 0
            direction = "up" if change >= 0 else "down"
            key_data.append(f"BTC ${btc['price']:,} ({change}% {direction})")

        fear_greed = raw.get('fear_greed')
        if fear_greed:
            key_data.append(f"Fear & Greed: {fear_greed.get('value')} ({fear_greed.get('label')})")

        trending = raw.get('trending') or []
        if trending:
            key_data.append(f"Trending: {', '.join(t['symbol'] for t in trending[:3] if t.get('symbol'))}")

        return key_data
