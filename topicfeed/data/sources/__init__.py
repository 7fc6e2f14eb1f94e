"""Concrete topic data sources"""

from .arxiv import ArxivSource
from .coingecko import CoinGeckoSource
from .finnhub import FinnhubSource
from .github import GitHubSource
from .hackernews import HackerNewsSource
from .huggingface import HuggingFaceSource
from .reddit import RedditSource
from .rss import RSSSource

__all__ = [
    "ArxivSource",
    "CoinGeckoSource",
    "FinnhubSource",
    "GitHubSource",
    "HackerNewsSource",
    "HuggingFaceSource",
    "RedditSource",
    "RSSSource"
]
