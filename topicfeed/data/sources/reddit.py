"""
Reddit source
Hot posts from the subreddits configured for a topic
"""

import re
import time
from collections import Counter
from typing import Any, Dict, List, Optional

from ...utils import RateLimitBudget
from ..base import Priority, Source, SourceDescriptor

SUBREDDIT_CONFIG: Dict[str, Dict[str, Any]] = {
    'crypto': {
        'subreddits': ["cryptocurrency", "bitcoin", "ethereum"],
        'keywords': ["$BTC", "$ETH", "Bitcoin", "crypto"],
        'ticker_regex': re.compile(r"\$([A-Z]{2,5})\b")
    },
    'investing': {
        'subreddits': ["stocks", "wallstreetbets", "investing"],
        'keywords': ["$NVDA", "$TSLA", "earnings", "market"],
        'ticker_regex': re.compile(r"\$([A-Z]{1,5})\b")
    },
    'ai': {
        'subreddits': ["MachineLearning", "ChatGPT", "LocalLLaMA", "artificial"],
        'keywords': ["GPT", "Claude", "LLM", "AI model", "neural"]
    },
    'vibe_coding': {
        'subreddits': ["Cursor", "LocalLLaMA", "ClaudeAI"],
        'keywords': ["Cursor", "Claude Code", "Copilot", "AI coding", "vibe coding"]
    }
}

class RedditSource(Source):
    """Hot posts for one topic, ranked by recency-weighted engagement"""

    def __init__(self, topic: str, priority: Priority = Priority.PRIMARY, **kwargs):
        super().__init__(SourceDescriptor(
            name=f"reddit-{topic}",
            priority=priority,
            fresh_ttl=15 * 60,
            stale_ttl=60 * 60,
            rate_limit=RateLimitBudget(max_requests=60, window_seconds=60)
        ), **kwargs)

        config = SUBREDDIT_CONFIG.get(topic, {})
        self.topic = topic
        self.subreddits: List[str] = config.get('subreddits', [])
        self.keywords: List[str] = config.get('keywords', [])
        self.ticker_regex: Optional[re.Pattern] = config.get('ticker_regex')

    async def fetch(self, topic: str) -> Optional[Dict[str, Any]]:
        if not self.subreddits:
            self.logger.info("No subreddits configured")
            return None

        results = await self._gather_settled(
            [f"r/{sub}" for sub in self.subreddits],
            [self.fetch_subreddit(sub) for sub in self.subreddits]
        )

        posts = [post for result in results if result for post in result]
        if not posts:
            return None

        posts.sort(key=lambda p: p['engagement'], reverse=True)
        posts = posts[:20]

        return {
            'posts': posts[:10],
            'tickers': self.count_tickers(posts),
            'top_keywords': self.count_keywords(posts),
            'total_posts': len(posts)
        }

    async def fetch_subreddit(self, subreddit: str, limit: int = 15) -> List[Dict[str, Any]]:
        data = await self._get_json(
            f"https://www.reddit.com/r/{subreddit}/hot/.json",
            f"r/{subreddit}",
            params={'limit': limit}
        )

        now = time.time()
        posts = []
        for child in (data.get('data') or {}).get('children', []):
            post = child.get('data') or {}
            if post.get('stickied') or not post.get('title'):
                continue

            age_hours = (now - float(post.get('created_utc') or now)) / 3600
            score = post.get('score') or 0
            comments = post.get('num_comments') or 0
            posts.append({
                'title': post['title'],
                'selftext': (post.get('selftext') or "")[:500],
                'score': score,
                'comments': comments,
                'upvote_ratio': post.get('upvote_ratio'),
                'subreddit': subreddit,
                'author': post.get('author'),
                'url': f"https://reddit.com{post.get('permalink', '')}",
                'age_hours': round(age_hours, 1),
                # upvotes + comments*2, per hour of age
                'engagement': round((score + comments * 2) / max(1.0, age_hours))
            })
        return posts

    def count_tickers(self, posts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not self.ticker_regex:
            return []

        counts = Counter()
        for post in posts:
            text = f"{post['title']} {post.get('selftext', '')}"
            counts.update(f"${ticker}" for ticker in self.ticker_regex.findall(text))

        return [{'ticker': ticker, 'count': count} for ticker, count in counts.most_common(10)]

    def count_keywords(self, posts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        counts = Counter()
        for post in posts:
            text = f"{post['title']} {post.get('selftext', '')}".lower()
            counts.update(k for k in self.keywords if k.lower() in text)

        return [{'keyword': keyword, 'count': count} for keyword, count in counts.most_common(5)]

    def normalize(self, raw: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not raw:
            return None

        return {
            'reddit_posts': raw.get('posts') or [],
            'reddit_tickers': raw.get('tickers') or [],
            'reddit_keywords': raw.get('top_keywords') or [],
            'key_data': self.extract_key_data(raw)
        }

    def extract_key_data(self, raw: Dict[str, Any]) -> List[str]:
        key_data = []
        posts = raw.get('posts') or []

        if posts:
            key_data.append(f"Reddit: {len(posts)} hot posts from r/{', r/'.join(self.subreddits)}")

        tickers = raw.get('tickers') or []
        if tickers:
            key_data.append(f"Trending tickers: {', '.join(t['ticker'] for t in tickers[:5])}")

        if posts:
            top = posts[0]
            key_data.append(f"Top post: \"{top['title'][:80]}...\" ({top['score']} upvotes)")

        return key_data
