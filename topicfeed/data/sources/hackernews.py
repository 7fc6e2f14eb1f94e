"""
Hacker News source
Top stories, plus the subset that is about AI or coding
"""

import time
from typing import Any, Dict, List, Optional

from ...utils import RateLimitBudget
from ..base import Priority, Source, SourceDescriptor
from ..errors import EmptyResult

BASE_URL = "https://hacker-news.firebaseio.com/v0"

AI_CODING_KEYWORDS = (
    "ai", "gpt", "claude", "llm", "cursor", "copilot", "openai", "anthropic",
    "coding", "programming", "developer", "typescript", "rust", "python",
    "ml", "machine learning", "neural", "transformer", "agent"
)

def is_ai_coding(title: str) -> bool:
    lowered = title.lower()
    return any(keyword in lowered for keyword in AI_CODING_KEYWORDS)

class HackerNewsSource(Source):

    def __init__(self, **kwargs):
        super().__init__(SourceDescriptor(
            name="hackernews",
            priority=Priority.PRIMARY,
            fresh_ttl=30 * 60,
            stale_ttl=2 * 60 * 60,
            rate_limit=RateLimitBudget(max_requests=100, window_seconds=60)
        ), **kwargs)

    async def fetch(self, topic: str, limit: int = 20) -> Optional[Dict[str, Any]]:
        top_ids = await self._get_json(f"{BASE_URL}/topstories.json", "topstories")
        if not top_ids:
            raise EmptyResult("No stories found")

        ids = top_ids[:limit]
        stories = await self._gather_settled(
            [f"item {story_id}" for story_id in ids],
            [self._get_json(f"{BASE_URL}/item/{story_id}.json", f"item {story_id}") for story_id in ids]
        )

        now = time.time()
        processed = []
        for story in stories:
            if not story or not story.get('title'):
                continue

            age_hours = (now - float(story.get('time') or now)) / 3600
            score = story.get('score') or 0
            hn_url = f"https://news.ycombinator.com/item?id={story.get('id')}"
            processed.append({
                'title': story['title'],
                'score': score,
                'comments': story.get('descendants') or 0,
                'author': story.get('by'),
                'url': story.get('url') or hn_url,
                'hn_url': hn_url,
                'age_hours': round(age_hours, 1),
                # points per hour
                'velocity': round(score / max(1.0, age_hours), 1)
            })

        if not processed:
            return None

        return {
            'all_stories': processed[:10],
            'relevant_stories': [s for s in processed if is_ai_coding(s['title'])][:10]
        }

    def normalize(self, raw: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not raw:
            return None

        return {
            'hacker_news': raw.get('all_stories') or [],
            'relevant_hn': raw.get('relevant_stories') or [],
            'key_data': self.extract_key_data(raw)
        }

    def extract_key_data(self, raw: Dict[str, Any]) -> List[str]:
        key_data = []

        stories = raw.get('all_stories') or []
        if stories:
            key_data.append(f"{len(stories)} HN top stories")

        relevant = raw.get('relevant_stories') or []
        if relevant:
            key_data.append(f"{len(relevant)} AI/coding stories on HN")
            key_data.append(f"Top: \"{relevant[0]['title'][:60]}...\" ({relevant[0]['score']} pts)")

        return key_data
