"""
GitHub source
Recently created popular repositories and active AI/LLM repositories
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from ...utils import RateLimitBudget
from ..base import Priority, Source, SourceDescriptor

SEARCH_URL = "https://api.github.com/search/repositories"

class GitHubSource(Source):
    """
    GitHub has no trending API, so repository search sorted by stars
    stands in for it. A token is optional and only raises the upstream limit.
    """

    def __init__(self, **kwargs):
        super().__init__(SourceDescriptor(
            name="github",
            priority=Priority.PRIMARY,
            fresh_ttl=60 * 60,
            stale_ttl=4 * 60 * 60,
            rate_limit=RateLimitBudget(max_requests=60, window_seconds=60)
        ), **kwargs)
        self.token = self.config.api.github_token

    def default_headers(self) -> Dict[str, str]:
        headers = super().default_headers()
        headers['Accept'] = "application/vnd.github.v3+json"
        if self.token:
            headers['Authorization'] = f"token {self.token}"
        return headers

    async def fetch(self, topic: str) -> Optional[Dict[str, Any]]:
        trending, ai_repos = await self._gather_settled(
            ["trending", "ai_repos"],
            [self.fetch_trending(), self.fetch_ai_repos()]
        )

        if not trending and not ai_repos:
            return None

        return {
            'trending': trending or [],
            'ai_repos': ai_repos or []
        }

    @staticmethod
    def _since(days: int = 7) -> str:
        return (datetime.now(timezone.utc) - timedelta(days=days)).date().isoformat()

    async def _search(self, query: str, label: str, date_field: str) -> List[Dict[str, Any]]:
        data = await self._get_json(SEARCH_URL, label, params={
            'q': query,
            'sort': "stars",
            'order': "desc",
            'per_page': 15
        })

        return [
            {
                'name': repo.get('name'),
                'full_name': repo.get('full_name'),
                'description': (repo.get('description') or "")[:200],
                'stars': repo.get('stargazers_count'),
                'forks': repo.get('forks_count'),
                'language': repo.get('language'),
                'topics': (repo.get('topics') or [])[:5],
                'url': repo.get('html_url'),
                date_field: repo.get(date_field)
            }
            for repo in (data.get('items') or [])[:10]
        ]

    async def fetch_trending(self) -> List[Dict[str, Any]]:
        return await self._search(f"created:>{self._since()}", "trending", "created_at")

    async def fetch_ai_repos(self) -> List[Dict[str, Any]]:
        return await self._search(f"llm OR ai OR gpt pushed:>{self._since()}", "ai_repos", "updated_at")

    def normalize(self, raw: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not raw:
            return None

        return {
            'github_trending': raw.get('trending') or [],
            'github_ai': raw.get('ai_repos') or [],
            'key_data': self.extract_key_data(raw)
        }

    def extract_key_data(self, raw: Dict[str, Any]) -> List[str]:
        key_data = []

        trending = raw.get('trending') or []
        if trending:
            top = trending[0]
            key_data.append(f"GitHub trending: {top['full_name']} ({top['stars']} stars)")

        ai_repos = raw.get('ai_repos') or []
        if ai_repos:
            languages = list(dict.fromkeys(r['language'] for r in ai_repos if r.get('language')))
            key_data.append(f"AI repos trending in: {', '.join(languages[:3])}")

        return key_data
