"""
HuggingFace Hub source
Most downloaded models and recently updated generative models
"""

from typing import Any, Dict, List, Optional

from ...utils import RateLimitBudget
from ..base import Priority, Source, SourceDescriptor

MODELS_URL = "https://huggingface.co/api/models"

INTERESTING_TAGS = {
    "text-generation", "text2text-generation", "image-to-text",
    "text-to-image", "automatic-speech-recognition", "llm"
}

def _model_record(model: Dict[str, Any]) -> Dict[str, Any]:
    model_id = model.get('id') or model.get('modelId') or ""
    owner, _, short_name = model_id.partition("/")
    return {
        'id': model_id,
        'author': model.get('author') or owner,
        'name': short_name or model_id,
        'downloads': model.get('downloads'),
        'likes': model.get('likes'),
        'tags': (model.get('tags') or [])[:5],
        'pipeline': model.get('pipeline_tag'),
        'last_modified': model.get('lastModified'),
        'url': f"https://huggingface.co/{model_id}"
    }

class HuggingFaceSource(Source):

    def __init__(self, **kwargs):
        super().__init__(SourceDescriptor(
            name="huggingface",
            priority=Priority.PRIMARY,
            fresh_ttl=60 * 60,
            stale_ttl=4 * 60 * 60,
            rate_limit=RateLimitBudget(max_requests=100, window_seconds=60)
        ), **kwargs)

    async def fetch(self, topic: str) -> Optional[Dict[str, Any]]:
        trending, recent = await self._gather_settled(
            ["trending", "recent"],
            [self.fetch_trending_models(), self.fetch_recent_models()]
        )

        if not trending and not recent:
            return None

        return {
            'trending': trending or [],
            'recent': recent or []
        }

    async def _list_models(self, sort: str, label: str) -> List[Dict[str, Any]]:
        data = await self._get_json(MODELS_URL, label, params={
            'sort': sort,
            'direction': -1,
            'limit': 15
        })
        return [m for m in (data or []) if m.get('id') or m.get('modelId')]

    async def fetch_trending_models(self) -> List[Dict[str, Any]]:
        models = await self._list_models("downloads", "trending")
        return [_model_record(m) for m in models[:10]]

    async def fetch_recent_models(self) -> List[Dict[str, Any]]:
        models = await self._list_models("lastModified", "recent")
        interesting = [m for m in models if INTERESTING_TAGS.intersection(m.get('tags') or [])]
        return [_model_record(m) for m in interesting[:10]]

    def normalize(self, raw: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not raw:
            return None

        return {
            'hf_trending': raw.get('trending') or [],
            'hf_recent': raw.get('recent') or [],
            'key_data': self.extract_key_data(raw)
        }

    def extract_key_data(self, raw: Dict[str, Any]) -> List[str]:
        key_data = []

        trending = raw.get('trending') or []
        if trending:
            top = trending[0]
            downloads = (top.get('downloads') or 0) / 1e6
            key_data.append(f"HF trending: {top['id']} ({downloads:.1f}M downloads)")

        recent = raw.get('recent') or []
        pipelines = list(dict.fromkeys(m['pipeline'] for m in recent if m.get('pipeline')))
        if pipelines:
            key_data.append(f"New models: {', '.join(pipelines[:3])}")

        return key_data
