"""
arXiv source
Recent AI/ML papers from the Atom export API
"""

from typing import Any, Dict, List, Optional

from ...utils import RateLimitBudget
from ..base import Priority, Source, SourceDescriptor
from ..errors import ParseError
from ..feeds import clean_text, extract_all, extract_attrs, extract_tag, parse_blocks

API_URL = "http://export.arxiv.org/api/query"

# cs.AI (AI), cs.CL (language), cs.LG (machine learning)
CATEGORIES = ("cs.AI", "cs.CL", "cs.LG")

NOTABLE_KEYWORDS = ("gpt", "llm", "transformer", "attention", "agent", "reasoning", "multimodal")

def parse_entry(block: str) -> Dict[str, Any]:
    """Build a paper record from one <entry> block"""
    title = clean_text(extract_tag(block, "title"))
    paper_id = clean_text(extract_tag(block, "id"))
    if not title or not paper_id:
        raise ParseError("entry without title or id")

    authors = [clean_text(extract_tag(author, "name")) for author in extract_all(block, "author")]

    return {
        'title': title,
        'summary': clean_text(extract_tag(block, "summary"))[:400],
        'authors': [a for a in authors if a][:3],
        'categories': extract_attrs(block, "category", "term")[:3],
        'url': paper_id,
        'arxiv_id': paper_id.split("/abs/")[-1],
        'published': clean_text(extract_tag(block, "published")) or None
    }

class ArxivSource(Source):
    """
    Papers change slowly, so this source sits in the secondary tier with
    long TTLs. arXiv asks clients to stay at a few requests per interval.
    """

    def __init__(self, **kwargs):
        super().__init__(SourceDescriptor(
            name="arxiv",
            priority=Priority.SECONDARY,
            fresh_ttl=4 * 60 * 60,
            stale_ttl=24 * 60 * 60,
            rate_limit=RateLimitBudget(max_requests=3, window_seconds=60)
        ), **kwargs)

    async def fetch(self, topic: str, max_results: int = 20) -> Optional[Dict[str, Any]]:
        xml = await self._get_text(API_URL, "query", params={
            'search_query': " OR ".join(f"cat:{c}" for c in CATEGORIES),
            'start': 0,
            'max_results': max_results,
            'sortBy': "submittedDate",
            'sortOrder': "descending"
        })

        papers = parse_blocks(xml, "entry", parse_entry)
        if not papers:
            return None

        return {'papers': papers[:15]}

    def normalize(self, raw: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not raw:
            return None

        return {
            'arxiv_papers': raw.get('papers') or [],
            'key_data': self.extract_key_data(raw)
        }

    def extract_key_data(self, raw: Dict[str, Any]) -> List[str]:
        key_data = []
        papers = raw.get('papers') or []

        if papers:
            key_data.append(f"{len(papers)} new arXiv papers")

            notable = [p for p in papers if any(k in p['title'].lower() for k in NOTABLE_KEYWORDS)]
            if notable:
                key_data.append(f"Notable: \"{notable[0]['title'][:60]}...\"")

        return key_data
