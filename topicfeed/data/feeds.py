"""
Tolerant RSS/Atom extraction

Feeds are scanned item by item with regular expressions instead of a
conformant XML parser. An item that cannot be read raises ParseError inside
the loop and is dropped; the remaining items are kept.

Behaviour on the awkward cases:
- CDATA sections are unwrapped, HTML tags stripped, entities unescaped.
- Nested elements with the same name resolve to the first closing tag.
- Namespaced tags (dc:creator, media:title) match only when asked for by
  their full prefixed name.
"""

import html
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Dict, Iterator, List, Optional

from ..utils import get_logger
from .errors import ParseError

logger = get_logger(__name__)

TAG_RE = re.compile(r"<[^>]*>")
WHITESPACE_RE = re.compile(r"\s+")

def _opening(tag: str) -> str:
    return rf"<{re.escape(tag)}(?:\s[^>]*)?>"

def iter_blocks(xml: str, tag: str) -> Iterator[str]:
    """Yield the raw text after each opening <tag>, up to the next one"""
    starts = list(re.finditer(_opening(tag), xml))
    for i, match in enumerate(starts):
        end = starts[i + 1].start() if i + 1 < len(starts) else len(xml)
        yield xml[match.end():end]

def close_block(chunk: str, tag: str) -> str:
    """Cut a chunk at its closing tag"""
    end = chunk.find(f"</{tag}>")
    if end == -1:
        raise ParseError(f"<{tag}> without closing tag")
    return chunk[:end]

def extract_tag(xml: str, tag: str) -> Optional[str]:
    """Inner text of the first <tag>, CDATA unwrapped; None if absent or unclosed"""
    cdata = re.search(_opening(tag) + r"\s*<!\[CDATA\[([\s\S]*?)\]\]>\s*" + rf"</{re.escape(tag)}>", xml)
    if cdata:
        return cdata.group(1)

    match = re.search(_opening(tag) + r"([\s\S]*?)" + rf"</{re.escape(tag)}>", xml)
    return match.group(1) if match else None

def extract_all(xml: str, tag: str) -> List[str]:
    return re.findall(_opening(tag) + r"([\s\S]*?)" + rf"</{re.escape(tag)}>", xml)

def extract_attr(xml: str, tag: str, attr: str) -> Optional[str]:
    values = extract_attrs(xml, tag, attr)
    return values[0] if values else None

def extract_attrs(xml: str, tag: str, attr: str) -> List[str]:
    pattern = rf"<{re.escape(tag)}\s[^>]*?\b{re.escape(attr)}=\"([^\"]*)\""
    return [html.unescape(v) for v in re.findall(pattern, xml)]

def clean_text(text: Optional[str]) -> str:
    """Strip markup, unescape entities and collapse whitespace"""
    if not text:
        return ""
    text = TAG_RE.sub("", text)
    text = html.unescape(text)
    return WHITESPACE_RE.sub(" ", text).strip()

def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse RFC 822 (RSS) or ISO 8601 (Atom) dates to aware datetimes"""
    if not value:
        return None
    value = value.strip()
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

def parse_blocks(xml: str, tag: str, build: Callable[[str], Dict]) -> List[Dict]:
    """Run build() over every <tag> block, dropping the ones that fail"""
    items = []
    skipped = 0
    for chunk in iter_blocks(xml, tag):
        try:
            items.append(build(close_block(chunk, tag)))
        except ParseError as e:
            skipped += 1
            logger.debug(f"Skipping malformed <{tag}>: {e}")

    if skipped:
        logger.warning(f"Skipped {skipped} malformed <{tag}> entries")
    return items

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

def _rss_item(block: str, source_name: str) -> Dict:
    title = clean_text(extract_tag(block, "title"))
    if not title:
        raise ParseError("item has no readable title")

    return {
        'title': title,
        'link': clean_text(extract_tag(block, "link")) or None,
        'description': clean_text(extract_tag(block, "description"))[:300],
        'pub_date': (extract_tag(block, "pubDate") or "").strip() or _now_iso(),
        'source': source_name
    }

def _atom_entry(block: str, source_name: str) -> Dict:
    title = clean_text(extract_tag(block, "title"))
    if not title:
        raise ParseError("entry has no readable title")

    link = extract_attr(block, "link", "href") or clean_text(extract_tag(block, "link")) or None
    summary = extract_tag(block, "summary") or extract_tag(block, "content")
    published = extract_tag(block, "published") or extract_tag(block, "updated")

    return {
        'title': title,
        'link': link,
        'description': clean_text(summary)[:300],
        'pub_date': (published or "").strip() or _now_iso(),
        'source': source_name
    }

def parse_feed(xml: str, source_name: str, limit: int = 10) -> List[Dict]:
    """
    Parse an RSS 2.0 feed, or an Atom feed when no RSS items are found

    Args:
        xml: Raw feed document
        source_name: Label stored on every item
        limit: Maximum items returned

    Returns:
        Item records with title, link, description, pub_date and source
    """
    items = parse_blocks(xml, "item", lambda block: _rss_item(block, source_name))
    if not items:
        items = parse_blocks(xml, "entry", lambda block: _atom_entry(block, source_name))
    return items[:limit]
