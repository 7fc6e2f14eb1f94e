"""Source registry and tiered topic fetcher."""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from topicfeed.utils.logger import get_logger, log_async_performance
from topicfeed.data.base import FetchOutcome, Priority, Source
from topicfeed.data.cache import CacheStore
from topicfeed.data.errors import ErrorKind
from topicfeed.orchestration.merge import merge_results


logger = get_logger(__name__)

NO_SOURCES = "no_sources_registered"


@dataclass
class SourceReport:
    """A source that contributed data to a topic result."""
    name: str
    from_cache: bool
    cache_age: Optional[float] = None
    error: Optional[str] = None  # set when stale data was served after an error


@dataclass
class ErrorRecord:
    """A source that was attempted and produced nothing usable."""
    source: str
    error: str
    kind: Optional[ErrorKind] = None


@dataclass
class TopicResult:
    """Merged data for one topic plus fetch diagnostics."""
    topic: str
    sources: List[SourceReport] = field(default_factory=list)
    errors: List[ErrorRecord] = field(default_factory=list)
    data: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.data is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            'topic': self.topic,
            'sources': [
                {
                    'name': s.name,
                    'from_cache': s.from_cache,
                    'cache_age': s.cache_age,
                    'error': s.error
                }
                for s in self.sources
            ],
            'errors': [
                {
                    'source': e.source,
                    'error': e.error,
                    'kind': e.kind.value if e.kind else None
                }
                for e in self.errors
            ],
            'data': self.data
        }


# (source, normalized payload, outcome) for each contributing source
Contribution = Tuple[Source, Dict[str, Any], FetchOutcome]


class SourceRegistry:
    """Holds the ordered sources per topic and drives tiered fetching.

    Sources are kept sorted by priority tier; within a tier they keep
    registration order. Primary and secondary tiers fan out concurrently,
    the fallback tier runs one source at a time until one yields data.
    """

    def __init__(self, cache: CacheStore):
        """Initialize registry.

        Args:
            cache: Cache store shared by every registered source
        """
        self.cache = cache
        self._sources: Dict[str, List[Source]] = {}

    def register_source(self, topic: str, source: Source):
        """Register a source for a topic.

        Args:
            topic: Topic name
            source: Source instance
        """
        sources = self._sources.setdefault(topic, [])
        sources.append(source)
        # list.sort is stable, so registration order survives within a tier
        sources.sort(key=lambda s: s.priority.rank)
        logger.debug(f"Registered {source.name} for {topic} ({source.priority.value})")

    def get_sources(self, topic: str) -> List[Source]:
        return list(self._sources.get(topic, []))

    def get_topics(self) -> List[str]:
        return list(self._sources)

    def get_status(self) -> Dict[str, List[Dict[str, Any]]]:
        """Per-topic source metadata."""
        return {
            topic: [source.get_info() for source in sources]
            for topic, sources in self._sources.items()
        }

    async def close(self):
        """Close the HTTP client of every registered source."""
        seen = set()
        for sources in self._sources.values():
            for source in sources:
                if id(source) in seen:
                    continue
                seen.add(id(source))
                await source.disconnect()

    async def _fetch_tier(self, topic: str, sources: List[Source]) -> List[Tuple[Source, FetchOutcome]]:
        """Fetch every source of a tier concurrently, waiting for all of them."""
        results = await asyncio.gather(
            *(source.fetch_with_cache(topic, self.cache) for source in sources),
            return_exceptions=True
        )

        outcomes = []
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                source.logger.bind(topic=topic).error(f"Unhandled error: {result}")
                result = FetchOutcome(
                    error=str(result) or result.__class__.__name__,
                    error_kind=ErrorKind.PARSE
                )
            outcomes.append((source, result))
        return outcomes

    def _collect(
        self,
        source: Source,
        outcome: FetchOutcome,
        contributions: List[Contribution],
        errors: List[ErrorRecord]
    ) -> bool:
        """Normalize one outcome into contributions, or record why it failed.

        Returns:
            True if the source contributed data
        """
        if not outcome.ok:
            errors.append(ErrorRecord(
                source=source.name,
                error=outcome.error or "no_data",
                kind=outcome.error_kind
            ))
            return False

        try:
            normalized = source.normalize(outcome.data)
        except Exception as e:
            source.logger.error(f"normalize failed: {e}")
            errors.append(ErrorRecord(source=source.name, error=str(e), kind=ErrorKind.NORMALIZE))
            return False

        if not isinstance(normalized, dict) or not normalized:
            errors.append(ErrorRecord(
                source=source.name,
                error="normalize returned no data",
                kind=ErrorKind.NORMALIZE
            ))
            return False

        contributions.append((source, normalized, outcome))
        return True

    @log_async_performance()
    async def fetch_topic(self, topic: str) -> TopicResult:
        """Fetch, normalize and merge data for one topic.

        Never raises: total failure is reported as data=None plus errors.

        Args:
            topic: Topic name

        Returns:
            TopicResult with contributing sources in tier then
            registration order
        """
        log = logger.bind(topic=topic)
        sources = self.get_sources(topic)
        if not sources:
            log.warning("No sources registered")
            return TopicResult(
                topic=topic,
                errors=[ErrorRecord(source=topic, error=NO_SOURCES)]
            )

        tiers = {
            priority: [s for s in sources if s.priority == priority]
            for priority in Priority
        }
        contributions: List[Contribution] = []
        errors: List[ErrorRecord] = []

        for priority in (Priority.PRIMARY, Priority.SECONDARY):
            tier = tiers[priority]
            if contributions or not tier:
                continue

            log.info(f"Fetching from {len(tier)} {priority.value} sources")
            for source, outcome in await self._fetch_tier(topic, tier):
                self._collect(source, outcome, contributions, errors)

        fallback = tiers[Priority.FALLBACK]
        if not contributions and fallback:
            log.info(f"Trying {len(fallback)} fallback sources")
            for source in fallback:
                [(_, outcome)] = await self._fetch_tier(topic, [source])
                if self._collect(source, outcome, contributions, errors):
                    break

        if not contributions:
            log.warning(f"No source returned data ({len(errors)} errors)")

        return TopicResult(
            topic=topic,
            sources=[
                SourceReport(
                    name=source.name,
                    from_cache=outcome.from_cache,
                    cache_age=outcome.cache_age,
                    error=outcome.error
                )
                for source, _, outcome in contributions
            ],
            errors=errors,
            data=merge_results(normalized for _, normalized, _ in contributions)
        )

    async def fetch_all_topics(self, topics: Optional[List[str]] = None) -> Dict[str, TopicResult]:
        """Fetch several topics concurrently.

        Args:
            topics: Topic names; defaults to every registered topic

        Returns:
            TopicResult per topic, in the requested order
        """
        topics = list(topics) if topics is not None else self.get_topics()
        results = await asyncio.gather(
            *(self.fetch_topic(topic) for topic in topics),
            return_exceptions=True
        )

        by_topic: Dict[str, TopicResult] = {}
        for topic, result in zip(topics, results):
            if isinstance(result, BaseException):
                logger.error(f"Topic {topic} failed: {result}")
                result = TopicResult(
                    topic=topic,
                    errors=[ErrorRecord(source=topic, error=str(result) or result.__class__.__name__)]
                )
            by_topic[topic] = result
        return by_topic
