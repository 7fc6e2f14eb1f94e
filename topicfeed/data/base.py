"""
Base classes for topic data sources
Shared fetch/normalize/cache-key contract plus the cache-aware fetch routine
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from ..config import Config, get_config
from ..utils import get_logger, RateLimitBudget, RateLimiter, RateLimited
from .cache import CacheStore
from .errors import ErrorKind, EmptyResult, NetworkError

logger = get_logger(__name__)

class Priority(Enum):
    """Fetch tiers, highest first"""
    PRIMARY = "primary"
    SECONDARY = "secondary"
    FALLBACK = "fallback"

    @property
    def rank(self) -> int:
        return list(Priority).index(self)

@dataclass(frozen=True)
class SourceDescriptor:
    """Static metadata every source declares"""
    name: str
    priority: Priority
    fresh_ttl: float
    stale_ttl: float
    rate_limit: RateLimitBudget

    def __post_init__(self):
        if self.fresh_ttl < 0:
            raise ValueError(f"{self.name}: fresh_ttl must be non-negative")
        if self.stale_ttl < self.fresh_ttl:
            raise ValueError(f"{self.name}: stale_ttl must be >= fresh_ttl")

@dataclass
class FetchOutcome:
    """Result of Source.fetch_with_cache; never an exception"""
    data: Optional[Any] = None
    from_cache: bool = False
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    cache_age: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.data is not None

    @property
    def degraded(self) -> bool:
        """Data was served, but only as a fallback after an error"""
        return self.ok and self.error is not None

class Source(ABC):
    """
    Base class for all data sources

    Subclasses implement fetch() and usually normalize(). fetch() returns
    None when there is nothing to report and raises NetworkError for
    transport failures; fetch_with_cache() turns both into a FetchOutcome.
    """

    def __init__(
        self,
        descriptor: SourceDescriptor,
        config: Optional[Config] = None,
        clock: Callable[[], float] = time.time
    ):
        self.descriptor = descriptor
        self.config = config or get_config()
        self.logger = logger.bind(source=descriptor.name)
        self.rate_limiter = RateLimiter(descriptor.name, descriptor.rate_limit, clock=clock)
        self.client: Optional[httpx.AsyncClient] = None
        self.is_connected = False

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name} ({self.priority.value})>"

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def priority(self) -> Priority:
        return self.descriptor.priority

    @property
    def fresh_ttl(self) -> float:
        return self.descriptor.fresh_ttl

    @property
    def stale_ttl(self) -> float:
        return self.descriptor.stale_ttl

    @abstractmethod
    async def fetch(self, topic: str) -> Optional[Any]:
        """Fetch a raw payload from upstream"""

    def normalize(self, raw: Any) -> Optional[Dict[str, Any]]:
        """Transform a raw payload into the canonical field mapping"""
        return raw

    def cache_key(self, topic: str = "default") -> str:
        return f"{self.name}:{topic}"

    async def connect(self):
        """Initialize HTTP client"""
        if not self.client:
            self.client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.http.timeout_seconds),
                headers=self.default_headers(),
                follow_redirects=True
            )
            self.is_connected = True
            self.logger.debug("HTTP client initialized")

    async def disconnect(self):
        """Close HTTP client"""
        if self.client:
            await self.client.aclose()
            self.client = None
            self.is_connected = False

    def default_headers(self) -> Dict[str, str]:
        return {'User-Agent': self.config.http.user_agent}

    async def _request(
        self,
        url: str,
        label: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        if not self.client:
            await self.connect()

        try:
            response = await self.client.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise NetworkError(f"{self.name} {label}: {e.__class__.__name__} {e}".strip()) from e

        if not response.is_success:
            raise NetworkError(
                f"{self.name} {label}: {response.status_code}",
                status_code=response.status_code
            )
        return response

    async def _get_json(self, url: str, label: str, **kwargs) -> Any:
        response = await self._request(url, label, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"{self.name} {label}: invalid JSON ({e})") from e

    async def _get_text(self, url: str, label: str, **kwargs) -> str:
        response = await self._request(url, label, **kwargs)
        return response.text

    async def _gather_settled(self, labels: List[str], calls: List[Awaitable]) -> List[Optional[Any]]:
        """
        Run sub-requests concurrently, tolerating partial failure

        Failed parts come back as None. If every part fails, the first
        error is raised so the whole fetch counts as a transport failure.
        """
        results = await asyncio.gather(*calls, return_exceptions=True)

        settled: List[Optional[Any]] = []
        errors: List[BaseException] = []
        for label, result in zip(labels, results):
            if isinstance(result, BaseException):
                self.logger.error(f"{label} error: {result}")
                errors.append(result)
                settled.append(None)
            else:
                settled.append(result)

        if results and len(errors) == len(results):
            raise errors[0]
        return settled

    def _from_cache(
        self,
        cache: CacheStore,
        key: str,
        error: str,
        kind: ErrorKind,
        max_age: Optional[float]
    ) -> FetchOutcome:
        """Serve the cached value within max_age (any age if None), else fail"""
        if cache.has(key) and (max_age is None or not cache.is_stale(key, max_age)):
            return FetchOutcome(
                data=cache.get(key),
                from_cache=True,
                error=error,
                error_kind=kind,
                cache_age=cache.get_age(key)
            )
        return FetchOutcome(data=None, from_cache=False, error=error, error_kind=kind)

    async def fetch_with_cache(self, topic: str, cache: CacheStore) -> FetchOutcome:
        """
        Fetch with caching and error handling

        1. Fresh cache entry: returned without touching the network or budget.
        2. Budget used up: stale entry within stale_ttl, else no data.
        3. Otherwise one request is counted and fetch() is called. Empty
           payloads fall back to any cached entry; failures fall back to an
           entry within stale_ttl.
        """
        key = self.cache_key(topic)

        if cache.is_fresh(key, self.fresh_ttl):
            self.logger.debug(f"Cache hit for {topic} (age: {cache.get_age(key):.1f}s)")
            return FetchOutcome(data=cache.get(key), from_cache=True, cache_age=cache.get_age(key))

        try:
            self.rate_limiter.acquire()
        except RateLimited:
            outcome = self._from_cache(cache, key, 'rate_limited', ErrorKind.RATE_LIMITED, self.stale_ttl)
            if outcome.ok:
                self.logger.warning("Rate limited, using stale cache")
            else:
                self.logger.warning(f"Rate limited, no usable cache for {topic}")
            return outcome

        try:
            payload = await self.fetch(topic)
        except EmptyResult as e:
            self.logger.warning(f"Empty result: {e}")
            payload = None
        except Exception as e:
            message = str(e) or e.__class__.__name__
            self.logger.error(f"Error: {message}")

            if isinstance(e, NetworkError) and e.is_rate_limit:
                self.rate_limiter.saturate()

            kind = ErrorKind.NETWORK if isinstance(e, (NetworkError, httpx.HTTPError)) else ErrorKind.PARSE
            outcome = self._from_cache(cache, key, message, kind, self.stale_ttl)
            if outcome.ok:
                self.logger.info("Using stale cache after error")
            return outcome

        if payload:
            cache.set(key, payload)
            return FetchOutcome(data=payload, from_cache=False)

        return self._from_cache(cache, key, 'fetch_empty', ErrorKind.EMPTY_RESULT, None)

    def get_info(self) -> Dict[str, Any]:
        """Get source metadata"""
        return {
            'name': self.name,
            'priority': self.priority.value,
            'fresh_ttl': self.fresh_ttl,
            'stale_ttl': self.stale_ttl,
            'rate_limit': {
                'max_requests': self.descriptor.rate_limit.max_requests,
                'window_seconds': self.descriptor.rate_limit.window_seconds
            },
            'request_count': self.rate_limiter.used,
            'is_rate_limited': self.rate_limiter.is_limited()
        }
