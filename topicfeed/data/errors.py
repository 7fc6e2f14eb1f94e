"""
Error taxonomy for the acquisition layer

Only ParseError is recovered below the source boundary (per feed item).
Everything else is captured into a FetchOutcome by Source.fetch_with_cache.
"""

from enum import Enum
from typing import Optional

from ..utils.rate_limiter import RateLimited

class ErrorKind(Enum):
    """Why a fetch did not produce fresh data"""
    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    EMPTY_RESULT = "fetch_empty"
    PARSE = "parse"
    NORMALIZE = "normalize"

class SourceError(Exception):
    """Base class for source failures"""

class NetworkError(SourceError):
    """Transport failure or non-success HTTP status"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_rate_limit(self) -> bool:
        return self.status_code == 429

class EmptyResult(SourceError):
    """The upstream answered but nothing usable came back"""

class ParseError(SourceError):
    """A single feed item could not be parsed"""

__all__ = [
    "ErrorKind",
    "SourceError",
    "NetworkError",
    "EmptyResult",
    "ParseError",
    "RateLimited"
]
