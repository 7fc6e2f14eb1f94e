"""
Data acquisition layer for topicfeed
Cache store, source contract and the concrete upstream adapters
"""

from .base import FetchOutcome, Priority, Source, SourceDescriptor
from .cache import CacheEntry, CacheStore, format_age
from .errors import EmptyResult, ErrorKind, NetworkError, ParseError, RateLimited, SourceError

__all__ = [
    "FetchOutcome",
    "Priority",
    "Source",
    "SourceDescriptor",
    "CacheEntry",
    "CacheStore",
    "format_age",
    "EmptyResult",
    "ErrorKind",
    "NetworkError",
    "ParseError",
    "RateLimited",
    "SourceError"
]
