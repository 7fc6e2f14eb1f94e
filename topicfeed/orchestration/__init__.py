"""Orchestration layer: tiered fetching, merging and cache housekeeping."""
from topicfeed.orchestration.bootstrap import build_default_registry
from topicfeed.orchestration.housekeeping import CacheJanitor
from topicfeed.orchestration.merge import TITLE_FIELDS, item_identity, merge_results
from topicfeed.orchestration.registry import (
    ErrorRecord,
    SourceRegistry,
    SourceReport,
    TopicResult,
)

__all__ = [
    "build_default_registry",
    "CacheJanitor",
    "TITLE_FIELDS",
    "item_identity",
    "merge_results",
    "ErrorRecord",
    "SourceRegistry",
    "SourceReport",
    "TopicResult",
]
