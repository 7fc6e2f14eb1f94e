"""
Shared cache for source payloads
In-memory key/value store with per-entry insertion timestamps.
The store has no notion of TTL; callers pass their own.
"""

import json
import math
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional

from ..utils import get_logger

logger = get_logger(__name__)

@dataclass
class CacheEntry:
    """Represents a cached data entry"""
    key: str
    data: Any
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            'key': self.key,
            'data': self.data,
            'timestamp': self.timestamp
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CacheEntry':
        return cls(key=data['key'], data=data['data'], timestamp=float(data['timestamp']))

def format_age(seconds: float) -> str:
    """Human readable age: 42s, 5min, 3h"""
    if math.isinf(seconds):
        return "never"
    if seconds < 60:
        return f"{round(seconds)}s"
    if seconds < 3600:
        return f"{round(seconds / 60)}min"
    return f"{round(seconds / 3600)}h"

class CacheStore:
    """
    Process-scoped cache shared by every source and topic

    Entries are replaced wholesale on set; nothing is merged. Concurrent
    writers to one key simply leave the last write in place.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def set(self, key: str, value: Any):
        """Store value, resetting the entry's age to zero"""
        self._entries[key] = CacheEntry(key=key, data=value, timestamp=self.clock())

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value or None; does not touch the age"""
        entry = self._entries.get(key)
        return entry.data if entry else None

    def has(self, key: str) -> bool:
        return key in self._entries

    def get_age(self, key: str) -> float:
        """Seconds since the last set, or infinity if never set"""
        entry = self._entries.get(key)
        if entry is None:
            return math.inf
        return max(0.0, self.clock() - entry.timestamp)

    def is_stale(self, key: str, ttl: float) -> bool:
        """True if the entry is older than ttl or missing"""
        return self.get_age(key) > ttl

    def is_fresh(self, key: str, ttl: float) -> bool:
        return self.has(key) and not self.is_stale(key, ttl)

    def delete(self, key: str):
        self._entries.pop(key, None)

    def clear(self):
        self._entries.clear()

    def clear_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with prefix"""
        keys = [k for k in self._entries if k.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def cleanup(self, max_age: float) -> int:
        """
        Remove entries older than max_age seconds

        Housekeeping only; never called on the read path.

        Returns:
            Number of entries removed
        """
        expired = [k for k in self._entries if self.get_age(k) > max_age]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.info(f"Cleaned up {len(expired)} cache entries older than {format_age(max_age)}")
        return len(expired)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics, youngest entries first"""
        entries = []
        for key in self._entries:
            age = self.get_age(key)
            entries.append({
                'key': key,
                'age': age,
                'age_formatted': format_age(age)
            })
        entries.sort(key=lambda e: e['age'])
        return {
            'size': len(self._entries),
            'entries': entries
        }

    def save(self, path: Path) -> int:
        """
        Write a JSON snapshot of every entry

        Returns:
            Number of entries written
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        snapshot = {key: entry.to_dict() for key, entry in self._entries.items()}
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(snapshot, f, indent=2, default=str)
        logger.debug(f"Saved {len(snapshot)} cache entries to {path}")
        return len(snapshot)

    def load(self, path: Path) -> int:
        """
        Restore entries from a snapshot written by save()

        Stored timestamps are kept, so ages carry on from the original
        insertion. A missing or unreadable file leaves the store untouched.
        """
        if not path.exists():
            return 0

        try:
            with open(path, 'r', encoding='utf-8') as f:
                snapshot = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to read cache snapshot {path}: {e}")
            return 0

        if not isinstance(snapshot, dict):
            logger.warning(f"Ignoring cache snapshot {path}: expected an object, got {type(snapshot).__name__}")
            return 0

        loaded = 0
        for key, raw in snapshot.items():
            try:
                self._entries[key] = CacheEntry.from_dict(raw)
                loaded += 1
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping bad cache snapshot entry {key}: {e}")

        logger.info(f"Loaded {loaded} cache entries from {path}")
        return loaded
