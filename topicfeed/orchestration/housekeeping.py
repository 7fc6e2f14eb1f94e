"""Periodic cache cleanup running beside the fetch path."""
import asyncio
from typing import Optional

from topicfeed.data.cache import CacheStore, format_age
from topicfeed.utils.logger import get_logger


logger = get_logger(__name__)


class CacheJanitor:
    """Runs CacheStore.cleanup on an interval as a background task."""

    def __init__(self, cache: CacheStore, max_age: float, interval: float):
        """Initialize janitor.

        Args:
            cache: Cache store to sweep
            max_age: Entries older than this many seconds are removed
            interval: Seconds between sweeps
        """
        if interval <= 0:
            raise ValueError("interval must be positive")

        self.cache = cache
        self.max_age = max_age
        self.interval = interval
        self.sweeps = 0
        self.removed = 0
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    def run_once(self) -> int:
        """Sweep the cache now.

        Returns:
            Number of entries removed
        """
        removed = self.cache.cleanup(self.max_age)
        self.sweeps += 1
        self.removed += removed
        return removed

    async def start(self):
        """Start the cleanup loop."""
        if self._running:
            logger.warning("Cache janitor already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(
            f"Cache janitor started (max age {format_age(self.max_age)}, "
            f"every {format_age(self.interval)})"
        )

    async def stop(self):
        """Stop the cleanup loop gracefully."""
        self._running = False

        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                logger.debug("Cache janitor task cancelled")
        self._task = None

        logger.info(f"Cache janitor stopped after {self.sweeps} sweeps ({self.removed} removed)")

    async def _loop(self):
        while self._running:
            await asyncio.sleep(self.interval)
            try:
                self.run_once()
            except Exception as e:
                logger.error(f"Cache cleanup failed: {e}")
