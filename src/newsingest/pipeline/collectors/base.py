"""Base collector interface."""

import time
from abc import ABC, abstractmethod
from typing import List, Tuple

from newsingest.core.article import FeedFetchResult, RawFeedItem
from newsingest.core.config import FeedSource
from newsingest.utils.exceptions import CollectorError
from newsingest.utils.logging import get_logger

logger = get_logger(__name__)


class BaseCollector(ABC):
    """Abstract base class for feed collectors.

    Subclasses implement `_fetch_items`, which may raise. The public
    `collect` methods never do: failures are logged and become an empty
    item list plus an unsuccessful `FeedFetchResult`.
    """

    def __init__(self, feed: FeedSource):
        """Initialize collector with a feed source.

        Args:
            feed: Feed source with URL, category and priority.
        """
        self.feed = feed

    @abstractmethod
    async def _fetch_items(self) -> List[RawFeedItem]:
        """Fetch and parse items from the source.

        Raises:
            CollectorError: If the fetch or parse fails.
        """

    async def collect_with_result(self) -> Tuple[List[RawFeedItem], FeedFetchResult]:
        """Collect items and report how the fetch went.

        Returns:
            Items (empty on failure) and the fetch outcome.
        """
        started = time.perf_counter()
        error = None

        try:
            items = await self._fetch_items()
        except CollectorError as e:
            items = []
            error = str(e)
            logger.error("feed_collection_failed", feed_name=self.feed.name, error=error)

        result = FeedFetchResult(
            feed_name=self.feed.name,
            feed_url=str(self.feed.url),
            item_count=len(items),
            success=error is None,
            error=error,
            response_time_ms=int((time.perf_counter() - started) * 1000),
        )
        return items, result

    async def collect(self) -> List[RawFeedItem]:
        """Collect items from the source. Returns [] on any failure."""
        items, _ = await self.collect_with_result()
        return items
