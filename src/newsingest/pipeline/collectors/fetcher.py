"""Batched fetching of every feed in the registry."""

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

import httpx

from newsingest.core.article import ConnectivityResult, FeedFetchResult, RawFeedItem
from newsingest.core.config import FeedSource
from newsingest.database.repository import ArticleRepository
from newsingest.pipeline.collectors.rss import DEFAULT_USER_AGENT, RSSCollector
from newsingest.pipeline.dedup.duplicate_detector import remove_url_duplicates
from newsingest.utils.batching import run_in_batches
from newsingest.utils.exceptions import DatabaseError
from newsingest.utils.logging import get_logger

logger = get_logger(__name__)


class FeedFetcher:
    """Fetches a set of feeds a few at a time.

    Feeds are fetched `batch_size` at a time with a fixed pause between
    batches. A failing feed contributes no items and never stops the others.
    """

    def __init__(
        self,
        feeds: Sequence[FeedSource],
        http_client: Optional[httpx.AsyncClient] = None,
        repository: Optional[ArticleRepository] = None,
        timeout: float = 15.0,
        connectivity_timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        max_items_per_feed: int = 10,
        batch_size: int = 3,
        batch_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize feed fetcher.

        Args:
            feeds: Feed sources to fetch. Disabled feeds are skipped.
            http_client: Shared HTTP client for all feeds.
            repository: Store for feed health records.
            timeout: Per-feed HTTP timeout in seconds.
            connectivity_timeout: Timeout for connectivity checks.
            user_agent: User-Agent header sent to publishers.
            max_items_per_feed: Leading entries considered per feed.
            batch_size: Feeds fetched concurrently.
            batch_delay: Pause between batches in seconds.
            sleep: Async sleep, injectable for tests.
        """
        self.feeds = tuple(feeds)
        self.http_client = http_client
        self.repository = repository
        self.timeout = timeout
        self.connectivity_timeout = connectivity_timeout
        self.user_agent = user_agent
        self.max_items_per_feed = max_items_per_feed
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self._sleep = sleep

    def _collector(self, feed: FeedSource, timeout: Optional[float] = None) -> RSSCollector:
        return RSSCollector(
            feed,
            http_client=self.http_client,
            timeout=timeout or self.timeout,
            user_agent=self.user_agent,
            max_items=self.max_items_per_feed,
        )

    async def fetch_feed(self, feed: FeedSource) -> Tuple[List[RawFeedItem], FeedFetchResult]:
        """Fetch one feed and record its health."""
        items, result = await self._collector(feed).collect_with_result()
        self._record(result)
        return items, result

    async def fetch_all(self) -> Tuple[List[RawFeedItem], List[FeedFetchResult]]:
        """Fetch every enabled feed.

        Returns:
            Items deduplicated by source URL and sorted newest first, and
            one fetch result per feed in registry order.
        """
        feeds = [f for f in self.feeds if f.enabled]
        logger.info("feed_fetch_starting", feeds=len(feeds), skipped=len(self.feeds) - len(feeds))

        outcomes = await run_in_batches(
            feeds,
            self.fetch_feed,
            batch_size=self.batch_size,
            delay_seconds=self.batch_delay,
            sleep=self._sleep,
        )

        all_items: List[RawFeedItem] = []
        results: List[FeedFetchResult] = []
        for items, result in outcomes:
            all_items.extend(items)
            results.append(result)

        unique = remove_url_duplicates(all_items)
        unique.sort(key=lambda item: item.published_at, reverse=True)

        logger.info(
            "feed_fetch_complete",
            feeds=len(results),
            failed_feeds=sum(1 for r in results if not r.success),
            items=len(all_items),
            unique_items=len(unique),
        )

        return unique, results

    async def check_connectivity(self, url: str, name: Optional[str] = None) -> ConnectivityResult:
        """Check that a feed URL answers and parses.

        Args:
            url: Feed URL.
            name: Display name used in logs.

        Returns:
            Success flag, response time, item count and error.
        """
        feed = FeedSource(name=name or url, url=url)
        items, result = await self._collector(feed, self.connectivity_timeout).collect_with_result()

        logger.info(
            "feed_connectivity_checked",
            feed_url=url,
            success=result.success,
            response_time_ms=result.response_time_ms,
        )

        return ConnectivityResult(
            success=result.success,
            response_time_ms=result.response_time_ms,
            item_count=len(items),
            error=result.error,
        )

    def _record(self, result: FeedFetchResult) -> None:
        if self.repository is None:
            return
        try:
            self.repository.record_feed_result(result)
        except DatabaseError as e:
            logger.warning("feed_health_not_recorded", feed_name=result.feed_name, error=str(e))
